"""Argument parsing functionality for m2resolve."""

import argparse

from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="m2resolve",
        description=(
            "m2resolve - Transitive Maven dependency resolver over local repositories"
        ),
        add_help=True,
    )

    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument("-d", "--directory",
                             dest="FROM_SRC",
                             help="Project directory containing a pom.xml",
                             action="store",
                             type=str)
    input_group.add_argument("-p", "--package",
                             dest="SINGLE",
                             help="Coordinate groupId:artifactId[:version[:packaging]] (repeatable)",
                             action="append",
                             type=str)

    parser.add_argument("--flat-dir",
                        dest="FLAT_DIRS",
                        help="Flat repository as DIR=CACHE_DIR (repeatable)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--repository",
                        dest="REPOSITORY",
                        help="Cache repository root (default: ~/.aide/maven)",
                        action="store",
                        type=str)
    parser.add_argument("--depth",
                        dest="DEPTH",
                        help=f"Descriptor expansion depth (default: {Constants.MAX_DEPTH})",
                        action="store",
                        type=int)
    parser.add_argument("--missing",
                        dest="MISSING_ONLY",
                        help="Only list dependencies that are not available locally",
                        action="store_true")
    parser.add_argument("--refresh",
                        dest="REFRESH",
                        help="Delete the cache repository before resolving",
                        action="store_true")
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Write the result as JSON to this path",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to YAML configuration file",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')

    return parser.parse_args(argv)
