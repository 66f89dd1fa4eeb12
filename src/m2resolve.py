"""m2resolve - resolve Maven dependency closures from local repositories.

    Returns:
        int: Exit code
"""
import json
import logging
import os
import sys

from args import parse_args
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes, _load_yaml_config, apply_config
from repository.locator import RepositoryLocator
from repository.pom import read_declared_dependencies
from resolver.errors import ResolutionError
from resolver.service import DependencyResolver
from versioning.models import parse_coordinate_token

logger = logging.getLogger(__name__)


def parse_flat_dirs(values):
    """Turn ``DIR=CACHE`` strings into a flat repository map.

    A bare ``DIR`` caches exploded archives in ``DIR/.exploded``.
    """
    flat = {}
    for value in values or []:
        flat_dir, sep, cache_dir = value.partition("=")
        flat_dir = flat_dir.strip()
        if not flat_dir:
            continue
        flat[flat_dir] = cache_dir.strip() if sep and cache_dir.strip() else os.path.join(flat_dir, ".exploded")
    return flat


def build_declared(args):
    """Collect declared dependencies from CLI tokens or a project pom.xml."""
    if args.SINGLE:
        return [parse_coordinate_token(token) for token in args.SINGLE]
    pom_path = os.path.join(args.FROM_SRC, Constants.POM_XML_FILE)
    if not os.path.isfile(pom_path):
        logging.error("pom.xml not found in %s. Unable to resolve.", args.FROM_SRC)
        sys.exit(ExitCodes.FILE_ERROR.value)
    return read_declared_dependencies(pom_path)


def export_json(result, path):
    """Write a ResolutionResult as JSON."""
    data = {
        "resolved": result.resolved_paths,
        "missing": [dep.identity for dep in result.missing],
    }
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        logging.info("JSON file written to %s", path)
    except OSError as e:
        logging.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    apply_config(_load_yaml_config(args.CONFIG))
    if is_debug_enabled(logger):
        logger.debug("CLI start", extra=extra_context(event="function_entry", component="cli", action="main"))

    try:
        declared = build_declared(args)
    except ValueError as e:
        logging.error("%s", e)
        return ExitCodes.FILE_ERROR.value
    except ResolutionError as e:
        logging.error("Couldn't read project descriptor: %s", e)
        return ExitCodes.FILE_ERROR.value

    if not declared:
        logging.warning("No dependencies declared.")
        return ExitCodes.SUCCESS.value

    resolver = DependencyResolver(
        locator=RepositoryLocator(default_root=args.REPOSITORY),
        max_depth=args.DEPTH,
    )
    if args.REFRESH:
        resolver.refresh_cache()

    try:
        result = resolver.resolve_transitive_closure(declared, flat_repos=parse_flat_dirs(args.FLAT_DIRS))
    except ResolutionError as e:
        logging.error("Resolution failed: %s", e)
        return ExitCodes.RESOLUTION_ERROR.value

    if args.OUTPUT:
        export_json(result, args.OUTPUT)
    else:
        if not args.MISSING_ONLY:
            for path in result.resolved_paths:
                print(path)
        for dep in result.missing:
            print(f"missing: {dep.identity}")

    if result.missing:
        return ExitCodes.EXIT_MISSING.value
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
