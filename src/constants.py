"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    RESOLUTION_ERROR = 2
    EXIT_MISSING = 3


class Packaging(Enum):
    """Artifact forms understood by the resolver.

    Args:
        Enum (string): Packaging name as written in a POM.
    """

    POM = "pom"
    JAR = "jar"
    AAR = "aar"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "M2RESOLVE_LOG_LEVEL"
    ENV_CONFIG = "M2RESOLVE_CONFIG"
    ENV_M2_REPOSITORY = "M2RESOLVE_M2_REPOSITORY"
    CONFIG_FILE_NAME = "m2resolve.yml"

    POM_XML_FILE = "pom.xml"
    METADATA_FILE = "maven-metadata.xml"
    POM_NAMESPACE = "http://maven.apache.org/POM/4.0.0"
    EXPLODED_AAR_SUFFIX = ".exploded.aar"

    # User configured cache root; None falls back to DEFAULT_M2_SUBDIR under $HOME
    M2_REPOSITORY: Optional[str] = None
    DEFAULT_M2_SUBDIR = os.path.join(".aide", "maven")
    # Maven-layout repositories searched before the default cache
    EXTRA_REPOSITORIES: list = []

    MAX_DEPTH = 3
    EXCLUDED_ARTIFACT_PATTERNS = ["android-all"]
    # Scopes that never reach a compile classpath
    SKIPPED_SCOPES = ["test", "provided", "system"]


def default_repository_path() -> str:
    """Return the default local cache repository root.

    Precedence: M2RESOLVE_M2_REPOSITORY env var, configured M2_REPOSITORY,
    then ~/.aide/maven.
    """
    env_root = os.environ.get(Constants.ENV_M2_REPOSITORY)
    if env_root and env_root.strip():
        return env_root.strip()
    if Constants.M2_REPOSITORY:
        return Constants.M2_REPOSITORY
    return os.path.join(os.path.expanduser("~"), Constants.DEFAULT_M2_SUBDIR)


def _default_config_paths():
    paths = []
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        paths.append(env_path)
    paths.append(os.path.join(os.getcwd(), Constants.CONFIG_FILE_NAME))
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    paths.append(os.path.join(xdg, "m2resolve", Constants.CONFIG_FILE_NAME))
    return paths


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first YAML config found.

    Args:
        path: Explicit config path; default locations are searched when None.

    Returns:
        Parsed mapping, or an empty dict when nothing usable was found.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    candidates = [path] if path else _default_config_paths()
    for candidate in candidates:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Failed to load config %s: %s", candidate, exc)
            return {}
        if isinstance(data, dict):
            logger.debug("Loaded config from %s", candidate)
            return data
        return {}
    return {}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Apply the ``resolver`` section of a config mapping onto Constants."""
    section = cfg.get("resolver") if isinstance(cfg, dict) else None
    if not isinstance(section, dict):
        return

    if section.get("m2_repository"):
        Constants.M2_REPOSITORY = os.path.expanduser(str(section["m2_repository"]))

    extra = section.get("extra_repositories")
    if isinstance(extra, str):
        extra = extra.split(";")
    if isinstance(extra, list):
        Constants.EXTRA_REPOSITORIES = [
            os.path.expanduser(str(p).strip()) for p in extra if str(p).strip()
        ]

    if section.get("max_depth") is not None:
        try:
            Constants.MAX_DEPTH = int(section["max_depth"])
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid max_depth: %r", section["max_depth"])

    patterns = section.get("excluded_artifact_patterns")
    if isinstance(patterns, list):
        Constants.EXCLUDED_ARTIFACT_PATTERNS = [str(p) for p in patterns]
