"""Error taxonomy for dependency resolution.

Not-found is not an error: unresolvable dependencies are reported in
``ResolutionResult.missing``. Everything here aborts the current call except
``ArchiveExtractionError``, which the locator downgrades to "absent".
"""
from typing import Optional


class ResolutionError(Exception):
    """Base class for resolver failures."""


class DescriptorParseError(ResolutionError):
    """A located artifact's descriptor is not a readable POM."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Malformed descriptor {path}: {reason}")
        self.path = path
        self.reason = reason


class RepositoryIOError(ResolutionError):
    """Filesystem failure while probing a repository."""

    def __init__(self, path: str, reason: Optional[str] = None):
        message = f"I/O error at {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class ArchiveExtractionError(ResolutionError):
    """An archive could not be extracted."""

    def __init__(self, archive_path: str, reason: str):
        super().__init__(f"Failed to extract {archive_path}: {reason}")
        self.archive_path = archive_path
