"""Maven version ordering backed by univers' ComparableVersion port.

Unparseable version strings rank below every parseable one and compare as
plain strings among themselves; a missing version ranks lowest of all.
"""
from __future__ import annotations

import functools
import logging
from typing import Iterable, List, Optional

from univers.versions import InvalidVersion, MavenVersion

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=4096)
def parse_version(raw: str) -> Optional[MavenVersion]:
    """Return the parsed version, or None when ``raw`` is not a Maven version."""
    try:
        return MavenVersion(raw.strip())
    except (InvalidVersion, ValueError, TypeError):
        logger.debug("Unparseable version %r", raw)
        return None


def compare_versions(left: Optional[str], right: Optional[str]) -> int:
    """Return -1, 0 or 1 ordering ``left`` against ``right``."""
    if left is None or right is None:
        return (left is not None) - (right is not None)
    lv, rv = parse_version(left), parse_version(right)
    if lv is None or rv is None:
        if lv is not None or rv is not None:
            return 1 if lv is not None else -1
        return (left > right) - (left < right)
    if lv == rv:
        return 0
    return -1 if lv < rv else 1


def versions_equal(left: str, right: str) -> bool:
    """True when both strings spell the same Maven version (``1.0`` and ``1``)."""
    return left == right or compare_versions(left, right) == 0


def is_newer(candidate: Optional[str], existing: Optional[str]) -> bool:
    """True when ``candidate`` is strictly greater than ``existing``."""
    return compare_versions(candidate, existing) > 0


def is_snapshot(version: str) -> bool:
    return version.upper().endswith("-SNAPSHOT")


def sort_versions(versions: Iterable[str], reverse: bool = False) -> List[str]:
    return sorted(versions, key=functools.cmp_to_key(compare_versions), reverse=reverse)


def max_version(versions: Iterable[str]) -> Optional[str]:
    """Highest version; the first one seen wins among equals."""
    best: Optional[str] = None
    for v in versions:
        if best is None or is_newer(v, best):
            best = v
    return best
