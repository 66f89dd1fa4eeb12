"""Version query matching against locally available versions.

Supported query grammar:

* ``None``/empty, ``latest``, ``+``: highest candidate
* ``release``: highest candidate that is not a ``-SNAPSHOT``
* exact version: that version when present
* prefix wildcard ``1.2.+``, ``1.2+``, ``1.2.*``: highest candidate starting with the
  text before the wildcard. As in Gradle this is a plain string prefix, so
  ``1.2+`` also accepts ``1.20`` while ``1.2.+`` does not
* Maven ranges ``[1.0,2.0)``, ``(,1.5]``, ``[1.2]`` and unions ``[1.0,1.2),[1.5,)``
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from .maven_version import compare_versions, is_snapshot, max_version, parse_version, versions_equal
from .models import QueryMode

_LATEST = {"", "latest", "+", "*"}
_RELEASE = {"release"}


class VersionMatcher(Protocol):
    """Strategy interface consumed by the repository locator."""

    def best_match(self, query: Optional[str], candidates: Iterable[str]) -> Optional[str]:
        ...

    def matches(self, candidate: str, query: Optional[str]) -> bool:
        ...


def determine_query_mode(query: Optional[str]) -> QueryMode:
    """Classify a version query."""
    q = (query or "").strip()
    if q.lower() in _LATEST:
        return QueryMode.LATEST
    if q.lower() in _RELEASE:
        return QueryMode.RELEASE
    if q[:1] in "[(" and q[-1:] in "])":
        return QueryMode.RANGE
    if q.endswith("+") or q.endswith("*"):
        return QueryMode.PREFIX
    return QueryMode.EXACT


class MavenVersionMatcher:
    """Default matcher implementing the grammar in the module docstring."""

    def best_match(self, query: Optional[str], candidates: Iterable[str]) -> Optional[str]:
        """Return the single best candidate for ``query`` or None.

        Args:
            query: Version query token.
            candidates: Locally available version strings.

        Returns:
            The highest matching candidate, or None when nothing satisfies the query.
        """
        pool = [c.strip() for c in candidates if c and c.strip()]
        if not pool:
            return None
        mode = determine_query_mode(query)
        q = (query or "").strip()

        if mode == QueryMode.EXACT:
            if q in pool:
                return q
            # Equivalent spellings such as 1.0 vs 1.0.0
            for c in pool:
                if versions_equal(c, q):
                    return c
            return None
        return max_version(self._filter(mode, q, pool))

    def matches(self, candidate: str, query: Optional[str]) -> bool:
        """True when ``candidate`` satisfies ``query`` on its own."""
        mode = determine_query_mode(query)
        q = (query or "").strip()
        if mode == QueryMode.EXACT:
            return versions_equal(candidate, q)
        return bool(self._filter(mode, q, [candidate]))

    def _filter(self, mode: QueryMode, query: str, pool: List[str]) -> List[str]:
        if mode == QueryMode.LATEST:
            return pool
        if mode == QueryMode.RELEASE:
            return [v for v in pool if not is_snapshot(v)]
        if mode == QueryMode.PREFIX:
            return self._filter_prefix(query, pool)
        if mode == QueryMode.RANGE:
            return self._filter_by_range(query, pool)
        return []

    def _filter_prefix(self, query: str, pool: List[str]) -> List[str]:
        prefix = query.rstrip("+*")
        if not prefix:
            return pool
        return [v for v in pool if v.startswith(prefix)]

    def _filter_by_range(self, range_spec: str, candidates: List[str]) -> List[str]:
        """Filter candidates by a Maven range or union of ranges."""
        matching: List[str] = []
        for part in self._split_ranges(range_spec):
            for v in self._parse_bracket_range(part, candidates):
                if v not in matching:
                    matching.append(v)
        return matching

    def _split_ranges(self, range_spec: str) -> List[str]:
        """Split ``[1.0,2.0),[3.0,4.0]`` into its bracketed ranges."""
        ranges = []
        current = ""
        depth = 0
        for char in range_spec.strip():
            if char in "[(":
                if depth == 0:
                    current = ""
                depth += 1
                current += char
            elif char in "])":
                depth -= 1
                current += char
                if depth == 0:
                    ranges.append(current)
                    current = ""
            elif depth > 0:
                current += char
        return ranges

    def _parse_bracket_range(self, range_spec: str, candidates: List[str]) -> List[str]:
        """Parse one bracket range like ``[1.0,2.0)``, ``(1.0,]`` or ``[1.2]``."""
        inner = range_spec[1:-1] if len(range_spec) >= 2 else ""
        parts = inner.split(",")

        if len(parts) == 1:
            base = parts[0].strip()
            if not base:
                return []
            return [v for v in candidates if versions_equal(v, base)]

        lower_str, upper_str = parts[0].strip(), parts[1].strip()
        if (lower_str and parse_version(lower_str) is None) or (upper_str and parse_version(upper_str) is None):
            return []
        lower_inclusive = range_spec.startswith("[")
        upper_inclusive = range_spec.endswith("]")

        matching = []
        for v in candidates:
            if parse_version(v) is None:
                continue  # Skip invalid versions
            if lower_str:
                cmp = compare_versions(v, lower_str)
                if cmp < 0 or (cmp == 0 and not lower_inclusive):
                    continue
            if upper_str:
                cmp = compare_versions(v, upper_str)
                if cmp > 0 or (cmp == 0 and not upper_inclusive):
                    continue
            matching.append(v)
        return matching
