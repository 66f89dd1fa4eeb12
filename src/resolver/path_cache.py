"""Memo of dependency identity -> located artifact path."""

from typing import Dict, Optional, Tuple

from versioning.models import DeclaredDependency


class _Absent:
    """Marker for lookups that already failed."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


class PathCache:
    """Permanent (until ``clear``) cache keyed by ``groupId:artifactId:version:packaging``.

    Stores either an absolute path or ``ABSENT`` so failed probes are not repeated.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, object] = {}

    def lookup(self, dep: DeclaredDependency) -> Tuple[bool, Optional[str]]:
        """Return ``(hit, path)``; a hit with ``path`` None is a known-absent entry."""
        if dep.identity not in self._entries:
            return False, None
        value = self._entries[dep.identity]
        if value is ABSENT:
            return True, None
        return True, value  # type: ignore[return-value]

    def store(self, dep: DeclaredDependency, path: Optional[str]) -> None:
        self._entries[dep.identity] = path if path is not None else ABSENT

    def is_absent(self, dep: DeclaredDependency) -> bool:
        return self._entries.get(dep.identity) is ABSENT

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, dep: object) -> bool:
        return isinstance(dep, DeclaredDependency) and dep.identity in self._entries

    def __len__(self) -> int:
        return len(self._entries)
