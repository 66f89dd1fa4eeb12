"""Data models for Maven coordinates and dependency resolution."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, NamedTuple, Optional, Set

from constants import Packaging


class QueryMode(Enum):
    """How a version query selects among local candidates."""
    EXACT = "exact"
    PREFIX = "prefix"
    RANGE = "range"
    LATEST = "latest"
    RELEASE = "release"


class Coordinate(NamedTuple):
    """Logical package identity independent of version."""
    group_id: str
    artifact_id: str

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def group_path(self) -> str:
        """groupId with dots turned into path separators."""
        return self.group_id.replace(".", "/")


@dataclass(frozen=True)
class DeclaredDependency:
    """A dependency as declared by a build descriptor; never mutated."""
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    packaging: str = Packaging.JAR.value
    exclusions: FrozenSet[Coordinate] = frozenset()

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.group_id, self.artifact_id)

    @property
    def identity(self) -> str:
        """groupId:artifactId:version:packaging, the path cache key."""
        return f"{self.group_id}:{self.artifact_id}:{self.version or ''}:{self.packaging}"

    def __str__(self) -> str:
        return self.identity


@dataclass
class ResolvedNode:
    """Canonical registry entry for a Coordinate."""
    group_id: str
    artifact_id: str
    version: Optional[str]
    packaging: str = Packaging.JAR.value
    exclusions: Set[Coordinate] = field(default_factory=set)

    @classmethod
    def wrap(cls, dep: DeclaredDependency, version: Optional[str] = None) -> "ResolvedNode":
        """Create a node from a declared dependency, optionally pinning another version."""
        return cls(
            group_id=dep.group_id,
            artifact_id=dep.artifact_id,
            version=version if version is not None else dep.version,
            packaging=dep.packaging,
            exclusions=set(dep.exclusions),
        )

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.group_id, self.artifact_id)

    def as_dependency(self) -> DeclaredDependency:
        """Freeze this node back into a lookup key for the path cache."""
        return DeclaredDependency(
            group_id=self.group_id,
            artifact_id=self.artifact_id,
            version=self.version,
            packaging=self.packaging,
            exclusions=frozenset(self.exclusions),
        )


@dataclass
class Descriptor:
    """Parsed package descriptor (POM) of a located artifact.

    Exclusions live on each entry of ``dependencies``.
    """
    project: Optional[DeclaredDependency] = None
    dependencies: List[DeclaredDependency] = field(default_factory=list)
    dependency_management: List[DeclaredDependency] = field(default_factory=list)


@dataclass
class ResolutionResult:
    """Resolution outcome of a transitive closure request."""
    resolved_paths: List[str] = field(default_factory=list)
    missing: List[DeclaredDependency] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing


def is_excluded(coordinate: Coordinate, exclusions: Set[Coordinate]) -> bool:
    """Exclusion check honoring ``*`` wildcards for groupId and artifactId."""
    if not exclusions:
        return False
    return (
        coordinate in exclusions
        or Coordinate(coordinate.group_id, "*") in exclusions
        or Coordinate("*", coordinate.artifact_id) in exclusions
        or Coordinate("*", "*") in exclusions
    )


def parse_coordinate_token(token: str) -> DeclaredDependency:
    """Parse ``groupId:artifactId[:version[:packaging]]`` into a DeclaredDependency.

    Also accepts the Gradle-style ``g:a:v@aar`` packaging suffix.
    """
    raw = token.strip()
    packaging = Packaging.JAR.value
    if "@" in raw:
        raw, packaging = raw.rsplit("@", 1)
    parts = [p.strip() for p in raw.split(":")]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid coordinate: {token!r}")
    version = (parts[2] or None) if len(parts) > 2 else None
    if len(parts) > 3 and parts[3]:
        packaging = parts[3]
    return DeclaredDependency(
        group_id=parts[0],
        artifact_id=parts[1],
        version=version,
        packaging=packaging,
    )
