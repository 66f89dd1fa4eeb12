"""Locates artifacts across flat directories and Maven-layout repositories."""
from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, List, Optional

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants, Packaging, default_repository_path
from repository.archive import ArchiveExtractor
from repository.metadata import read_metadata
from resolver.errors import ArchiveExtractionError, RepositoryIOError
from versioning.matcher import MavenVersionMatcher, VersionMatcher
from versioning.models import Coordinate, DeclaredDependency

logger = logging.getLogger(__name__)

AAR_EXT = ".aar"


def metadata_url(repository_url: str, coordinate: Coordinate) -> str:
    """URL of the metadata index in a remote repository."""
    return f"{repository_url.rstrip('/')}/{coordinate.group_path}/{coordinate.artifact_id}/{Constants.METADATA_FILE}"


def artifact_url(repository_url: str, coordinate: Coordinate, version: str, ext: str) -> str:
    """URL of ``<artifactId>-<version><ext>`` in a remote repository."""
    base = f"{repository_url.rstrip('/')}/{coordinate.group_path}/{coordinate.artifact_id}"
    return f"{base}/{version}/{coordinate.artifact_id}-{version}{ext}"


def version_from_path(artifact_path: str) -> str:
    """Version directory name of an artifact inside a Maven-layout repository."""
    return os.path.basename(os.path.dirname(os.path.normpath(artifact_path)))


class RepositoryLocator:
    """Finds the on-disk form of a dependency.

    Search order: flat override directories (passed per call), configured
    extra repositories, then the default cache repository.
    """

    def __init__(self, default_root: Optional[str] = None,
                 extra_roots: Optional[Iterable[str]] = None,
                 matcher: Optional[VersionMatcher] = None,
                 extractor: Optional[ArchiveExtractor] = None):
        self._default_root = default_root
        self._extra_roots = list(extra_roots) if extra_roots is not None else None
        self.matcher = matcher or MavenVersionMatcher()
        self.extractor = extractor or ArchiveExtractor()

    @property
    def default_root(self) -> str:
        return self._default_root or default_repository_path()

    def repository_roots(self) -> List[str]:
        """Maven-layout roots in search order, default cache last."""
        extra = self._extra_roots if self._extra_roots is not None else Constants.EXTRA_REPOSITORIES
        roots = [r.strip() for r in extra if r and r.strip()]
        roots.append(self.default_root)
        return roots

    def metadata_path(self, coordinate: Coordinate) -> str:
        return os.path.join(self.default_root, coordinate.group_path, coordinate.artifact_id,
                            Constants.METADATA_FILE)

    def artifact_path(self, coordinate: Coordinate, version: str, ext: str) -> str:
        return os.path.join(self.default_root, coordinate.group_path, coordinate.artifact_id,
                            version, f"{coordinate.artifact_id}-{version}{ext}")

    # Flat repositories

    def locate_flat(self, flat_dir: str, artifact_id: str, version: Optional[str]) -> Optional[str]:
        """Find an ``.aar`` for ``artifact_id`` in a flat directory.

        Tries ``<artifactId>.aar`` first, then ``<artifactId>-<v>.aar`` files
        whose ``<v>`` the matcher selects. groupId plays no part here.
        """
        exact = os.path.join(flat_dir, artifact_id + AAR_EXT)
        if os.path.exists(exact):
            return exact
        try:
            names = sorted(os.listdir(flat_dir))
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise RepositoryIOError(flat_dir, str(exc)) from exc

        prefix = artifact_id + "-"
        by_version: Dict[str, str] = {}
        for name in names:
            if name.startswith(prefix) and name.endswith(AAR_EXT):
                candidate = name[len(prefix):-len(AAR_EXT)]
                if candidate and self.matcher.matches(candidate, version):
                    by_version.setdefault(candidate, name)
        best = self.matcher.best_match(version, by_version.keys())
        if best is None:
            return None
        return os.path.join(flat_dir, by_version[best])

    def lookup_flat(self, flat_repos: Optional[Dict[str, str]], dep: DeclaredDependency) -> Optional[str]:
        """Search flat directories and return the exploded directory of a hit.

        Args:
            flat_repos: Map of flat directory -> cache directory for its exploded archives.
            dep: Dependency to look up.
        """
        if not flat_repos:
            return None
        for flat_dir, cache_dir in flat_repos.items():
            archive = self.locate_flat(flat_dir, dep.artifact_id, dep.version)
            if archive is None:
                continue
            name = os.path.basename(archive)
            exploded = os.path.join(cache_dir, name[: -len(AAR_EXT)] + Constants.EXPLODED_AAR_SUFFIX)
            if self._explode(archive, exploded):
                return exploded
        return None

    # Maven-layout repositories

    def resolve_local_version(self, artifact_dir: str, query: Optional[str]) -> Optional[str]:
        """Pick the concrete version for ``query`` inside ``<root>/<group>/<artifact>``.

        The metadata index is consulted first; when it is missing or lists no
        match the version subdirectories are used instead.
        """
        meta = read_metadata(os.path.join(artifact_dir, Constants.METADATA_FILE))
        if meta is not None:
            found = self.matcher.best_match(query, meta.versions)
            if found is not None:
                return found
        try:
            with os.scandir(artifact_dir) as entries:
                versions = [entry.name for entry in entries if entry.is_dir()]
        except OSError as exc:
            raise RepositoryIOError(artifact_dir, str(exc)) from exc
        return self.matcher.best_match(query, versions)

    def locate_cached(self, root: str, dep: DeclaredDependency) -> Optional[str]:
        """Locate ``dep`` inside one Maven-layout repository root.

        Probe order: ``.pom`` (pom packaging only), ``.jar``, ``.aar``
        directory, ``.exploded.aar`` directory, ``.aar`` file (extracted).
        """
        artifact_dir = os.path.join(root, dep.coordinate.group_path, dep.artifact_id)
        if not os.path.isdir(artifact_dir):
            return None
        version = self.resolve_local_version(artifact_dir, dep.version)
        if version is None:
            if is_debug_enabled(logger):
                logger.debug("No local version matches", extra=extra_context(
                    event="decision", component="locator", action="locate_cached",
                    outcome="no_version", target=str(dep.coordinate), query=dep.version
                ))
            return None

        base = os.path.join(artifact_dir, version, f"{dep.artifact_id}-{version}")
        if dep.packaging == Packaging.POM.value and os.path.isfile(base + ".pom"):
            return base + ".pom"
        if os.path.isfile(base + ".jar"):
            return base + ".jar"
        if os.path.isdir(base + AAR_EXT):
            return base + AAR_EXT
        exploded = base + Constants.EXPLODED_AAR_SUFFIX
        if os.path.isdir(exploded):
            return exploded
        if os.path.isfile(base + AAR_EXT) and self._explode(base + AAR_EXT, exploded):
            return exploded
        return None

    def lookup_cached(self, dep: DeclaredDependency) -> Optional[str]:
        """First hit across the Maven-layout roots."""
        for root in self.repository_roots():
            path = self.locate_cached(root, dep)
            if path is not None:
                return path
        return None

    def _explode(self, archive: str, exploded: str) -> bool:
        try:
            self.extractor.extract(archive, exploded)
        except ArchiveExtractionError as exc:
            logger.warning("%s; treating artifact as absent", exc)
            return False
        return True
