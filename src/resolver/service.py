"""Transitive dependency resolution over local repositories.

The resolver expands declared dependencies through their POM descriptors up
to a fixed depth. Versions are mediated by a VersionRegistry (highest wins,
dependency management only raises the floor) and artifact lookups are
memoized in a PathCache, so one instance should live as long as the
repositories it reads stay unchanged. Call ``reset()`` after the cache
repository is modified.
"""
from __future__ import annotations

import logging
import os
import shutil
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple, Union

from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from repository.locator import RepositoryLocator, version_from_path
from repository.pom import DescriptorCache
from resolver.errors import ResolutionError
from resolver.path_cache import PathCache
from resolver.registry import VersionRegistry
from versioning.models import (
    Coordinate,
    DeclaredDependency,
    ResolutionResult,
    is_excluded,
)

logger = logging.getLogger(__name__)

ArtifactFilter = Callable[[DeclaredDependency], bool]
FlatRepos = Optional[Dict[str, str]]
DepsArg = Union[DeclaredDependency, Iterable[DeclaredDependency]]


def make_artifact_filter(patterns: Optional[Iterable[str]] = None) -> ArtifactFilter:
    """Build a predicate dropping children whose artifactId contains any pattern."""
    fixed = None if patterns is None else [p for p in patterns if p]

    def _filter(dep: DeclaredDependency) -> bool:
        active = fixed if fixed is not None else Constants.EXCLUDED_ARTIFACT_PATTERNS
        return any(p in dep.artifact_id for p in active)

    return _filter


@dataclass
class _Pass:
    """State of one public call."""
    flat_repos: FlatRepos
    register_found: bool = False
    result: ResolutionResult = field(default_factory=ResolutionResult)
    seen: Set[str] = field(default_factory=set)
    # path -> (remaining depth, exclusions) of every expansion so far
    expanded: Dict[str, List[Tuple[int, FrozenSet[Coordinate]]]] = field(default_factory=dict)
    missing_ids: Set[str] = field(default_factory=set)

    def add_path(self, path: str) -> None:
        if path not in self.seen:
            self.seen.add(path)
            self.result.resolved_paths.append(path)

    def covers(self, path: str, depth: int, exclusions: FrozenSet[Coordinate]) -> bool:
        """True when an earlier expansion reached as deep with no more exclusions."""
        return any(d >= depth and used <= exclusions for d, used in self.expanded.get(path, ()))

    def mark_expanded(self, path: str, depth: int, exclusions: FrozenSet[Coordinate]) -> None:
        self.expanded.setdefault(path, []).append((depth, exclusions))

    def add_missing(self, dep: DeclaredDependency) -> None:
        if dep.identity not in self.missing_ids:
            self.missing_ids.add(dep.identity)
            self.result.missing.append(dep)


class DependencyResolver:
    """Resolves declared dependencies into their transitive closure.

    Not re-entrant across threads by design of its caches; a single coarse
    lock serializes every public call including ``reset()``.
    """

    def __init__(self, locator: Optional[RepositoryLocator] = None,
                 descriptors: Optional[DescriptorCache] = None,
                 registry: Optional[VersionRegistry] = None,
                 path_cache: Optional[PathCache] = None,
                 max_depth: Optional[int] = None,
                 artifact_filter: Optional[ArtifactFilter] = None):
        self.locator = locator or RepositoryLocator()
        self.descriptors = descriptors or DescriptorCache()
        self.registry = registry or VersionRegistry()
        self.path_cache = path_cache or PathCache()
        self.max_depth = max_depth
        self.artifact_filter = artifact_filter or make_artifact_filter()
        self._lock = threading.RLock()

    def _depth(self, max_depth: Optional[int]) -> int:
        if max_depth is not None:
            return max_depth
        if self.max_depth is not None:
            return self.max_depth
        return Constants.MAX_DEPTH

    # Public entry points

    def resolve_transitive_closure(self, declared: DepsArg, max_depth: Optional[int] = None,
                                   flat_repos: FlatRepos = None) -> ResolutionResult:
        """Resolve every declared dependency and its descendants.

        Args:
            declared: Dependencies from the build descriptor.
            max_depth: Levels of descriptors to expand; 0 resolves only ``declared``.
            flat_repos: Flat directory -> exploded-archive cache directory map.

        Returns:
            Located artifact paths in discovery order and the dependencies that
            could not be located.

        Raises:
            DescriptorParseError: A located artifact has a malformed POM.
            RepositoryIOError: A repository could not be read.
        """
        deps = _as_list(declared)
        depth = self._depth(max_depth)
        with self._lock:
            ctx = _Pass(flat_repos=flat_repos)
            with Timer() as timer:
                # Declared versions compete before any lookup so the highest wins
                for dep in deps:
                    self.registry.register_or_upgrade(dep)
                for dep in deps:
                    self._run(dep, depth, ctx)
            logger.info(
                "Resolved %d artifact(s), %d missing",
                len(ctx.result.resolved_paths), len(ctx.result.missing),
            )
            if is_debug_enabled(logger):
                logger.debug("Resolution finished", extra=extra_context(
                    event="function_exit", component="resolver", action="resolve_transitive_closure",
                    outcome="complete" if ctx.result.complete else "incomplete",
                    count=len(ctx.result.resolved_paths), duration_ms=timer.duration_ms()
                ))
            return ctx.result

    def list_missing(self, declared: DepsArg, flat_repos: FlatRepos = None) -> List[DeclaredDependency]:
        """Dependencies in the closure that are not available locally."""
        return self.resolve_transitive_closure(declared, flat_repos=flat_repos).missing

    def resolve_paths(self, declared: DepsArg, flat_repos: FlatRepos = None) -> List[str]:
        """Artifact paths of the closure, as used for a compile classpath."""
        return self.resolve_transitive_closure(declared, flat_repos=flat_repos).resolved_paths

    def resolve_dependency_tree(self, artifact_path: str, flat_repos: FlatRepos = None,
                                max_depth: Optional[int] = None) -> List[str]:
        """Closure starting from an already located artifact path, itself included."""
        depth = self._depth(max_depth)
        with self._lock:
            ctx = _Pass(flat_repos=flat_repos)
            ctx.add_path(artifact_path)
            self._expand(artifact_path, depth, ctx, frozenset())
            return ctx.result.resolved_paths

    def register_declared(self, declared: DepsArg, max_depth: Optional[int] = None) -> None:
        """Register dependencies at the versions actually present in the cache.

        Only Maven-layout repositories are consulted. Descendants are expanded
        the same way so the registry reflects the cached closure.
        """
        depth = self._depth(max_depth)
        with self._lock:
            ctx = _Pass(flat_repos=None, register_found=True)
            for dep in _as_list(declared):
                self._run(dep, depth, ctx)

    def locate(self, dep: DeclaredDependency, flat_repos: FlatRepos = None) -> Optional[str]:
        """Path of ``dep`` at its canonical version, or None."""
        with self._lock:
            node = self.registry.canonicalize(dep)
            return self._lookup(node.as_dependency(), flat_repos)

    def exists_locally(self, dep: DeclaredDependency, flat_repos: FlatRepos = None) -> bool:
        return self.locate(dep, flat_repos) is not None

    def reset(self) -> None:
        """Forget every registered version, located path and parsed descriptor."""
        with self._lock:
            self.registry.clear()
            self.path_cache.clear()
            self.descriptors.clear()

    def reset_paths(self) -> None:
        with self._lock:
            self.path_cache.clear()

    def reset_registry(self) -> None:
        with self._lock:
            self.registry.clear()

    def refresh_cache(self) -> None:
        """Reset all caches and delete the default cache repository."""
        with self._lock:
            self.reset()
            root = self.locator.default_root
            if os.path.isdir(root):
                logger.info("Deleting cache repository %s", root)
                shutil.rmtree(root)

    # Internals

    def _run(self, dep: DeclaredDependency, depth: int, ctx: _Pass) -> None:
        try:
            self._resolve(dep, depth, ctx, frozenset())
        except ResolutionError:
            logger.error("Resolution of %s aborted", dep)
            raise

    def _lookup(self, dep: DeclaredDependency, flat_repos: FlatRepos) -> Optional[str]:
        flat = self.locator.lookup_flat(flat_repos, dep)
        if flat is not None:
            return flat
        hit, path = self.path_cache.lookup(dep)
        if hit:
            return path
        path = self.locator.lookup_cached(dep)
        self.path_cache.store(dep, path)
        if path is None and is_debug_enabled(logger):
            logger.debug("Artifact not found", extra=extra_context(
                event="decision", component="resolver", action="lookup",
                outcome="absent", target=dep.identity
            ))
        return path

    def _resolve(self, dep: DeclaredDependency, depth: int, ctx: _Pass,
                 inherited: FrozenSet[Coordinate]) -> None:
        if ctx.register_found:
            path = self._lookup(dep, None)
        else:
            node = self.registry.canonicalize(dep)
            path = self._lookup(node.as_dependency(), ctx.flat_repos)

        if path is None:
            ctx.add_missing(dep)
            return
        if ctx.register_found:
            self.registry.register_or_upgrade(dep, version_from_path(path))

        ctx.add_path(path)
        excluded = frozenset(inherited | dep.exclusions)
        if depth < 1 or ctx.covers(path, depth, excluded):
            return
        self._expand(path, depth, ctx, excluded)

    def _expand(self, path: str, depth: int, ctx: _Pass, excluded: FrozenSet[Coordinate]) -> None:
        ctx.mark_expanded(path, depth, excluded)
        descriptor = self.descriptors.load(path)

        # Management entries only raise version floors
        for managed in descriptor.dependency_management:
            self.registry.register_or_upgrade(managed)

        for child in descriptor.dependencies:
            if is_excluded(child.coordinate, excluded):
                continue
            if self.artifact_filter(child):
                continue
            self._resolve(child, depth - 1, ctx, excluded)


def _as_list(declared: DepsArg) -> List[DeclaredDependency]:
    if isinstance(declared, DeclaredDependency):
        return [declared]
    return list(declared)
