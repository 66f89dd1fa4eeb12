"""Canonical version per Coordinate."""
from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from versioning.maven_version import is_newer
from versioning.models import Coordinate, DeclaredDependency, ResolvedNode

logger = logging.getLogger(__name__)


class VersionRegistry:
    """Maps each Coordinate to a single ResolvedNode.

    The stored node only ever moves to a strictly higher version; offering an
    equal or lower version keeps the existing node.
    """

    def __init__(self) -> None:
        self._nodes: Dict[Coordinate, ResolvedNode] = {}

    def canonicalize(self, dep: DeclaredDependency) -> ResolvedNode:
        """Return the stored node for ``dep``'s Coordinate, creating it if absent."""
        node = self._nodes.get(dep.coordinate)
        if node is None:
            node = ResolvedNode.wrap(dep)
            self._nodes[dep.coordinate] = node
        return node

    def register_or_upgrade(self, candidate: DeclaredDependency,
                            version: Optional[str] = None) -> ResolvedNode:
        """Insert ``candidate`` or replace the stored node with a newer version.

        Args:
            candidate: Offered dependency.
            version: Version to register instead of ``candidate.version``.

        Returns:
            The node stored after the call.
        """
        offered = version if version is not None else candidate.version
        existing = self._nodes.get(candidate.coordinate)
        if existing is None:
            node = ResolvedNode.wrap(candidate, offered)
            self._nodes[candidate.coordinate] = node
            return node
        if is_newer(offered, existing.version):
            logger.debug("Upgrading %s from %s to %s", candidate.coordinate, existing.version, offered)
            # Only the version moves; packaging and accumulated exclusions stay
            node = ResolvedNode(
                group_id=existing.group_id,
                artifact_id=existing.artifact_id,
                version=offered,
                packaging=existing.packaging,
                exclusions=existing.exclusions | set(candidate.exclusions),
            )
            self._nodes[candidate.coordinate] = node
            return node
        return existing

    def get(self, coordinate: Coordinate) -> Optional[ResolvedNode]:
        return self._nodes.get(coordinate)

    def nodes(self) -> List[ResolvedNode]:
        return list(self._nodes.values())

    def clear(self) -> None:
        self._nodes.clear()

    def __contains__(self, coordinate: object) -> bool:
        return coordinate in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self._nodes)
