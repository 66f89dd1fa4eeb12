"""POM descriptor parsing and the per-path descriptor cache."""
from __future__ import annotations

import logging
import os
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants, Packaging
from resolver.errors import DescriptorParseError, RepositoryIOError
from versioning.models import Coordinate, DeclaredDependency, Descriptor

logger = logging.getLogger(__name__)

_PROPERTY_RE = re.compile(r"\$\{([^}]+)\}")


def descriptor_path_for(artifact_path: str) -> str:
    """Return the ``.pom`` path that sits next to a resolved artifact.

    ``.exploded.aar`` directories drop their 13-character suffix, any other
    artifact drops its 4-character extension.
    """
    if artifact_path.endswith(Constants.EXPLODED_AAR_SUFFIX):
        return artifact_path[: -len(Constants.EXPLODED_AAR_SUFFIX)] + ".pom"
    return artifact_path[:-4] + ".pom"


def _local(tag) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def _child(elem: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    if elem is None:
        return None
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _children(elem: Optional[ET.Element], name: str) -> List[ET.Element]:
    if elem is None:
        return []
    return [child for child in elem if _local(child.tag) == name]


def _text(elem: Optional[ET.Element]) -> Optional[str]:
    if elem is None or not isinstance(elem.text, str):
        return None
    value = elem.text.strip()
    return value or None


def _resolve_property(value: Optional[str], properties: Dict[str, str]) -> Optional[str]:
    """Substitute ``${name}`` placeholders; unknown properties are left as-is."""
    if value is None:
        return None

    def repl(match):
        return properties.get(match.group(1), match.group(0))

    # Properties may reference other properties
    for _ in range(5):
        resolved = _PROPERTY_RE.sub(repl, value)
        if resolved == value:
            break
        value = resolved
    return value


def _collect_properties(root: ET.Element, group_id: Optional[str], artifact_id: Optional[str],
                        version: Optional[str], parent: Optional[ET.Element]) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    props_elem = _child(root, "properties")
    if props_elem is not None:
        for prop in props_elem:
            name = _local(prop.tag)
            if name:
                properties[name] = (prop.text or "").strip()
    builtins = {
        "project.groupId": group_id,
        "project.artifactId": artifact_id,
        "project.version": version,
        "pom.groupId": group_id,
        "pom.version": version,
        "groupId": group_id,
        "version": version,
        "project.parent.groupId": _text(_child(parent, "groupId")),
        "project.parent.version": _text(_child(parent, "version")),
        "parent.version": _text(_child(parent, "version")),
    }
    for key, value in builtins.items():
        if value is not None:
            properties.setdefault(key, value)
    return properties


def _parse_exclusions(dep_elem: ET.Element, properties: Dict[str, str]) -> frozenset:
    excluded = set()
    for excl in _children(_child(dep_elem, "exclusions"), "exclusion"):
        group = _resolve_property(_text(_child(excl, "groupId")), properties)
        artifact = _resolve_property(_text(_child(excl, "artifactId")), properties)
        if group and artifact:
            excluded.add(Coordinate(group, artifact))
    return frozenset(excluded)


def _parse_dependency(dep_elem: ET.Element, properties: Dict[str, str]) -> Optional[DeclaredDependency]:
    group = _resolve_property(_text(_child(dep_elem, "groupId")), properties)
    artifact = _resolve_property(_text(_child(dep_elem, "artifactId")), properties)
    if not group or not artifact:
        return None
    version = _resolve_property(_text(_child(dep_elem, "version")), properties)
    packaging = _resolve_property(_text(_child(dep_elem, "type")), properties) or Packaging.JAR.value
    return DeclaredDependency(
        group_id=group,
        artifact_id=artifact,
        version=version,
        packaging=packaging,
        exclusions=_parse_exclusions(dep_elem, properties),
    )


def _is_skipped(dep_elem: ET.Element, properties: Dict[str, str]) -> bool:
    scope = (_resolve_property(_text(_child(dep_elem, "scope")), properties) or "").lower()
    if scope in Constants.SKIPPED_SCOPES:
        return True
    optional = (_resolve_property(_text(_child(dep_elem, "optional")), properties) or "").lower()
    return optional == "true"


def parse_descriptor(text: str, source: str = "<string>") -> Descriptor:
    """Parse POM XML text into a Descriptor.

    Args:
        text: POM content.
        source: Path used in error messages.

    Raises:
        DescriptorParseError: The content is not well-formed XML or not a project.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise DescriptorParseError(source, str(exc)) from exc
    if _local(root.tag) != "project":
        raise DescriptorParseError(source, f"unexpected root element <{_local(root.tag)}>")

    parent = _child(root, "parent")
    artifact_id = _text(_child(root, "artifactId"))
    group_id = _text(_child(root, "groupId")) or _text(_child(parent, "groupId"))
    version = _text(_child(root, "version")) or _text(_child(parent, "version"))
    properties = _collect_properties(root, group_id, artifact_id, version, parent)
    packaging = _resolve_property(_text(_child(root, "packaging")), properties) or Packaging.JAR.value

    descriptor = Descriptor()
    if group_id and artifact_id:
        descriptor.project = DeclaredDependency(
            group_id=_resolve_property(group_id, properties),
            artifact_id=_resolve_property(artifact_id, properties),
            version=_resolve_property(version, properties),
            packaging=packaging,
        )

    managed = _child(_child(root, "dependencyManagement"), "dependencies")
    for dep_elem in _children(managed, "dependency"):
        dep = _parse_dependency(dep_elem, properties)
        if dep is not None and dep.version:
            descriptor.dependency_management.append(dep)
    managed_versions = {d.coordinate: d.version for d in descriptor.dependency_management}

    for dep_elem in _children(_child(root, "dependencies"), "dependency"):
        if _is_skipped(dep_elem, properties):
            continue
        dep = _parse_dependency(dep_elem, properties)
        if dep is None:
            continue
        if dep.version is None and dep.coordinate in managed_versions:
            dep = DeclaredDependency(
                group_id=dep.group_id,
                artifact_id=dep.artifact_id,
                version=managed_versions[dep.coordinate],
                packaging=dep.packaging,
                exclusions=dep.exclusions,
            )
        descriptor.dependencies.append(dep)
    return descriptor


def read_descriptor(path: str) -> Descriptor:
    """Read a POM from disk; a missing file is an empty descriptor."""
    if not os.path.isfile(path):
        if is_debug_enabled(logger):
            logger.debug("No descriptor next to artifact", extra=extra_context(
                event="decision", component="pom", action="read_descriptor",
                outcome="absent", target=path
            ))
        return Descriptor()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except UnicodeDecodeError as exc:
        raise DescriptorParseError(path, str(exc)) from exc
    except OSError as exc:
        raise RepositoryIOError(path, str(exc)) from exc
    return parse_descriptor(text, source=path)


def read_declared_dependencies(pom_path: str) -> List[DeclaredDependency]:
    """Return the dependencies declared by a project ``pom.xml``."""
    return list(read_descriptor(pom_path).dependencies)


class DescriptorCache:
    """Memoizes parsed descriptors by descriptor path."""

    def __init__(self) -> None:
        self._cache: Dict[str, Descriptor] = {}

    def load(self, artifact_path: str) -> Descriptor:
        """Return the descriptor belonging to a resolved artifact path."""
        path = descriptor_path_for(artifact_path)
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        descriptor = read_descriptor(path)
        self._cache[path] = descriptor
        return descriptor

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
