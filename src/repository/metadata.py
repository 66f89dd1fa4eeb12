"""Reader for the per-artifact ``maven-metadata.xml`` version index."""
from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional

from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)


@dataclass
class MavenMetadata:
    """Versions known to a repository for one groupId:artifactId."""
    versions: List[str] = field(default_factory=list)
    latest: Optional[str] = None
    release: Optional[str] = None


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element, name: str) -> Optional[ET.Element]:
    for child in elem:
        if _local(child.tag) == name:
            return child
    return None


def _text(elem: Optional[ET.Element]) -> Optional[str]:
    if elem is None or not isinstance(elem.text, str) or not elem.text.strip():
        return None
    return elem.text.strip()


def parse_metadata(text: str) -> MavenMetadata:
    """Parse metadata XML content.

    Raises:
        ET.ParseError: The content is not XML.
    """
    root = ET.fromstring(text)
    meta = MavenMetadata()
    versioning = _child(root, "versioning")
    if versioning is None:
        # Single-version metadata files only carry <version>
        single = _text(_child(root, "version"))
        if single:
            meta.versions.append(single)
        return meta
    meta.latest = _text(_child(versioning, "latest"))
    meta.release = _text(_child(versioning, "release"))
    versions_elem = _child(versioning, "versions")
    if versions_elem is not None:
        for item in versions_elem:
            value = _text(item) if _local(item.tag) == "version" else None
            if value and value not in meta.versions:
                meta.versions.append(value)
    return meta


def read_metadata(path: str) -> Optional[MavenMetadata]:
    """Load a metadata index from disk.

    Returns None when the file is absent or unreadable; the caller then
    falls back to listing version directories.
    """
    if not os.path.isfile(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return parse_metadata(fh.read())
    except (OSError, UnicodeDecodeError, ET.ParseError) as exc:
        if is_debug_enabled(logger):
            logger.debug("Unusable metadata index", extra=extra_context(
                event="anomaly", component="metadata", action="read_metadata",
                outcome="unreadable", target=path, error=str(exc)
            ))
        return None
