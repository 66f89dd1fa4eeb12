"""Fixtures building on-disk Maven repositories for resolver tests."""
from __future__ import annotations

import os
import zipfile
from typing import Iterable, Optional, Sequence

import pytest

from constants import Constants


def pom_xml(group: str, artifact: str, version: str, deps: Sequence[dict] = (),
            management: Sequence[dict] = (), packaging: Optional[str] = None,
            namespace: bool = True) -> str:
    """Render a minimal POM. Each dep dict takes g, a, v and optional type, scope, optional, exclusions."""

    def render(dep):
        parts = [f"<groupId>{dep['g']}</groupId>", f"<artifactId>{dep['a']}</artifactId>"]
        if dep.get("v"):
            parts.append(f"<version>{dep['v']}</version>")
        if dep.get("type"):
            parts.append(f"<type>{dep['type']}</type>")
        if dep.get("scope"):
            parts.append(f"<scope>{dep['scope']}</scope>")
        if dep.get("optional"):
            parts.append("<optional>true</optional>")
        if dep.get("exclusions"):
            excl = "".join(
                f"<exclusion><groupId>{g}</groupId><artifactId>{a}</artifactId></exclusion>"
                for g, a in dep["exclusions"]
            )
            parts.append(f"<exclusions>{excl}</exclusions>")
        return "<dependency>" + "".join(parts) + "</dependency>"

    xmlns = ' xmlns="http://maven.apache.org/POM/4.0.0"' if namespace else ""
    body = [
        f"<groupId>{group}</groupId>",
        f"<artifactId>{artifact}</artifactId>",
        f"<version>{version}</version>",
    ]
    if packaging:
        body.append(f"<packaging>{packaging}</packaging>")
    if management:
        body.append(
            "<dependencyManagement><dependencies>"
            + "".join(render(d) for d in management)
            + "</dependencies></dependencyManagement>"
        )
    if deps:
        body.append("<dependencies>" + "".join(render(d) for d in deps) + "</dependencies>")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<project{xmlns}>' + "".join(body) + "</project>\n"


def write_aar(path: str, entries: Optional[dict] = None) -> str:
    """Write a zip archive with the given name -> bytes entries."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    entries = entries or {"AndroidManifest.xml": b"<manifest/>", "classes.jar": b"PK"}
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


class RepoBuilder:
    """Creates ``<root>/<group-path>/<artifact>/<version>/<artifact>-<version>.<ext>`` trees."""

    def __init__(self, root: str):
        self.root = root

    def artifact_dir(self, group: str, artifact: str) -> str:
        return os.path.join(self.root, group.replace(".", "/"), artifact)

    def base(self, group: str, artifact: str, version: str) -> str:
        return os.path.join(self.artifact_dir(group, artifact), version, f"{artifact}-{version}")

    def add(self, group: str, artifact: str, version: str, ext: str = "jar",
            deps: Sequence[dict] = (), management: Sequence[dict] = (),
            with_pom: bool = True) -> str:
        base = self.base(group, artifact, version)
        os.makedirs(os.path.dirname(base), exist_ok=True)
        if with_pom:
            with open(base + ".pom", "w", encoding="utf-8") as fh:
                fh.write(pom_xml(group, artifact, version, deps=deps, management=management,
                                 packaging=None if ext == "jar" else ext))
        if ext == "jar":
            with open(base + ".jar", "wb") as fh:
                fh.write(b"PK")
            return base + ".jar"
        if ext == "aar":
            return write_aar(base + ".aar")
        return base + "." + ext

    def add_metadata(self, group: str, artifact: str, versions: Iterable[str]) -> str:
        path = os.path.join(self.artifact_dir(group, artifact), Constants.METADATA_FILE)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        items = "".join(f"<version>{v}</version>" for v in versions)
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(
                "<metadata><groupId>{}</groupId><artifactId>{}</artifactId>"
                "<versioning><versions>{}</versions></versioning></metadata>".format(group, artifact, items)
            )
        return path


@pytest.fixture
def m2repo(tmp_path):
    """Empty default cache repository."""
    root = tmp_path / "m2"
    root.mkdir()
    return RepoBuilder(str(root))


@pytest.fixture(autouse=True)
def _isolate_constants(monkeypatch):
    """Keep Constants overrides and env vars from leaking between tests."""
    monkeypatch.delenv(Constants.ENV_M2_REPOSITORY, raising=False)
    monkeypatch.setattr(Constants, "M2_REPOSITORY", None)
    monkeypatch.setattr(Constants, "EXTRA_REPOSITORIES", [])
    monkeypatch.setattr(Constants, "MAX_DEPTH", 3)
    monkeypatch.setattr(Constants, "EXCLUDED_ARTIFACT_PATTERNS", ["android-all"])
