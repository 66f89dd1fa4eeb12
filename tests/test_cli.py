"""Tests for the m2resolve command line."""

import json
import os

import pytest

from conftest import pom_xml, write_aar
from constants import ExitCodes
from m2resolve import main, parse_flat_dirs


@pytest.fixture(autouse=True)
def _workdir(tmp_path, monkeypatch):
    """Run from an empty directory so no stray config file is picked up."""
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(work))


def test_parse_flat_dirs():
    assert parse_flat_dirs(["libs=build/flat", "vendor", " = x"]) == {
        "libs": "build/flat",
        "vendor": os.path.join("vendor", ".exploded"),
    }
    assert parse_flat_dirs(None) == {}


def test_package_resolution_prints_paths(m2repo, capsys):
    jar = m2repo.add("com.example", "app", "1.0", deps=[{"g": "com.example", "a": "core", "v": "2.0"}])
    core = m2repo.add("com.example", "core", "2.0")

    code = main(["-p", "com.example:app:1.0", "--repository", m2repo.root])

    assert code == ExitCodes.SUCCESS.value
    assert capsys.readouterr().out.splitlines() == [jar, core]


def test_missing_sets_exit_code(m2repo, capsys):
    m2repo.add("com.example", "app", "1.0")

    code = main(["-p", "com.example:app:1.0", "-p", "com.example:gone:1.0",
                 "--repository", m2repo.root, "--missing"])

    assert code == ExitCodes.EXIT_MISSING.value
    assert capsys.readouterr().out.splitlines() == ["missing: com.example:gone:1.0:jar"]


def test_directory_with_json_output(m2repo, tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    (project / "pom.xml").write_text(pom_xml(
        "com.example", "project", "0.1",
        deps=[{"g": "com.example", "a": "widget", "v": "1.0", "type": "aar"}],
    ))
    flat = tmp_path / "libs"
    write_aar(str(flat / "widget-1.0.aar"))
    out = tmp_path / "result.json"

    code = main(["-d", str(project), "--repository", m2repo.root,
                 "--flat-dir", f"{flat}={tmp_path / 'cache'}", "-o", str(out)])

    assert code == ExitCodes.SUCCESS.value
    data = json.loads(out.read_text())
    assert data["missing"] == []
    assert data["resolved"] == [os.path.join(str(tmp_path / "cache"), "widget-1.0.exploded.aar")]


def test_directory_without_pom_exits(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        main(["-d", str(tmp_path)])
    assert exc_info.value.code == ExitCodes.FILE_ERROR.value


def test_bad_coordinate(m2repo):
    assert main(["-p", "justone", "--repository", m2repo.root]) == ExitCodes.FILE_ERROR.value


def test_malformed_descriptor_is_resolution_error(m2repo):
    jar = m2repo.add("com.example", "broken", "1.0")
    with open(jar[:-4] + ".pom", "w", encoding="utf-8") as fh:
        fh.write("<project>")

    code = main(["-p", "com.example:broken:1.0", "--repository", m2repo.root])
    assert code == ExitCodes.RESOLUTION_ERROR.value


def test_refresh_deletes_repository(m2repo):
    m2repo.add("com.example", "app", "1.0")

    code = main(["-p", "com.example:app:1.0", "--repository", m2repo.root, "--refresh"])

    assert code == ExitCodes.EXIT_MISSING.value
    assert not os.path.exists(m2repo.root)


def test_depth_from_config_file(m2repo, capsys):
    app = m2repo.add("com.example", "app", "1.0", deps=[{"g": "com.example", "a": "core", "v": "1.0"}])
    m2repo.add("com.example", "core", "1.0")
    with open("m2resolve.yml", "w", encoding="utf-8") as fh:
        fh.write(f"resolver:\n  max_depth: 0\n  m2_repository: {m2repo.root}\n")

    assert main(["-p", "com.example:app:1.0"]) == ExitCodes.SUCCESS.value
    assert capsys.readouterr().out.splitlines() == [app]
