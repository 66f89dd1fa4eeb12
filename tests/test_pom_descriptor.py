"""Tests for POM descriptor parsing and the descriptor cache."""

import os

import pytest

from conftest import pom_xml
from repository.pom import (
    DescriptorCache,
    descriptor_path_for,
    parse_descriptor,
    read_declared_dependencies,
    read_descriptor,
)
from resolver.errors import DescriptorParseError
from versioning.models import Coordinate


def test_descriptor_path_for():
    assert descriptor_path_for("/r/lib-1.0.exploded.aar") == "/r/lib-1.0.pom"
    assert descriptor_path_for("/r/lib-1.0.jar") == "/r/lib-1.0.pom"
    assert descriptor_path_for("/r/lib-1.0.aar") == "/r/lib-1.0.pom"
    assert descriptor_path_for("/r/lib-1.0.pom") == "/r/lib-1.0.pom"


@pytest.mark.parametrize("namespace", [True, False])
def test_parse_dependencies_and_management(namespace):
    text = pom_xml(
        "com.example", "app", "1.0",
        deps=[
            {"g": "com.example", "a": "core", "v": "2.0", "type": "aar",
             "exclusions": [("org.unwanted", "thing")]},
            {"g": "com.example", "a": "managed"},
        ],
        management=[{"g": "com.example", "a": "managed", "v": "3.1"}],
        namespace=namespace,
    )
    descriptor = parse_descriptor(text)

    assert descriptor.project.identity == "com.example:app:1.0:jar"
    core, managed = descriptor.dependencies
    assert core.packaging == "aar"
    assert core.exclusions == frozenset({Coordinate("org.unwanted", "thing")})
    assert managed.version == "3.1"
    assert [d.identity for d in descriptor.dependency_management] == ["com.example:managed:3.1:jar"]


def test_skips_test_provided_and_optional():
    text = pom_xml("g", "a", "1", deps=[
        {"g": "junit", "a": "junit", "v": "4.13", "scope": "test"},
        {"g": "x", "a": "provided", "v": "1", "scope": "provided"},
        {"g": "x", "a": "opt", "v": "1", "optional": True},
        {"g": "x", "a": "kept", "v": "1", "scope": "runtime"},
    ])
    assert [d.artifact_id for d in parse_descriptor(text).dependencies] == ["kept"]


def test_property_substitution_and_parent_inheritance():
    text = """<project xmlns="http://maven.apache.org/POM/4.0.0">
  <parent><groupId>com.parent</groupId><artifactId>parent</artifactId><version>5.0</version></parent>
  <artifactId>child</artifactId>
  <properties><lib.version>1.4</lib.version><alias>${lib.version}</alias></properties>
  <dependencies>
    <dependency><groupId>${project.groupId}</groupId><artifactId>sibling</artifactId><version>${project.version}</version></dependency>
    <dependency><groupId>org.lib</groupId><artifactId>lib</artifactId><version>${alias}</version></dependency>
  </dependencies>
</project>"""
    descriptor = parse_descriptor(text)
    assert descriptor.project.identity == "com.parent:child:5.0:jar"
    assert [d.identity for d in descriptor.dependencies] == [
        "com.parent:sibling:5.0:jar",
        "org.lib:lib:1.4:jar",
    ]


def test_malformed_xml_raises():
    with pytest.raises(DescriptorParseError) as exc_info:
        parse_descriptor("<project><dependencies>", source="/r/bad.pom")
    assert exc_info.value.path == "/r/bad.pom"
    assert exc_info.value.__cause__ is not None


def test_wrong_root_element_raises():
    with pytest.raises(DescriptorParseError):
        parse_descriptor("<metadata/>")


def test_missing_file_is_empty_descriptor(tmp_path):
    descriptor = read_descriptor(str(tmp_path / "absent.pom"))
    assert descriptor.dependencies == []
    assert descriptor.project is None


def test_read_declared_dependencies(tmp_path):
    pom = tmp_path / "pom.xml"
    pom.write_text(pom_xml("com.example", "app", "1.0", deps=[{"g": "a", "a": "b", "v": "1"}]))
    assert [d.identity for d in read_declared_dependencies(str(pom))] == ["a:b:1:jar"]


def test_descriptor_cache_memoizes(tmp_path):
    base = tmp_path / "lib-1.0"
    (tmp_path / "lib-1.0.pom").write_text(pom_xml("g", "lib", "1.0", deps=[{"g": "g", "a": "x", "v": "1"}]))
    cache = DescriptorCache()

    first = cache.load(str(base) + ".jar")
    os.remove(str(base) + ".pom")
    assert cache.load(str(base) + ".exploded.aar") is first
    assert len(cache) == 1

    cache.clear()
    assert cache.load(str(base) + ".jar").dependencies == []
