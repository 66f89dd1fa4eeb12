"""Tests for idempotent archive extraction."""

import os
import zipfile

import pytest

from conftest import write_aar
from repository.archive import ArchiveExtractor, is_fresh
from resolver.errors import ArchiveExtractionError, ResolutionError


def test_extracts_into_out_dir(tmp_path):
    archive = write_aar(str(tmp_path / "lib.aar"), {"classes.jar": b"x", "res/values/v.xml": b"<r/>"})
    out_dir = str(tmp_path / "lib.exploded.aar")
    extractor = ArchiveExtractor()

    assert extractor.extract(archive, out_dir) is True
    assert os.path.isfile(os.path.join(out_dir, "classes.jar"))
    assert os.path.isfile(os.path.join(out_dir, "res", "values", "v.xml"))
    assert extractor.extract_count == 1


def test_second_call_is_noop(tmp_path):
    archive = write_aar(str(tmp_path / "lib.aar"))
    out_dir = str(tmp_path / "out")
    extractor = ArchiveExtractor()

    extractor.extract(archive, out_dir)
    assert extractor.extract(archive, out_dir) is False
    assert extractor.extract_count == 1


def test_stale_output_is_replaced(tmp_path):
    archive = write_aar(str(tmp_path / "lib.aar"), {"new.txt": b"new"})
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    stale = out_dir / "old.txt"
    stale.write_text("old")
    archive_mtime = os.path.getmtime(archive)
    os.utime(stale, (archive_mtime - 100, archive_mtime - 100))

    assert not is_fresh(archive, str(out_dir))
    assert ArchiveExtractor().extract(archive, str(out_dir)) is True
    assert not stale.exists()
    assert (out_dir / "new.txt").read_bytes() == b"new"


def test_empty_out_dir_is_not_fresh(tmp_path):
    archive = write_aar(str(tmp_path / "lib.aar"))
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    assert not is_fresh(archive, str(out_dir))


def test_corrupt_archive_raises(tmp_path):
    archive = tmp_path / "broken.aar"
    archive.write_bytes(b"not a zip")
    out_dir = tmp_path / "out"

    with pytest.raises(ArchiveExtractionError) as exc_info:
        ArchiveExtractor().extract(str(archive), str(out_dir))
    assert isinstance(exc_info.value, ResolutionError)
    assert str(archive) in str(exc_info.value)
    assert not out_dir.exists()


def test_rejects_member_escaping_out_dir(tmp_path):
    archive = tmp_path / "evil.aar"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("../escape.txt", b"x")

    with pytest.raises(ArchiveExtractionError):
        ArchiveExtractor().extract(str(archive), str(tmp_path / "out"))
    assert not (tmp_path / "escape.txt").exists()
