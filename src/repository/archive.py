"""Idempotent extraction of packaged archives into exploded directories."""
from __future__ import annotations

import logging
import os
import shutil
import zipfile

from common.logging_utils import Timer, extra_context, is_debug_enabled
from resolver.errors import ArchiveExtractionError

logger = logging.getLogger(__name__)


def is_fresh(archive_path: str, out_dir: str) -> bool:
    """Return True when ``out_dir`` already holds an up-to-date extraction.

    Fresh means the directory exists, is non-empty and no regular file in it
    is older than the archive.
    """
    if not os.path.isdir(out_dir) or not os.listdir(out_dir):
        return False
    archive_mtime = os.path.getmtime(archive_path)
    for root, _, files in os.walk(out_dir):
        for name in files:
            if os.path.getmtime(os.path.join(root, name)) < archive_mtime:
                return False
    return True


class ArchiveExtractor:
    """Extracts ``.aar`` (zip) archives, skipping work when already fresh."""

    def __init__(self) -> None:
        self.extract_count = 0

    def extract(self, archive_path: str, out_dir: str) -> bool:
        """Extract ``archive_path`` into ``out_dir``.

        Args:
            archive_path: Path of the archive file.
            out_dir: Target directory, replaced when stale.

        Returns:
            True when an extraction happened, False when the output was fresh.

        Raises:
            ArchiveExtractionError: The archive is unreadable or unsafe.
        """
        try:
            if is_fresh(archive_path, out_dir):
                if is_debug_enabled(logger):
                    logger.debug("Exploded archive is fresh", extra=extra_context(
                        event="decision", component="archive", action="extract",
                        outcome="fresh", target=out_dir
                    ))
                return False
        except OSError as exc:
            raise ArchiveExtractionError(archive_path, str(exc)) from exc

        with Timer() as timer:
            try:
                if os.path.isdir(out_dir):
                    shutil.rmtree(out_dir)
                os.makedirs(out_dir, exist_ok=True)
                with zipfile.ZipFile(archive_path) as zf:
                    self._check_members(zf, out_dir, archive_path)
                    zf.extractall(out_dir)
            except ArchiveExtractionError:
                shutil.rmtree(out_dir, ignore_errors=True)
                raise
            except (OSError, zipfile.BadZipFile) as exc:
                shutil.rmtree(out_dir, ignore_errors=True)
                raise ArchiveExtractionError(archive_path, str(exc)) from exc

        self.extract_count += 1
        logger.info("Extracted archive %s", archive_path)
        if is_debug_enabled(logger):
            logger.debug("Archive extracted", extra=extra_context(
                event="function_exit", component="archive", action="extract",
                outcome="extracted", target=out_dir, duration_ms=timer.duration_ms()
            ))
        return True

    @staticmethod
    def _check_members(zf: zipfile.ZipFile, out_dir: str, archive_path: str) -> None:
        base = os.path.realpath(out_dir)
        for member in zf.namelist():
            target = os.path.realpath(os.path.join(base, member))
            if target != base and not target.startswith(base + os.sep):
                raise ArchiveExtractionError(archive_path, f"member escapes output dir: {member}")
