# src/batch/scanner.py - v1
"""File scanner: recursive discovery of eligible source files.

A directory that cannot be read is logged and skipped; the scan carries on
with its siblings and returns whatever it found.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from assetmigrator.batch.models import FolderStatistics
from assetmigrator.core.models import FileRecord

if TYPE_CHECKING:
    from assetmigrator.config.settings import Settings

logger = logging.getLogger(__name__)


class ScanError(Exception):
    """Raised when the scan root itself is unusable."""


class FileScanner:
    """List files under a root whose extension is allow-listed.

    Discovery order is deterministic: entries of each directory are visited
    in sorted name order, depth-first.
    """

    def __init__(self, allowed_extensions: frozenset[str] | set[str]) -> None:
        self._allowed = frozenset(e.lower().lstrip(".") for e in allowed_extensions)

    @classmethod
    def from_settings(cls, settings: Settings) -> FileScanner:
        return cls(settings.allowed_extensions_set)

    def is_allowed(self, path: Path) -> bool:
        return path.suffix.lower().lstrip(".") in self._allowed

    def scan(self, scan_root: Path) -> list[FileRecord]:
        """Discover all eligible files under scan_root.

        Raises:
            ScanError: If scan_root is not a directory.
        """
        if not scan_root.is_dir():
            raise ScanError(f"Scan root is not a directory: {scan_root}")

        root = scan_root.resolve()
        records: list[FileRecord] = []
        self._walk(root, root, records)

        logger.info("Scanned %s: found %d eligible files", scan_root, len(records))
        return records

    def _walk(self, root: Path, directory: Path, out: list[FileRecord]) -> None:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            logger.error("Error reading folder %s: %s", directory, exc)
            return

        for path in entries:
            try:
                if path.is_dir() and not path.is_symlink():
                    self._walk(root, path, out)
                    continue
                if not path.is_file() or not self.is_allowed(path):
                    continue
                size = path.stat().st_size
            except OSError as exc:
                logger.warning("Skipping unreadable entry %s: %s", path, exc)
                continue

            out.append(
                FileRecord(
                    absolute_path=path,
                    relative_path=path.relative_to(root).as_posix(),
                    file_name=path.name,
                    size_bytes=size,
                )
            )


def count_files(folder: Path) -> int:
    """Count regular files below folder (0 if it does not exist)."""
    if not folder.is_dir():
        return 0
    return sum(1 for p in folder.rglob("*") if p.is_file())


def folder_statistics(settings: Settings) -> FolderStatistics:
    """File counts in the source, processed and failed trees."""
    return FolderStatistics(
        source=count_files(settings.source_folder),
        processed=count_files(settings.processed_folder),
        failed=count_files(settings.failed_folder),
    )
