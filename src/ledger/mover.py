# src/ledger/mover.py - v1
"""Relocate source files once their upload outcome is known.

Successful files go under the processed tree, failed ones under the failed
tree, keeping their root-relative path so equal basenames never collide.
Files rejected for an auth failure stay where they are so a later run with
a fresh credential picks them up again.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from assetmigrator.core.models import FileRecord, UploadOutcome
from assetmigrator.ledger.models import MoveResult

if TYPE_CHECKING:
    from assetmigrator.config.settings import Settings

logger = logging.getLogger(__name__)


class LocalFileMover:
    """Move (or copy, for dry runs) files into processed/ and failed/."""

    def __init__(
        self,
        processed_root: Path,
        failed_root: Path,
        copy: bool = False,
    ) -> None:
        self._processed = processed_root
        self._failed = failed_root
        self._copy = copy

    @classmethod
    def from_settings(cls, settings: Settings, copy: bool = False) -> LocalFileMover:
        return cls(settings.processed_folder, settings.failed_folder, copy=copy)

    def destination_for(self, record: FileRecord, outcome: UploadOutcome) -> Path:
        root = self._processed if outcome.success else self._failed
        return root / record.relative_path

    def settle(self, record: FileRecord, outcome: UploadOutcome) -> MoveResult | None:
        """Move record's file according to outcome.

        Returns None when the file is deliberately left in place. Filesystem
        errors are logged and reported in the result, never raised.
        """
        if outcome.credential_invalid:
            logger.info(
                "Leaving %s in place (credential rejected, retry next run)",
                record.relative_path,
            )
            return None

        destination = _unique(self.destination_for(record, outcome))
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if self._copy:
                shutil.copy2(record.absolute_path, destination)
            else:
                shutil.move(str(record.absolute_path), str(destination))
        except OSError as exc:
            logger.error("Failed to move file %s: %s", record.absolute_path, exc)
            return MoveResult(
                source=record.absolute_path,
                destination=destination,
                ok=False,
                copied=self._copy,
                error=str(exc),
            )

        logger.debug(
            "%s %s -> %s",
            "Copied" if self._copy else "Moved",
            record.relative_path, destination,
        )
        return MoveResult(
            source=record.absolute_path,
            destination=destination,
            ok=True,
            copied=self._copy,
        )


def _unique(path: Path) -> Path:
    """Return path, or path with a -N suffix if something already sits there."""
    if not path.exists():
        return path
    n = 1
    while True:
        candidate = path.with_name(f"{path.stem}-{n}{path.suffix}")
        if not candidate.exists():
            return candidate
        n += 1
