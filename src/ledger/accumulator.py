# src/ledger/accumulator.py - v1
"""Result accumulator: fold upload outcomes into the run ledger.

On success every target of the file is stamped with the new artifact id.
On failure the targets keep ``artifact_id=None`` and the file is recorded
with its error category. When a mover is attached the source file is
relocated afterwards, which keeps later invocations from re-discovering it.
"""

from __future__ import annotations

import logging

from assetmigrator.batch.models import FileMapping
from assetmigrator.core.models import ErrorCategory, UploadOutcome
from assetmigrator.ledger.models import FailedFile, MoveResult, RunLedger, UploadedFile
from assetmigrator.ledger.mover import LocalFileMover

logger = logging.getLogger(__name__)


class ResultAccumulator:
    """Owns the RunLedger of one invocation."""

    def __init__(self, mover: LocalFileMover | None = None) -> None:
        self._mover = mover
        self.ledger = RunLedger()
        self.move_results: list[MoveResult] = []

    @property
    def credential_invalid(self) -> bool:
        return self.ledger.credential_invalid

    def record(self, mapping: FileMapping, outcome: UploadOutcome) -> MoveResult | None:
        """Record one file's outcome, then relocate the file if configured."""
        record = mapping.record
        self.ledger.total_processed += 1

        if outcome.success:
            artifact_id = outcome.artifact_id or ""
            for target in mapping.targets:
                target.stamp(artifact_id)
            self.ledger.uploaded_files.append(
                UploadedFile(
                    original_path=str(record.absolute_path),
                    relative_path=record.relative_path,
                    artifact_id=artifact_id,
                    remote_filename=outcome.remote_filename,
                    targets=mapping.targets,
                    file_size=record.size_bytes,
                )
            )
        else:
            self.ledger.failed_files.append(
                FailedFile(
                    path=str(record.absolute_path),
                    relative_path=record.relative_path,
                    file_name=record.file_name,
                    error=outcome.error_message or "",
                    error_category=outcome.error_category or ErrorCategory.OTHER,
                    targets=mapping.targets,
                    file_size=record.size_bytes,
                )
            )
            if outcome.credential_invalid and not self.ledger.credential_invalid:
                logger.error(
                    "Credential rejected while uploading %s: %s",
                    record.file_name, outcome.error_message,
                )
                self.ledger.credential_invalid = True

        if self._mover is None:
            return None
        move = self._mover.settle(record, outcome)
        if move is not None:
            self.move_results.append(move)
        return move
