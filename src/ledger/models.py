# src/ledger/models.py - v1
"""Per-invocation ledger models. Nothing here is shared across runs."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from assetmigrator.core.models import ErrorCategory, UploadTarget


class UploadedFile(BaseModel):
    """A file whose upload succeeded, with its stamped targets."""

    original_path: str
    relative_path: str
    artifact_id: str
    remote_filename: str | None = None
    targets: list[UploadTarget] = Field(default_factory=list)
    file_size: int = 0


class FailedFile(BaseModel):
    """A file whose upload failed; its targets keep artifact_id=None."""

    path: str
    relative_path: str
    file_name: str
    error: str
    error_category: ErrorCategory
    targets: list[UploadTarget] = Field(default_factory=list)
    file_size: int = 0


class MoveResult(BaseModel):
    """Outcome of relocating a source file after its upload attempt."""

    source: Path
    destination: Path
    ok: bool
    copied: bool = False
    error: str | None = None


class RunLedger(BaseModel):
    """Success and failure records of one invocation."""

    uploaded_files: list[UploadedFile] = Field(default_factory=list)
    failed_files: list[FailedFile] = Field(default_factory=list)
    total_processed: int = 0
    credential_invalid: bool = False

    @property
    def success_rate(self) -> float:
        """Percentage of processed files that uploaded (0.0 when none)."""
        if self.total_processed == 0:
            return 0.0
        return len(self.uploaded_files) / self.total_processed * 100

    @property
    def error_breakdown(self) -> dict[ErrorCategory, int]:
        breakdown: dict[ErrorCategory, int] = {}
        for f in self.failed_files:
            breakdown[f.error_category] = breakdown.get(f.error_category, 0) + 1
        return breakdown
