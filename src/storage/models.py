# src/storage/models.py - v1
"""Persisted artifact models: RunSummary (filemap) and BatchLogEntry."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from assetmigrator.ledger.models import FailedFile, UploadedFile

BatchStatus = Literal["completed", "halted", "interrupted"]


class BatchLogEntry(BaseModel):
    """One completed batch, appended to the cross-invocation batch log."""

    batch_number: int
    successful: int
    failed: int
    duration_seconds: float
    timestamp: datetime
    status: BatchStatus = "completed"
    features: list[str] = Field(default_factory=list)


class ProgressSummary(BaseModel):
    """Cumulative progress derived from the batch log."""

    completed_batches: int = 0
    total_batches: int = 0
    successful: int = 0
    failed: int = 0
    last_run: datetime | None = None

    @property
    def success_rate(self) -> float:
        done = self.successful + self.failed
        return self.successful / done * 100 if done else 0.0


class RunSummary(BaseModel):
    """End-of-run mapping written to filemap.json."""

    timestamp: datetime
    features: list[str]
    test_mode: bool = False
    simulate: bool = False
    status: str = "completed"
    total_files: int = 0
    deferred_files: int = 0
    uploaded_count: int = 0
    failed_count: int = 0
    upload_results: list[UploadedFile] = Field(default_factory=list)
    failed_results: list[FailedFile] = Field(default_factory=list)
