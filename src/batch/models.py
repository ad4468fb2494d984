# src/batch/models.py - v1
"""Batch scheduling models: FileMapping, BatchJob, MigrationPlan."""

from __future__ import annotations

from pydantic import BaseModel, Field

from assetmigrator.core.models import FileRecord, PathClassification, UploadTarget


class FileMapping(BaseModel):
    """A discovered file and every target slot it backs."""

    record: FileRecord
    classification: PathClassification
    targets: list[UploadTarget] = Field(default_factory=list)

    @property
    def features(self) -> list[str]:
        seen: list[str] = []
        for t in self.targets:
            if t.feature not in seen:
                seen.append(t.feature)
        return seen


class BatchJob(BaseModel):
    """An ordered slice of file mappings, numbered from 1."""

    number: int
    total_batches: int
    items: list[FileMapping] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.items)

    @property
    def is_last(self) -> bool:
        return self.number >= self.total_batches


class FolderStatistics(BaseModel):
    """File counts across the source, processed and failed trees."""

    source: int = 0
    processed: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.source + self.processed + self.failed


class MigrationPlan(BaseModel):
    """What one invocation will process, and what it leaves for later."""

    features: list[str]
    test_mode: bool = False
    discovered: int = 0
    mapped: int = 0
    selected: int = 0
    deferred: int = 0
    session_cap: int | None = None
    batch_size: int = 1
    batches: list[BatchJob] = Field(default_factory=list)

    @property
    def total_batches(self) -> int:
        return len(self.batches)

    @property
    def files(self) -> list[FileMapping]:
        """Selected files in batch order."""
        return [item for batch in self.batches for item in batch.items]
