# src/tracking/models.py - v1
"""Reporting models: per-batch and per-run outcome summaries."""

from __future__ import annotations

from pydantic import BaseModel, Field

from assetmigrator.core.models import ErrorCategory
from assetmigrator.ledger.models import FailedFile


class LargeFileWarning(BaseModel):
    """A file above the size threshold. Reported apart from failures."""

    file_name: str
    size_bytes: int
    label: str


class SizeStatistics(BaseModel):
    count: int = 0
    total_bytes: int = 0
    min_bytes: int = 0
    max_bytes: int = 0

    @property
    def mean_bytes(self) -> float:
        return self.total_bytes / self.count if self.count else 0.0


class BatchReport(BaseModel):
    """Outcome of one batch."""

    number: int
    total_batches: int
    total_files: int
    successful: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    errors: dict[ErrorCategory, int] = Field(default_factory=dict)
    large_files: list[LargeFileWarning] = Field(default_factory=list)
    interrupted: bool = False

    @property
    def success_rate(self) -> float:
        return self.successful / self.total_files * 100 if self.total_files else 0.0


class RunReport(BaseModel):
    """End-of-run totals: counts, rate, error breakdown, oversized files."""

    features: list[str]
    test_mode: bool = False
    simulate: bool = False
    status: str = "completed"
    total_processed: int = 0
    successful: int = 0
    failed: int = 0
    deferred: int = 0
    duration_seconds: float = 0.0
    batches: list[BatchReport] = Field(default_factory=list)
    error_breakdown: dict[ErrorCategory, int] = Field(default_factory=dict)
    oversized: list[LargeFileWarning] = Field(default_factory=list)
    size_stats: SizeStatistics = Field(default_factory=SizeStatistics)
    first_failures: list[FailedFile] = Field(default_factory=list)
    credential_invalid: bool = False

    @property
    def success_rate(self) -> float:
        if self.total_processed == 0:
            return 0.0
        return self.successful / self.total_processed * 100
