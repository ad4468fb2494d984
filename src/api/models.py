# src/api/models.py - v1
"""API-level models: MigrationRequest, ConfigOverrides, StatusSnapshot."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

from assetmigrator.batch.models import FolderStatistics
from assetmigrator.storage.models import ProgressSummary


class ConfigOverrides(BaseModel):
    """Per-invocation overrides, a validated subset of Settings."""

    source_folder: Path | None = None
    output_dir: Path | None = None
    batch_size: int | None = None
    max_batches: int | None = None
    max_files_per_run: int | None = None
    test_limit: int | None = None
    auto_move_files: bool | None = None
    halt_on_auth_failure: bool | None = None
    simulated_failure_rate: float | None = None


class MigrationRequest(BaseModel):
    """What to migrate and how."""

    feature: str
    test_mode: bool = False
    simulate: bool = False
    config_overrides: ConfigOverrides | None = None


class StatusSnapshot(BaseModel):
    """Cumulative progress and folder counts, for the status command."""

    environment: str
    folders: FolderStatistics
    production: ProgressSummary
    test: ProgressSummary
    last_run_at: datetime | None = None
    last_run_status: str | None = None
