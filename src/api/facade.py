# src/api/facade.py - v1
"""Public API facade: single entry point for a migration run.

Usage:
    from assetmigrator.api.facade import migrate
    result = await migrate(MigrationRequest(feature="topic", test_mode=True))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from assetmigrator.api.models import ConfigOverrides, MigrationRequest, StatusSnapshot
from assetmigrator.batch.scanner import folder_statistics
from assetmigrator.config.settings import Settings
from assetmigrator.pipeline.runner import MigrationRunner, RunResult
from assetmigrator.storage import layout
from assetmigrator.storage.run_state import (
    load_batch_log,
    load_run_summary,
    summarize_progress,
)

if TYPE_CHECKING:
    from assetmigrator.batch.scheduler import SleepFn
    from assetmigrator.features.registry import FeatureRegistry
    from assetmigrator.upload.client import UploadClient

logger = logging.getLogger(__name__)


async def migrate(
    request: MigrationRequest,
    settings: Settings | None = None,
    registry: FeatureRegistry | None = None,
    client: UploadClient | None = None,
    sleep: SleepFn | None = None,
    runner: MigrationRunner | None = None,
) -> RunResult:
    """Run one migration invocation end-to-end.

    Args:
        request: Feature and mode to run.
        settings: Global settings. Loaded from .env if None.
        registry: Feature registry. Default table if None.
        client: Upload client (tests inject a fake session through it).
        sleep: Async sleep for pacing; tests pass a no-op.
        runner: Pre-built runner, e.g. one whose request_stop() is wired
            to signal handlers. Other component arguments are ignored then.

    Returns:
        RunResult with ledger, report, SQL and written paths.
    """
    settings = apply_overrides(settings or Settings(), request.config_overrides)
    if runner is None:
        runner = MigrationRunner(settings, registry=registry, client=client, sleep=sleep)
    return await runner.run(
        request.feature, test_mode=request.test_mode, simulate=request.simulate,
    )


def apply_overrides(settings: Settings, overrides: ConfigOverrides | None) -> Settings:
    """Return settings with per-invocation overrides applied."""
    if overrides is None:
        return settings
    values = overrides.model_dump(exclude_none=True)
    if not values:
        return settings
    current = settings.model_dump()
    current.update(values)
    logger.debug("Applying config overrides: %s", values)
    return Settings(**current)


def status(settings: Settings | None = None) -> StatusSnapshot:
    """Cumulative progress from both batch logs plus folder counts."""
    settings = settings or Settings()
    out = settings.output_dir
    last = load_run_summary(layout.filemap_path(out, test_mode=False))
    return StatusSnapshot(
        environment=settings.environment,
        folders=folder_statistics(settings),
        production=summarize_progress(load_batch_log(layout.batch_log_path(out, False))),
        test=summarize_progress(load_batch_log(layout.batch_log_path(out, True))),
        last_run_at=last.timestamp if last else None,
        last_run_status=last.status if last else None,
    )
