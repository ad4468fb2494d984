# src/batch/scheduler.py - v1
"""Batch scheduler: mapping, truncation, partitioning and pacing.

Workflow:
    1. Expand every discovered file x requested feature x column into
       UploadTargets (grouped per file, discovery order kept).
    2. Test mode: keep the first ``test_limit`` files.
       Production: keep at most the session cap, defer the rest.
    3. Split the kept files into fixed-size numbered batches.
    4. Pace: short pause after each file but the last of a batch, longer
       pause between batches.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from assetmigrator.batch.models import BatchJob, FileMapping, MigrationPlan
from assetmigrator.core.models import FileRecord, UploadTarget

if TYPE_CHECKING:
    from assetmigrator.config.settings import Settings
    from assetmigrator.core.path_resolver import PathResolver
    from assetmigrator.features.registry import FeatureRegistry

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


def partition(items: Sequence[FileMapping], batch_size: int) -> list[BatchJob]:
    """Split items into ordered batches; only the last may be short."""
    if batch_size <= 0:
        raise ValueError("batch_size must be > 0")
    total = math.ceil(len(items) / batch_size)
    return [
        BatchJob(
            number=i + 1,
            total_batches=total,
            items=list(items[i * batch_size:(i + 1) * batch_size]),
        )
        for i in range(total)
    ]


class BatchScheduler:
    """Turn discovered files into a paced batch plan."""

    def __init__(
        self,
        settings: Settings,
        registry: FeatureRegistry,
        resolver: PathResolver,
        sleep: SleepFn | None = None,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._resolver = resolver
        self._sleep = sleep or asyncio.sleep

    # --- Mapping ---

    def build_mappings(
        self, records: Sequence[FileRecord], features: Sequence[str],
    ) -> list[FileMapping]:
        """One UploadTarget per (requested feature x declared column) per file."""
        mappings: list[FileMapping] = []
        for record in records:
            classification = self._resolver.resolve(record.relative_path)
            targets: list[UploadTarget] = []
            for name in features:
                feat = self._registry.get(name)
                if feat is None or feat.table is None:
                    continue
                for column in feat.columns:
                    targets.append(
                        UploadTarget(
                            feature=name,
                            table=feat.table,
                            column=column,
                            row_id=classification.row_id,
                            old_file_name=classification.file_name,
                            old_path=classification.original_path,
                            file_size=record.size_bytes,
                        )
                    )
            if targets:
                mappings.append(
                    FileMapping(
                        record=record,
                        classification=classification,
                        targets=targets,
                    )
                )

        logger.info("Created mappings for %d files", len(mappings))
        return mappings

    # --- Truncation ---

    def select(
        self, mappings: Sequence[FileMapping], test_mode: bool,
    ) -> tuple[list[FileMapping], int]:
        """Apply the test limit or session cap. Returns (kept, deferred count)."""
        if test_mode:
            limit: int | None = self._settings.test_limit
        else:
            limit = self._settings.session_file_cap

        if limit is None or len(mappings) <= limit:
            return list(mappings), 0

        kept = list(mappings[:limit])
        deferred = len(mappings) - limit
        if test_mode:
            logger.info(
                "Test mode: limited to %d files (out of %d total)",
                len(kept), len(mappings),
            )
        else:
            logger.info(
                "Session cap: processing %d files this run, %d deferred. "
                "Run the same command again to continue",
                len(kept), deferred,
            )
        return kept, deferred

    def plan(
        self,
        records: Sequence[FileRecord],
        features: Sequence[str],
        test_mode: bool = False,
    ) -> MigrationPlan:
        mappings = self.build_mappings(records, features)
        kept, deferred = self.select(mappings, test_mode)
        batch_size = self._settings.batch_size
        batches = partition(kept, batch_size)
        return MigrationPlan(
            features=list(features),
            test_mode=test_mode,
            discovered=len(records),
            mapped=len(mappings),
            selected=len(kept),
            deferred=deferred,
            session_cap=None if test_mode else self._settings.session_file_cap,
            batch_size=batch_size,
            batches=batches,
        )

    # --- Pacing ---

    async def pause_after_file(
        self, position: int, batch: BatchJob, test_mode: bool,
    ) -> None:
        """Wait after the file at zero-based position, except the batch's last."""
        if position >= batch.size - 1:
            return
        wait = self._settings.file_wait(test_mode)
        if wait > 0:
            await self._sleep(wait)

    async def pause_after_batch(self, batch: BatchJob, test_mode: bool) -> None:
        """Wait between batches; never after the final one."""
        if batch.is_last:
            return
        wait = self._settings.batch_wait_for(test_mode)
        if wait > 0:
            logger.info("Waiting %.1fs before next batch...", wait)
            await self._sleep(wait)
