# src/pipeline/runner.py - v1
"""Migration runner: scan, plan, upload in paced batches, persist.

Walks the MigrationPlan batch by batch and file by file, strictly
sequentially. Supports:
  - graceful stop between files via request_stop() (signal handlers)
  - halting remaining batches once the credential is rejected
  - persisting filemap, batch log and SQL scripts in every case, including
    interruption, from whatever the ledger holds at that point
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from assetmigrator.batch.models import BatchJob, MigrationPlan
from assetmigrator.batch.scanner import FileScanner
from assetmigrator.batch.scheduler import BatchScheduler, SleepFn
from assetmigrator.core.path_resolver import PathResolver
from assetmigrator.features.registry import FeatureRegistry
from assetmigrator.ledger.accumulator import ResultAccumulator
from assetmigrator.ledger.models import RunLedger
from assetmigrator.ledger.mover import LocalFileMover
from assetmigrator.logging.context import set_batch_context, set_run_context
from assetmigrator.sql.generator import SQLGenerator
from assetmigrator.storage import layout
from assetmigrator.storage.backup import cleanup_old_backups, create_backup
from assetmigrator.storage.models import BatchLogEntry, BatchStatus, RunSummary
from assetmigrator.storage.run_state import (
    PersistenceError,
    append_batch_log,
    save_run_summary,
    write_sql_files,
)
from assetmigrator.tracking.models import BatchReport, RunReport
from assetmigrator.tracking.report import (
    build_run_report,
    format_batch_report,
    format_bytes,
    large_file_warning,
)
from assetmigrator.upload.client import UploadClient

if TYPE_CHECKING:
    from assetmigrator.config.settings import Settings

logger = logging.getLogger(__name__)

RunStatus = Literal["completed", "halted", "interrupted", "no_files"]


def generate_run_id(timestamp: datetime | None = None) -> str:
    """Generate a run_id: yyyymmdd_hhmmss_{uuid4_short}."""
    ts = timestamp or datetime.now(timezone.utc)
    return f"{ts.strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:6]}"


@dataclass
class RunResult:
    """Result of one migration invocation."""

    run_id: str
    status: RunStatus
    plan: MigrationPlan
    ledger: RunLedger
    report: RunReport
    queries: dict[str, list[str]] = field(default_factory=dict)
    sql_files: list[Path] = field(default_factory=list)
    filemap_path: Path | None = None
    batch_log_path: Path | None = None
    persistence_errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status in ("completed", "no_files")


class MigrationRunner:
    """Run one migration invocation.

    Args:
        settings: Immutable settings for this invocation.
        registry: Feature registry. Built from the default table if None.
        client: Upload client. Created from settings if None.
        sleep: Async sleep used for pacing and simulated uploads.
    """

    def __init__(
        self,
        settings: Settings,
        registry: FeatureRegistry | None = None,
        client: UploadClient | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        self._settings = settings
        self._registry = registry or FeatureRegistry()
        self._client = client or UploadClient(settings, sleep=sleep)
        self._scanner = FileScanner.from_settings(settings)
        self._resolver = PathResolver(self._registry)
        self._scheduler = BatchScheduler(
            settings, self._registry, self._resolver, sleep=sleep,
        )
        self._sql = SQLGenerator(self._registry)
        self._stop_requested = False

    @property
    def registry(self) -> FeatureRegistry:
        return self._registry

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        """Ask the run to stop before the next file. Safe from signal handlers."""
        if not self._stop_requested:
            logger.warning("Stop requested: finishing current file, then saving state")
        self._stop_requested = True

    def plan(self, feature: str, test_mode: bool = False) -> MigrationPlan:
        """Scan the source tree and build the plan without uploading."""
        features = self._registry.expand(feature)
        records = self._scanner.scan(self._settings.source_folder)
        return self._scheduler.plan(records, features, test_mode)

    async def run(
        self,
        feature: str,
        test_mode: bool = False,
        simulate: bool = False,
    ) -> RunResult:
        """Migrate every selected file for feature.

        Test mode always simulates. Real uploads require remote settings.

        Raises:
            RegistryError: If feature is unknown.
            ConfigurationError: If a real run lacks remote settings.
            ScanError: If the source folder does not exist.
        """
        settings = self._settings
        simulate = simulate or test_mode
        if not simulate:
            settings.validate_for_upload()

        run_id = generate_run_id()
        set_run_context(run_id, feature)
        features = self._registry.expand(feature)
        logger.info(
            "Run %s: feature=%s -> %s (test_mode=%s, simulate=%s)",
            run_id, feature, features, test_mode, simulate,
        )

        records = self._scanner.scan(settings.source_folder)
        plan = self._scheduler.plan(records, features, test_mode)

        accumulator = ResultAccumulator(
            mover=LocalFileMover.from_settings(settings)
            if settings.auto_move_files and not simulate
            else None,
        )

        if plan.selected == 0:
            logger.warning("No files to process in %s", settings.source_folder)
            return RunResult(
                run_id=run_id,
                status="no_files",
                plan=plan,
                ledger=accumulator.ledger,
                report=build_run_report(
                    accumulator.ledger, [], features,
                    test_mode=test_mode, simulate=simulate, status="no_files",
                ),
            )

        logger.info(
            "Starting upload: %d files in %d batches (discovered %d, deferred %d)",
            plan.selected, plan.total_batches, plan.discovered, plan.deferred,
        )
        if not test_mode:
            logger.info(
                "Estimated run time: %ds", settings.estimated_run_seconds(plan.selected),
            )
        if not simulate:
            self._backup()

        batch_reports: list[BatchReport] = []
        log_entries: list[BatchLogEntry] = []
        status: RunStatus = "interrupted"
        t0 = time.perf_counter()

        try:
            if simulate:
                status = await self._run_batches(
                    plan, accumulator, batch_reports, log_entries, test_mode, True,
                )
            else:
                async with self._client:
                    status = await self._run_batches(
                        plan, accumulator, batch_reports, log_entries, test_mode, False,
                    )
        finally:
            set_batch_context(None)
            duration = time.perf_counter() - t0
            generated_at = datetime.now(timezone.utc)
            queries = self._sql.generate(plan.files, accumulator.ledger, features)
            persisted = self._persist(
                plan, accumulator.ledger, log_entries, queries,
                features, test_mode, simulate, status, generated_at,
            )

        report = build_run_report(
            accumulator.ledger, batch_reports, features,
            test_mode=test_mode,
            simulate=simulate,
            status=status,
            deferred=plan.deferred,
            duration_seconds=duration,
        )
        logger.info(
            "Run %s %s: %d successful, %d failed (%.1f%%)",
            run_id, status, report.successful, report.failed, report.success_rate,
        )
        return RunResult(
            run_id=run_id,
            status=status,
            plan=plan,
            ledger=accumulator.ledger,
            report=report,
            queries=queries,
            **persisted,
        )

    async def _run_batches(
        self,
        plan: MigrationPlan,
        accumulator: ResultAccumulator,
        batch_reports: list[BatchReport],
        log_entries: list[BatchLogEntry],
        test_mode: bool,
        simulate: bool,
    ) -> RunStatus:
        halt = self._settings.halt_on_auth_failure
        for batch in plan.batches:
            if self._stop_requested:
                return "interrupted"
            set_batch_context(batch.number)

            report = await self._run_batch(batch, accumulator, test_mode, simulate)
            batch_reports.append(report)
            logger.info("%s", format_batch_report(report))

            halted = accumulator.credential_invalid and halt
            entry_status: BatchStatus = "completed"
            if report.interrupted:
                entry_status = "interrupted"
            elif halted:
                entry_status = "halted"
            log_entries.append(
                BatchLogEntry(
                    batch_number=batch.number,
                    successful=report.successful,
                    failed=report.failed,
                    duration_seconds=round(report.duration_seconds, 3),
                    timestamp=datetime.now(timezone.utc),
                    status=entry_status,
                    features=plan.features,
                )
            )

            if report.interrupted:
                return "interrupted"
            if halted:
                if not batch.is_last:
                    logger.error(
                        "Credential rejected: halting the remaining %d batches. "
                        "Update ACCESS_TOKEN and run again",
                        batch.total_batches - batch.number,
                    )
                return "halted"
            await self._scheduler.pause_after_batch(batch, test_mode)
        return "completed"

    async def _run_batch(
        self,
        batch: BatchJob,
        accumulator: ResultAccumulator,
        test_mode: bool,
        simulate: bool,
    ) -> BatchReport:
        logger.info(
            "Processing batch %d/%d (%d files)%s",
            batch.number, batch.total_batches, batch.size,
            " [SIMULATED]" if simulate else "",
        )
        report = BatchReport(
            number=batch.number,
            total_batches=batch.total_batches,
            total_files=batch.size,
        )
        threshold = self._settings.large_file_threshold_bytes
        t0 = time.perf_counter()

        for position, item in enumerate(batch.items):
            if self._stop_requested:
                report.interrupted = True
                break
            record = item.record

            warning = large_file_warning(record.file_name, record.size_bytes, threshold)
            if warning is not None:
                report.large_files.append(warning)
                logger.warning(
                    "%s is %s (%s): may fail due to size limit",
                    record.file_name, format_bytes(record.size_bytes), warning.label,
                )

            logger.info(
                "Uploading %s (%s) (%d/%d)",
                record.file_name, format_bytes(record.size_bytes),
                position + 1, batch.size,
            )
            outcome = await self._client.upload_one(
                record.absolute_path, record.file_name, simulate=simulate,
            )
            accumulator.record(item, outcome)

            if outcome.success:
                report.successful += 1
                logger.info(
                    "Uploaded %s (ID: %s)", record.file_name, outcome.artifact_id,
                )
            else:
                report.failed += 1
                category = outcome.error_category
                if category is not None:
                    report.errors[category] = report.errors.get(category, 0) + 1
                logger.error(
                    "Failed to upload %s (%s): %s",
                    record.file_name, format_bytes(record.size_bytes),
                    outcome.error_message,
                )

            await self._scheduler.pause_after_file(position, batch, test_mode)

        report.duration_seconds = time.perf_counter() - t0
        return report

    def _backup(self) -> None:
        settings = self._settings
        if not settings.backup_enabled:
            return
        create_backup(settings.output_dir, settings.backup_folder)
        cleanup_old_backups(settings.backup_folder, settings.backup_keep_days)

    def _persist(
        self,
        plan: MigrationPlan,
        ledger: RunLedger,
        log_entries: list[BatchLogEntry],
        queries: dict[str, list[str]],
        features: list[str],
        test_mode: bool,
        simulate: bool,
        status: str,
        generated_at: datetime,
    ) -> dict:
        """Write filemap, batch log and SQL. Failures are logged, not raised.

        Simulated runs, test mode included, write to the test-mode files.
        """
        settings = self._settings
        out = settings.output_dir
        errors: list[str] = []
        filemap: Path | None = layout.filemap_path(out, simulate)
        batch_log: Path | None = layout.batch_log_path(out, simulate)

        summary = RunSummary(
            timestamp=generated_at,
            features=features,
            test_mode=test_mode,
            simulate=simulate,
            status=status,
            total_files=plan.selected,
            deferred_files=plan.deferred,
            uploaded_count=len(ledger.uploaded_files),
            failed_count=len(ledger.failed_files),
            upload_results=ledger.uploaded_files,
            failed_results=ledger.failed_files,
        )
        try:
            save_run_summary(filemap, summary)
        except PersistenceError as exc:
            logger.error("Failed to save file mapping: %s", exc)
            errors.append(str(exc))
            filemap = None

        if log_entries:
            try:
                append_batch_log(batch_log, log_entries)
            except PersistenceError as exc:
                logger.error("Failed to save batch log: %s", exc)
                errors.append(str(exc))
                batch_log = None
        else:
            batch_log = None

        sql_files, sql_errors = write_sql_files(
            out, queries, simulate,
            dirname=settings.feature_queries_dir,
            generated_at=generated_at,
        )
        errors.extend(sql_errors)
        return {
            "sql_files": sql_files,
            "filemap_path": filemap,
            "batch_log_path": batch_log,
            "persistence_errors": errors,
        }
