# tests/unit/api/test_unit_facade.py - v1
"""Tests for api/facade.py and api/models.py."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from assetmigrator.api.facade import apply_overrides, migrate, status
from assetmigrator.api.models import ConfigOverrides, MigrationRequest
from assetmigrator.pipeline.runner import MigrationRunner
from assetmigrator.storage import layout
from assetmigrator.storage.models import BatchLogEntry, RunSummary
from assetmigrator.storage.run_state import append_batch_log, save_run_summary


class TestModels:
    def test_request_defaults(self):
        req = MigrationRequest(feature="topic")
        assert not req.test_mode
        assert not req.simulate
        assert req.config_overrides is None


class TestApplyOverrides:
    def test_none_returns_same(self, settings):
        assert apply_overrides(settings, None) is settings
        assert apply_overrides(settings, ConfigOverrides()) is settings

    def test_values_applied(self, settings):
        s = apply_overrides(settings, ConfigOverrides(batch_size=10, test_limit=1))
        assert s.batch_size == 10
        assert s.test_limit == 1
        assert s.source_folder == settings.source_folder

    def test_overrides_validated(self, settings):
        with pytest.raises(Exception):
            apply_overrides(settings, ConfigOverrides(batch_size=0))


class TestMigrate:
    @pytest.mark.asyncio
    async def test_runs_with_overrides(self, settings, source_root, write_file, no_sleep):
        for i in range(4):
            write_file(source_root, f"f{i}.jpg")
        request = MigrationRequest(
            feature="member", test_mode=True,
            config_overrides=ConfigOverrides(test_limit=2),
        )
        result = await migrate(request, settings=settings, sleep=no_sleep)
        assert result.plan.selected == 2
        assert result.status == "completed"

    @pytest.mark.asyncio
    async def test_uses_given_runner(self, settings, source_root, write_file, no_sleep):
        write_file(source_root, "a.jpg")
        runner = MigrationRunner(settings, sleep=no_sleep)
        result = await migrate(
            MigrationRequest(feature="member", simulate=True),
            settings=settings, runner=runner,
        )
        assert result.plan.features == ["member"]


class TestStatus:
    def test_empty(self, settings):
        snap = status(settings)
        assert snap.environment == "production"
        assert snap.production.total_batches == 0
        assert snap.last_run_at is None

    def test_reads_logs_and_folders(self, settings, write_file):
        out = settings.output_dir
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        append_batch_log(layout.batch_log_path(out), [
            BatchLogEntry(batch_number=1, successful=3, failed=0,
                          duration_seconds=1, timestamp=ts),
        ])
        append_batch_log(layout.batch_log_path(out, True), [
            BatchLogEntry(batch_number=1, successful=1, failed=1,
                          duration_seconds=1, timestamp=ts, status="halted"),
        ])
        save_run_summary(
            layout.filemap_path(out),
            RunSummary(timestamp=ts, features=["topic"], status="halted"),
        )
        write_file(settings.processed_folder, "a.jpg")

        snap = status(settings)

        assert snap.production.completed_batches == 1
        assert snap.test.completed_batches == 0
        assert snap.test.failed == 1
        assert snap.folders.processed == 1
        assert snap.last_run_at == ts
        assert snap.last_run_status == "halted"
