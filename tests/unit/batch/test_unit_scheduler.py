# tests/unit/batch/test_unit_scheduler.py - v1
"""Tests for batch/scheduler.py - mapping, truncation, partitioning, pacing."""

from __future__ import annotations

from pathlib import Path

import pytest

from assetmigrator.batch.scheduler import BatchScheduler, partition
from assetmigrator.core.models import FileRecord
from assetmigrator.core.path_resolver import PathResolver


def _record(relative: str, size: int = 16) -> FileRecord:
    return FileRecord(
        absolute_path=Path("/src") / relative,
        relative_path=relative,
        file_name=relative.rsplit("/", 1)[-1],
        size_bytes=size,
    )


def _records(n: int) -> list[FileRecord]:
    return [_record(f"img_{i}.jpg") for i in range(1, n + 1)]


def _scheduler(settings, registry, sleep=None) -> BatchScheduler:
    return BatchScheduler(settings, registry, PathResolver(registry), sleep=sleep)


# ---------------------------------------------------------------------------
# partition()
# ---------------------------------------------------------------------------

class TestPartition:
    @pytest.mark.parametrize("n, size, expected", [
        (7, 3, [3, 3, 1]),
        (6, 3, [3, 3]),
        (2, 5, [2]),
        (0, 3, []),
    ])
    def test_sizes(self, settings, registry, n, size, expected):
        mappings = _scheduler(settings, registry).build_mappings(_records(n), ["member"])
        batches = partition(mappings, size)
        assert [b.size for b in batches] == expected
        assert [b.number for b in batches] == list(range(1, len(expected) + 1))
        assert all(b.total_batches == len(expected) for b in batches)

    def test_lossless_and_ordered(self, settings, registry):
        mappings = _scheduler(settings, registry).build_mappings(_records(10), ["member"])
        flat = [m for b in partition(mappings, 4) for m in b.items]
        assert flat == mappings

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            partition([], 0)


# ---------------------------------------------------------------------------
# build_mappings()
# ---------------------------------------------------------------------------

class TestBuildMappings:
    def test_target_per_feature_and_column(self, settings, registry):
        (mapping,) = _scheduler(settings, registry).build_mappings(
            [_record("topic/topic/5/a.jpg")], ["topic", "detail"],
        )
        cols = [(t.feature, t.column) for t in mapping.targets]
        assert cols[0] == ("topic", "pic")
        assert ("detail", "dfile") in cols
        assert len(cols) == 1 + 6
        assert all(t.row_id == "5" for t in mapping.targets)
        assert all(t.artifact_id is None for t in mapping.targets)
        assert mapping.features == ["topic", "detail"]

    def test_member_scenario(self, settings, registry):
        (mapping,) = _scheduler(settings, registry).build_mappings(
            [_record("members/42/photo.jpg")], ["member"],
        )
        (target,) = mapping.targets
        assert target.table == "pinoyphp_users"
        assert target.column == "picture1"
        assert target.row_id == "42"
        assert target.old_file_name == "photo.jpg"

    def test_group_names_ignored(self, settings, registry):
        mappings = _scheduler(settings, registry).build_mappings(_records(2), ["all"])
        assert mappings == []


# ---------------------------------------------------------------------------
# select() / plan()
# ---------------------------------------------------------------------------

class TestSelection:
    def test_test_mode_truncates(self, make_settings, registry):
        s = make_settings(test_limit=5)
        plan = _scheduler(s, registry).plan(_records(12), ["member"], test_mode=True)
        assert plan.selected == 5
        assert plan.deferred == 7
        assert plan.session_cap is None
        assert [m.record.file_name for m in plan.files] == [
            f"img_{i}.jpg" for i in range(1, 6)
        ]

    def test_production_session_cap(self, make_settings, registry):
        s = make_settings(batch_size=3, max_batches=2)
        plan = _scheduler(s, registry).plan(_records(12), ["member"])
        assert plan.selected == 6
        assert plan.deferred == 6
        assert plan.total_batches == 2
        assert plan.session_cap == 6

    def test_unbounded(self, make_settings, registry):
        s = make_settings(batch_size=4, max_batches=None)
        plan = _scheduler(s, registry).plan(_records(10), ["member"])
        assert plan.selected == 10
        assert plan.deferred == 0
        assert [b.size for b in plan.batches] == [4, 4, 2]

    def test_counts(self, settings, registry):
        plan = _scheduler(settings, registry).plan(_records(2), ["member"])
        assert plan.discovered == 2
        assert plan.mapped == 2
        assert plan.features == ["member"]


# ---------------------------------------------------------------------------
# Pacing
# ---------------------------------------------------------------------------

class TestPacing:
    @pytest.mark.asyncio
    async def test_file_pause_skips_last(self, make_settings, registry, no_sleep):
        s = make_settings(production_file_wait=0.5)
        sched = _scheduler(s, registry, sleep=no_sleep)
        (batch,) = sched.plan(_records(3), ["member"]).batches
        for position in range(batch.size):
            await sched.pause_after_file(position, batch, test_mode=False)
        assert no_sleep.await_count == 2
        no_sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_batch_pause_skips_last(self, make_settings, registry, no_sleep):
        s = make_settings(batch_size=2, max_batches=None, test_batch_wait=1.0)
        sched = _scheduler(s, registry, sleep=no_sleep)
        plan = sched.plan(_records(5), ["member"])
        for batch in plan.batches:
            await sched.pause_after_batch(batch, test_mode=True)
        assert no_sleep.await_count == 2
        no_sleep.assert_awaited_with(1.0)

    @pytest.mark.asyncio
    async def test_zero_wait_does_not_sleep(self, settings, registry, no_sleep):
        sched = _scheduler(settings, registry, sleep=no_sleep)
        (batch,) = sched.plan(_records(2), ["member"]).batches
        await sched.pause_after_file(0, batch, test_mode=False)
        no_sleep.assert_not_awaited()
