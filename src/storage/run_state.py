# src/storage/run_state.py - v1
"""Run state persistence: filemap, batch log and SQL scripts.

Every write assembles the full document first and then replaces the target
file atomically (temp file in the same directory + os.replace), so an
interrupted run never leaves a half-written artifact. Write failures raise
PersistenceError; callers log it and carry on, since remote uploads that
already happened cannot be rolled back.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from assetmigrator.sql.generator import render_sql_file
from assetmigrator.storage import layout
from assetmigrator.storage.models import BatchLogEntry, ProgressSummary, RunSummary

logger = logging.getLogger(__name__)

_BATCH_LOG_ADAPTER = TypeAdapter(list[BatchLogEntry])


class PersistenceError(Exception):
    """Raised when a run artifact cannot be written."""


def atomic_write_text(path: Path, content: str) -> None:
    """Replace path with content in one step.

    Raises:
        PersistenceError: On any filesystem error.
    """
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=path.parent,
            prefix=f".{path.name}.", suffix=".tmp", delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistenceError(f"Cannot write {path}: {exc}") from exc


# === Run summary (filemap) ===


def save_run_summary(path: Path, summary: RunSummary) -> None:
    atomic_write_text(path, summary.model_dump_json(indent=2))
    logger.info("Saved file mapping to %s", path)


def load_run_summary(path: Path) -> RunSummary | None:
    """Load a previous filemap, or None if absent or unreadable."""
    if not path.exists():
        return None
    try:
        return RunSummary.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        logger.warning("Failed to load run summary %s: %s", path, exc)
        return None


# === Batch log ===


def load_batch_log(path: Path) -> list[BatchLogEntry]:
    """Load the batch log. Missing or corrupt files yield an empty list."""
    if not path.exists():
        return []
    try:
        return _BATCH_LOG_ADAPTER.validate_json(path.read_bytes())
    except (OSError, ValidationError) as exc:
        logger.warning("Failed to load batch log %s, starting fresh: %s", path, exc)
        return []


def append_batch_log(path: Path, entries: Iterable[BatchLogEntry]) -> list[BatchLogEntry]:
    """Append entries to the batch log and rewrite it whole."""
    log = load_batch_log(path)
    log.extend(entries)
    _write_batch_log(path, log)
    return log


def clear_batch_log(path: Path) -> None:
    _write_batch_log(path, [])
    logger.info("Cleared batch log: %s", path)


def _write_batch_log(path: Path, log: Sequence[BatchLogEntry]) -> None:
    payload = [entry.model_dump(mode="json") for entry in log]
    atomic_write_text(path, json.dumps(payload, indent=2))


def completed_batch_count(log: Sequence[BatchLogEntry]) -> int:
    return sum(1 for entry in log if entry.status == "completed")


def summarize_progress(log: Sequence[BatchLogEntry]) -> ProgressSummary:
    """Cumulative progress across every logged invocation."""
    if not log:
        return ProgressSummary()
    return ProgressSummary(
        completed_batches=completed_batch_count(log),
        total_batches=len(log),
        successful=sum(e.successful for e in log),
        failed=sum(e.failed for e in log),
        last_run=max(e.timestamp for e in log),
    )


# === SQL scripts ===


def write_sql_files(
    output_dir: Path,
    queries: Mapping[str, Sequence[str]],
    test_mode: bool = False,
    dirname: str = "feature-queries",
    generated_at: datetime | None = None,
) -> tuple[list[Path], list[str]]:
    """Write one script per feature with at least one statement.

    A failing feature is logged and skipped so the others still get written.

    Returns:
        Paths that were written and one error message per failed feature.
    """
    written: list[Path] = []
    errors: list[str] = []
    for feature, statements in queries.items():
        if not statements:
            continue
        path = layout.sql_path(output_dir, feature, test_mode, dirname)
        try:
            atomic_write_text(path, render_sql_file(feature, statements, generated_at))
        except PersistenceError as exc:
            logger.error("Failed to save SQL for %s: %s", feature, exc)
            errors.append(f"{feature}: {exc}")
            continue
        logger.info("Saved %d queries for %s to %s", len(statements), feature, path)
        written.append(path)
    return written, errors
