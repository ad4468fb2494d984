# src/tracking/report.py - v1
"""Run and batch reporting: size helpers, report builders, text summaries."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from assetmigrator.batch.models import FolderStatistics
from assetmigrator.ledger.models import RunLedger
from assetmigrator.storage.models import ProgressSummary
from assetmigrator.tracking.models import (
    BatchReport,
    LargeFileWarning,
    RunReport,
    SizeStatistics,
)

logger = logging.getLogger(__name__)

_MB = 1024 * 1024

# (threshold in bytes, label), checked from largest down.
SIZE_WARNING_LEVELS: list[tuple[int, str]] = [
    (15 * _MB, "Very Large"),
    (10 * _MB, "Large"),
    (5 * _MB, "Medium-Large"),
]

MAX_LISTED_FAILURES = 5


def format_bytes(size: int, decimals: int = 2) -> str:
    """Human-readable byte count, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    value = float(size)
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024
        idx += 1
    return f"{round(value, decimals):g} {units[idx]}"


def format_duration(seconds: float) -> str:
    """Compact duration, e.g. 3725 -> '1h 2m 5s'."""
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def size_warning(size: int) -> str:
    """Warning label for a file size, or '' below every threshold."""
    for threshold, label in SIZE_WARNING_LEVELS:
        if size > threshold:
            return label
    return ""


def size_statistics(sizes: Sequence[int]) -> SizeStatistics:
    if not sizes:
        return SizeStatistics()
    return SizeStatistics(
        count=len(sizes),
        total_bytes=sum(sizes),
        min_bytes=min(sizes),
        max_bytes=max(sizes),
    )


def build_run_report(
    ledger: RunLedger,
    batches: Sequence[BatchReport],
    features: Sequence[str],
    *,
    test_mode: bool = False,
    simulate: bool = False,
    status: str = "completed",
    deferred: int = 0,
    duration_seconds: float = 0.0,
) -> RunReport:
    """Consolidate the ledger and batch reports into one RunReport."""
    sizes = [u.file_size for u in ledger.uploaded_files]
    sizes += [f.file_size for f in ledger.failed_files]
    oversized = [w for b in batches for w in b.large_files]
    return RunReport(
        features=list(features),
        test_mode=test_mode,
        simulate=simulate,
        status=status,
        total_processed=ledger.total_processed,
        successful=len(ledger.uploaded_files),
        failed=len(ledger.failed_files),
        deferred=deferred,
        duration_seconds=duration_seconds,
        batches=list(batches),
        error_breakdown=ledger.error_breakdown,
        oversized=oversized,
        size_stats=size_statistics(sizes),
        first_failures=ledger.failed_files[:MAX_LISTED_FAILURES],
        credential_invalid=ledger.credential_invalid,
    )


def large_file_warning(file_name: str, size: int, threshold: int) -> LargeFileWarning | None:
    """Warning entry for files above threshold, else None."""
    if size <= threshold:
        return None
    return LargeFileWarning(
        file_name=file_name,
        size_bytes=size,
        label=size_warning(size) or "Large",
    )


def format_batch_report(report: BatchReport) -> str:
    lines = [
        f"Batch {report.number}/{report.total_batches} summary"
        + (" (interrupted)" if report.interrupted else ""),
        f"  Successful : {report.successful}/{report.total_files} "
        f"({report.success_rate:.1f}%)",
        f"  Failed     : {report.failed}/{report.total_files}",
        f"  Duration   : {format_duration(report.duration_seconds)}",
    ]
    if report.errors:
        lines.append("  Error breakdown:")
        for category, count in report.errors.items():
            lines.append(f"    - {category.label}: {count} files")
    if report.large_files:
        lines.append(f"  Large files in this batch: {len(report.large_files)}")
        for w in report.large_files:
            lines.append(f"    - {w.file_name}: {format_bytes(w.size_bytes)}")
    return "\n".join(lines)


def format_run_report(report: RunReport) -> str:
    """Human-readable end-of-run summary."""
    mode = "TEST" if report.test_mode else "PRODUCTION"
    if report.simulate:
        mode += " (simulated)"
    lines = [
        "=" * 60,
        f"MIGRATION {report.status.upper()} [{mode}]",
        "=" * 60,
        f"Features     : {', '.join(report.features)}",
        f"Total time   : {format_duration(report.duration_seconds)}",
        f"Batches      : {len(report.batches)}",
        f"Processed    : {report.total_processed}",
        f"Successful   : {report.successful}",
        f"Failed       : {report.failed}",
        f"Success rate : {report.success_rate:.1f}%",
    ]
    if report.deferred:
        lines.append(
            f"Deferred     : {report.deferred} (run the same command again to continue)"
        )
    if report.size_stats.count:
        s = report.size_stats
        lines.append(
            f"File sizes   : total {format_bytes(s.total_bytes)}, "
            f"avg {format_bytes(int(s.mean_bytes))}, "
            f"max {format_bytes(s.max_bytes)}"
        )
    if report.error_breakdown:
        lines.append("Error breakdown:")
        for category, count in report.error_breakdown.items():
            lines.append(f"  - {category.label}: {count}")
    if report.oversized:
        lines.append(f"Oversized files (warning only): {len(report.oversized)}")
        for w in report.oversized:
            lines.append(f"  - {w.file_name}: {format_bytes(w.size_bytes)} [{w.label}]")
    if report.first_failures:
        lines.append("Failed files:")
        for f in report.first_failures:
            lines.append(f"  - {f.relative_path}: {f.error}")
        remaining = report.failed - len(report.first_failures)
        if remaining > 0:
            lines.append(f"  ... and {remaining} more")
    if report.credential_invalid:
        lines.append("Credential rejected by the remote store: refresh ACCESS_TOKEN")
    return "\n".join(lines)


def format_progress(progress: ProgressSummary) -> str:
    """Cumulative cross-invocation progress from the batch log."""
    lines = [
        f"Completed batches : {progress.completed_batches}/{progress.total_batches}",
        f"Files successful  : {progress.successful}",
        f"Files failed      : {progress.failed}",
        f"Success rate      : {progress.success_rate:.1f}%",
    ]
    if progress.last_run is not None:
        lines.append(f"Last run          : {progress.last_run.isoformat()}")
    return "\n".join(lines)


def format_folder_statistics(stats: FolderStatistics) -> str:
    lines = [
        f"Source files    : {stats.source}",
        f"Processed files : {stats.processed}",
        f"Failed files    : {stats.failed}",
        f"Total files     : {stats.total}",
    ]
    if stats.total:
        lines.append(f"Processed rate  : {stats.processed / stats.total * 100:.1f}%")
        lines.append(f"Failed rate     : {stats.failed / stats.total * 100:.1f}%")
    return "\n".join(lines)
