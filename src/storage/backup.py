# src/storage/backup.py - v1
"""Snapshot run artifacts before a production run and prune old snapshots."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path

from assetmigrator.storage import layout

logger = logging.getLogger(__name__)


def create_backup(
    output_dir: Path,
    backup_root: Path,
    test_mode: bool = False,
    now: datetime | None = None,
) -> Path | None:
    """Copy the current filemap and batch log into a timestamped folder.

    Returns:
        The backup folder, or None when there was nothing to copy.
    """
    sources = [
        layout.filemap_path(output_dir, test_mode),
        layout.batch_log_path(output_dir, test_mode),
    ]
    existing = [p for p in sources if p.is_file()]
    if not existing:
        logger.debug("Nothing to back up in %s", output_dir)
        return None

    target = layout.backup_dir(backup_root, now or datetime.now(timezone.utc))
    try:
        target.mkdir(parents=True, exist_ok=True)
        for src in existing:
            shutil.copy2(src, target / src.name)
            logger.debug("Backed up %s -> %s", src, target / src.name)
    except OSError as exc:
        logger.error("Error creating backup in %s: %s", target, exc)
        return None

    logger.info("Backup created in %s", target)
    return target


def cleanup_old_backups(
    backup_root: Path,
    keep_days: int,
    now: datetime | None = None,
) -> list[Path]:
    """Delete backup folders last modified more than keep_days ago."""
    if not backup_root.is_dir():
        return []

    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=keep_days)
    removed: list[Path] = []
    for folder in sorted(backup_root.iterdir()):
        if not folder.is_dir():
            continue
        try:
            mtime = datetime.fromtimestamp(folder.stat().st_mtime, tz=timezone.utc)
            if mtime < cutoff:
                shutil.rmtree(folder)
                removed.append(folder)
                logger.info("Removed old backup: %s", folder)
        except OSError as exc:
            logger.warning("Could not remove backup %s: %s", folder, exc)
    return removed
