# src/storage/layout.py - v1
"""Output file naming conventions.

Real uploads and simulated runs (test mode always simulates) write to
separate files::

    {output_dir}/filemap.json             {output_dir}/test-filemap.json
    {output_dir}/batch-log.json           {output_dir}/batch-log-test.json
    {output_dir}/feature-queries/<feature>-migration.sql
    {output_dir}/feature-queries/test-<feature>-migration.sql
    {backup_folder}/<timestamp>/...
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

FILEMAP_NAME = "filemap.json"
TEST_FILEMAP_NAME = "test-filemap.json"
BATCH_LOG_NAME = "batch-log.json"
TEST_BATCH_LOG_NAME = "batch-log-test.json"


def filemap_path(output_dir: Path, test_mode: bool = False) -> Path:
    return output_dir / (TEST_FILEMAP_NAME if test_mode else FILEMAP_NAME)


def batch_log_path(output_dir: Path, test_mode: bool = False) -> Path:
    return output_dir / (TEST_BATCH_LOG_NAME if test_mode else BATCH_LOG_NAME)


def queries_dir(output_dir: Path, dirname: str = "feature-queries") -> Path:
    return output_dir / dirname


def sql_file_name(feature: str, test_mode: bool = False) -> str:
    prefix = "test-" if test_mode else ""
    return f"{prefix}{feature}-migration.sql"


def sql_path(
    output_dir: Path, feature: str, test_mode: bool = False,
    dirname: str = "feature-queries",
) -> Path:
    return queries_dir(output_dir, dirname) / sql_file_name(feature, test_mode)


def backup_dir(backup_root: Path, timestamp: datetime) -> Path:
    """Backup folder named by a filesystem-safe timestamp."""
    return backup_root / timestamp.strftime("%Y-%m-%dT%H-%M-%S")
