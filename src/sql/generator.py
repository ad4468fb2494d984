# src/sql/generator.py - v1
"""SQL generator: turn the run ledger into per-feature UPDATE scripts.

Patterns:
    single_column_with_flag     one UPDATE per (old filename, new id) on the
                                feature's single column, optional flag, then
                                a COUNT verification on the flag.
    multiple_columns_temp_table temporary file_mapping table, one bulk
                                INSERT, one JOIN UPDATE per column, COUNT per
                                column, DROP.
    default                     per file, per column UPDATE with optional
                                flag; verification only when a flag exists.

Values are interpolated as literal text, not parameterised. The output is
meant for an operator to review and apply by hand; a production-safe
rewrite has to escape or bind filenames and ids first.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from assetmigrator.batch.models import FileMapping
from assetmigrator.features.registry import FeatureDefinition, FeatureRegistry
from assetmigrator.ledger.models import RunLedger

logger = logging.getLogger(__name__)

TEMP_TABLE = "file_mapping"


class SQLGenerator:
    """Per-feature SQL text from a mapping and its uploaded ledger."""

    def __init__(self, registry: FeatureRegistry) -> None:
        self._registry = registry

    def generate(
        self,
        mappings: Sequence[FileMapping],
        ledger: RunLedger,
        features: Sequence[str],
    ) -> dict[str, list[str]]:
        """Return feature -> ordered statement lines.

        Every requested concrete feature is present in the result; features
        without any uploaded file map to an empty list.
        """
        uploaded = {u.relative_path: u.artifact_id for u in ledger.uploaded_files}
        queries: dict[str, list[str]] = {}

        for name in features:
            feat = self._registry.get(name)
            if feat is None or not feat.is_concrete:
                continue

            pairs = collect_pairs(mappings, uploaded, name)
            if not pairs:
                queries[name] = []
                continue

            if feat.sql_pattern == "single_column_with_flag":
                queries[name] = self._single_column(feat, pairs)
            elif feat.sql_pattern == "multiple_columns_temp_table":
                queries[name] = self._temp_table(feat, pairs)
            else:
                queries[name] = self._default(feat, pairs)

            logger.debug("Generated %d SQL lines for %s", len(queries[name]), name)

        return queries

    # --- Patterns ---

    def _single_column(
        self, feat: FeatureDefinition, pairs: dict[str, str],
    ) -> list[str]:
        table = feat.table
        column = feat.columns[0]
        flag_set = f", {feat.flag} = 1" if feat.flag else ""
        lines = [
            f"-- {_title(feat.name)} Migration: Update {column} column with new artifact IDs",
            f"-- Format: UPDATE {table} SET {column} = 'new_id'{flag_set} "
            f"WHERE {column} = 'old_filename';",
            "",
        ]
        for file_name, artifact_id in pairs.items():
            lines.append(
                f"UPDATE {table} SET {column} = '{artifact_id}'{flag_set} "
                f"WHERE {column} = '{file_name}';"
            )
        lines.append("")
        lines.append("-- Verification query:")
        if feat.flag:
            lines.append(
                f"SELECT COUNT(*) as migrated_records FROM {table} "
                f"WHERE {feat.flag} = 1;"
            )
        else:
            lines.append(
                f"SELECT COUNT(*) as migrated_records FROM {table} "
                f"WHERE {column} LIKE 'test-%' OR {column} LIKE '%-%-%-%-%';"
            )
        lines.append(f"-- Expected result: {len(pairs)} records")
        return lines

    def _temp_table(
        self, feat: FeatureDefinition, pairs: dict[str, str],
    ) -> list[str]:
        table = feat.table
        lines = [
            f"-- {_title(feat.name)} Migration: Using {TEMP_TABLE} table for better performance",
            f"-- Step 1: Create temporary {TEMP_TABLE} table",
            f"CREATE TEMPORARY TABLE {TEMP_TABLE} (",
            "  old_filename VARCHAR(255) PRIMARY KEY,",
            "  new_file_id VARCHAR(255) NOT NULL,",
            "  INDEX(old_filename)",
            ");",
            "",
            "-- Step 2: Insert file mappings",
            f"INSERT INTO {TEMP_TABLE} (old_filename, new_file_id) VALUES",
        ]
        values = ",\n".join(
            f"('{file_name}', '{artifact_id}')"
            for file_name, artifact_id in pairs.items()
        )
        lines.append(values + ";")
        lines.append("")

        lines.append("-- Step 3: Update using JOINs")
        for column in feat.columns:
            lines.append(f"UPDATE {table} d")
            lines.append(f"JOIN {TEMP_TABLE} fm ON d.{column} = fm.old_filename")
            lines.append(f"SET d.{column} = fm.new_file_id;")
        lines.append("")

        lines.append("-- Step 4: Verification queries")
        for column in feat.columns:
            lines.append(f"SELECT COUNT(*) as updated_{column} FROM {table} d")
            lines.append(f"JOIN {TEMP_TABLE} fm ON d.{column} = fm.new_file_id;")
        lines.append("")

        lines.append("-- Step 5: Cleanup")
        lines.append(f"DROP TEMPORARY TABLE {TEMP_TABLE};")
        return lines

    def _default(
        self, feat: FeatureDefinition, pairs: dict[str, str],
    ) -> list[str]:
        table = feat.table
        flag_set = f", {feat.flag} = 1" if feat.flag else ""
        lines = [
            f"-- {_title(feat.name)} Migration: Update with filename matching",
            "",
        ]
        for file_name, artifact_id in pairs.items():
            for column in feat.columns:
                lines.append(
                    f"UPDATE {table} SET {column} = '{artifact_id}'{flag_set} "
                    f"WHERE {column} = '{file_name}';"
                )
        if feat.flag:
            lines.append("")
            lines.append("-- Verification query:")
            lines.append(
                f"SELECT COUNT(*) as migrated_records FROM {table} "
                f"WHERE {feat.flag} = 1;"
            )
            lines.append(f"-- Expected result: {len(pairs)} records")
        return lines


def collect_pairs(
    mappings: Sequence[FileMapping],
    uploaded: dict[str, str],
    feature: str,
) -> dict[str, str]:
    """Old filename -> artifact id for every uploaded file targeting feature.

    Keyed by filename; a later file with the same name overwrites the id
    but keeps the first position.
    """
    pairs: dict[str, str] = {}
    for mapping in mappings:
        artifact_id = uploaded.get(mapping.record.relative_path)
        if artifact_id is None:
            continue
        for target in mapping.targets:
            if target.feature == feature:
                pairs[target.old_file_name] = artifact_id
    return pairs


def render_sql_file(
    feature: str,
    statements: Sequence[str],
    generated_at: datetime | None = None,
) -> str:
    """Full text of one feature's SQL script, header comments included."""
    ts = (generated_at or datetime.now(timezone.utc)).isoformat()
    return "\n".join(
        [
            f"-- Generated SQL for {feature} feature",
            f"-- Generated at: {ts}",
            f"-- Total queries: {len(statements)}",
            "",
            *statements,
            "",
        ]
    )


def _title(name: str) -> str:
    return name[:1].upper() + name[1:]
