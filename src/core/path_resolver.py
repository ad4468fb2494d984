# src/core/path_resolver.py - v1
"""Classify a root-relative path into (feature, table, row id, filename).

Two layouts are recognised:

Structured::

    <feature>/<table>/<digits>/.../<file>

Flat (fallback)::

    [<alternate folder>/[<digits>/]]<file>

In the flat form the feature defaults to the primary feature unless a
directory segment names an alternate folder (``members`` -> member). The row
id is the digit directory right after that folder, else the first digit run
in the filename stem, else a 32-bit hash of the stem. Resolution never fails.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from assetmigrator.config.features import ALTERNATE_FOLDERS, DEFAULT_FEATURE
from assetmigrator.core.models import PathClassification

if TYPE_CHECKING:
    from assetmigrator.features.registry import FeatureRegistry

_STRUCTURED_RE = re.compile(r"^([^/]+)/(\d+)")
_DIGITS_RE = re.compile(r"\d+")


def filename_hash(text: str) -> int:
    """Deterministic 32-bit string hash (h = h*31 + unit) over UTF-16 units.

    Returns the absolute value of the signed 32-bit result, so the same text
    always yields the same non-negative id.
    """
    h = 0
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def split_path(relative_path: str) -> list[str]:
    return [p for p in relative_path.replace("\\", "/").split("/") if p]


class PathResolver:
    """Pure, deterministic path classifier."""

    def __init__(
        self,
        registry: FeatureRegistry,
        default_feature: str = DEFAULT_FEATURE,
        alternate_folders: dict[str, str] | None = None,
    ) -> None:
        self._registry = registry
        self._default_feature = default_feature
        self._alternates = (
            ALTERNATE_FOLDERS if alternate_folders is None else alternate_folders
        )

    def resolve(self, relative_path: str) -> PathClassification:
        parts = split_path(relative_path)
        normalized = "/".join(parts)
        file_name = parts[-1] if parts else ""

        if len(parts) >= 3:
            match = _STRUCTURED_RE.match("/".join(parts[1:]))
            if match:
                return PathClassification(
                    feature=self._alternates.get(parts[0], parts[0]),
                    table=match.group(1),
                    row_id=match.group(2),
                    file_name=file_name,
                    original_path=normalized,
                )

        feature = self._default_feature
        row_id: str | None = None
        directories = parts[:-1]
        for idx, segment in enumerate(directories):
            alternate = self._alternates.get(segment)
            if alternate is None:
                continue
            feature = alternate
            if idx + 1 < len(directories) and directories[idx + 1].isdigit():
                row_id = directories[idx + 1]
            break

        if row_id is None:
            row_id = self.row_id_from_name(file_name)

        return PathClassification(
            feature=feature,
            table=self._table_for(feature),
            row_id=row_id,
            file_name=file_name,
            original_path=normalized,
        )

    @staticmethod
    def row_id_from_name(file_name: str) -> str:
        """First digit run in the stem, or the stem's hash."""
        stem = PurePosixPath(file_name).stem
        match = _DIGITS_RE.search(stem)
        if match:
            return match.group(0)
        return str(filename_hash(stem))

    def _table_for(self, feature: str) -> str:
        feat = self._registry.get(feature)
        if feat is None or feat.table is None:
            return feature
        return feat.table
