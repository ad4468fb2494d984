# src/features/registry.py - v1
"""Feature registry: validated lookup over the declarative feature table.

The registry is built once at startup. Construction validates every entry
and resolves group expansion, so later lookups never fail on a bad table.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from assetmigrator.config.features import FEATURE_TABLE
from assetmigrator.features.expansion import ExpansionError, expand_all

logger = logging.getLogger(__name__)

SqlPattern = Literal[
    "single_column_with_flag", "multiple_columns_temp_table", "default",
]

# Historical pattern labels that behave exactly like "default".
_PATTERN_ALIASES: dict[str, str] = {
    "multiple_columns_simple": "default",
}


class RegistryError(Exception):
    """Raised when the feature table is invalid or a name is unknown."""


class FeatureDefinition(BaseModel):
    """One entry of the feature table."""

    model_config = ConfigDict(frozen=True)

    name: str
    title: str = ""
    description: str = ""
    table: str | None = None
    columns: list[str] = Field(default_factory=list)
    flags: list[str] = Field(default_factory=list)
    sql_pattern: SqlPattern | None = None
    includes: list[str] = Field(default_factory=list)
    secondary: bool = False
    combined_description: str | None = None

    @field_validator("sql_pattern", mode="before")
    @classmethod
    def normalize_pattern(cls, v: Any) -> Any:  # noqa: N805
        if isinstance(v, str):
            return _PATTERN_ALIASES.get(v, v)
        return v

    @property
    def is_concrete(self) -> bool:
        """True when the feature maps to a backing table."""
        return self.table is not None

    @property
    def is_group(self) -> bool:
        return bool(self.includes)

    @property
    def flag(self) -> str | None:
        """The flag column set to 1 on migrated rows, if any."""
        return self.flags[0] if self.flags else None


class FeatureRegistry:
    """Explicit map of feature name -> definition, plus flattened groups."""

    def __init__(self, table: dict[str, dict[str, Any]] | None = None) -> None:
        source = FEATURE_TABLE if table is None else table
        self._features: dict[str, FeatureDefinition] = {}
        for name, entry in source.items():
            try:
                self._features[name] = FeatureDefinition(name=name, **entry)
            except ValueError as exc:
                raise RegistryError(f"Feature '{name}' is malformed: {exc}") from exc

        errors = self.validate()
        if errors:
            raise RegistryError("; ".join(errors))

        try:
            self._expansions = expand_all(
                {n: list(f.includes) for n, f in self._features.items()},
                lambda n: self._features[n].is_concrete,
            )
        except ExpansionError as exc:
            raise RegistryError(str(exc)) from exc

        logger.debug(
            "Feature registry loaded: %d features (%d concrete)",
            len(self._features), len(self.concrete_names),
        )

    def validate(self) -> list[str]:
        """Check every entry. Returns a list of error messages (empty = valid)."""
        errors: list[str] = []
        for name, feat in self._features.items():
            if feat.is_concrete:
                if not feat.columns:
                    errors.append(f"Feature '{name}' declares no columns")
                if feat.sql_pattern is None:
                    errors.append(f"Feature '{name}' declares no SQL pattern")
                if (
                    feat.sql_pattern == "single_column_with_flag"
                    and len(feat.columns) != 1
                ):
                    errors.append(
                        f"Feature '{name}' uses single_column_with_flag "
                        f"but declares {len(feat.columns)} columns"
                    )
            elif not feat.is_group:
                errors.append(f"Feature '{name}' has neither a table nor includes")
            for inc in feat.includes:
                if inc not in self._features:
                    errors.append(f"Feature '{name}' includes unknown feature '{inc}'")
        return errors

    # --- Lookup ---

    def get(self, name: str) -> FeatureDefinition | None:
        """Get a feature by name, or None if not registered."""
        return self._features.get(name)

    def get_or_raise(self, name: str) -> FeatureDefinition:
        """Get a feature by name, raising RegistryError if missing."""
        feat = self._features.get(name)
        if feat is None:
            raise RegistryError(
                f"Unknown feature: '{name}'. Available: {self.names}"
            )
        return feat

    def __contains__(self, name: object) -> bool:
        return name in self._features

    @property
    def names(self) -> list[str]:
        """All registered names in declaration order."""
        return list(self._features)

    @property
    def concrete_names(self) -> list[str]:
        return [n for n, f in self._features.items() if f.is_concrete]

    @property
    def primary_names(self) -> list[str]:
        """Concrete features that are not only reachable through a group."""
        return [
            n for n, f in self._features.items()
            if f.is_concrete and not f.secondary
        ]

    def expand(self, name: str) -> list[str]:
        """Return the ordered concrete features a requested name stands for."""
        self.get_or_raise(name)
        return list(self._expansions[name])

    def table_for(self, name: str) -> str:
        feat = self.get_or_raise(name)
        if feat.table is None:
            raise RegistryError(f"Feature '{name}' is a group and has no table")
        return feat.table

    def describe(self, name: str) -> str:
        """Human description, using the combined wording for groups."""
        feat = self.get_or_raise(name)
        return feat.combined_description or feat.description or feat.title
