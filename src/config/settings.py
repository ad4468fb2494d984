# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

A single frozen Settings value is built once per invocation and handed to
every component. Environment variables use the ``ASSETMIGRATOR_`` prefix,
e.g. ``ASSETMIGRATOR_BATCH_SIZE=10``.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


# Placeholder markers left in sample .env files.
_PLACEHOLDER_URL = "your-remote-instance"
_PLACEHOLDER_TOKEN = "your-access-token"

DEFAULT_EXTENSIONS = (
    "jpg,jpeg,png,gif,bmp,webp,tiff,svg,pdf,xlsx,xls,doc,docx,zip,rar"
)

# Rough per-file upload time used for run estimates.
_ESTIMATED_UPLOAD_SECONDS = 2.0


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ASSETMIGRATOR_",
        extra="ignore",
        frozen=True,
    )

    # === REMOTE STORE ===
    remote_url: str = ""
    access_token: str = ""
    target_folder_id: str = ""
    target_folder_name: str = "migrate"
    verify_ssl: bool = True

    # === Folders ===
    source_folder: Path = Path("./old")
    processed_folder: Path = Path("./processed")
    failed_folder: Path = Path("./failed")
    output_dir: Path = Path(".")
    feature_queries_dir: str = "feature-queries"

    # === Batching ===
    batch_size: int = 3
    max_batches: int | None = 2
    max_files_per_run: int | None = None
    auto_move_files: bool = True
    halt_on_auth_failure: bool = True

    # === Test mode ===
    test_limit: int = 5

    # === Pacing (seconds) ===
    upload_timeout: float = 30.0
    production_file_wait: float = 0.5
    test_file_wait: float = 0.1
    batch_wait: float = 5.0
    test_batch_wait: float = 1.0

    # === Simulation ===
    simulated_upload_delay: float = 0.5
    simulated_failure_rate: float = 0.1

    # === Files ===
    allowed_extensions: str = DEFAULT_EXTENSIONS
    large_file_threshold_mb: float = 10.0

    # === Backup ===
    backup_enabled: bool = True
    backup_folder: Path = Path("./backups")
    backup_keep_days: int = 7

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("remote_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @field_validator("simulated_failure_rate")
    @classmethod
    def validate_failure_rate(cls, v: float) -> float:  # noqa: N805
        if not 0.0 <= v <= 1.0:
            raise ValueError("simulated_failure_rate must be within [0, 1]")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate numeric limits and the extension allow-list."""
        errors: list[str] = []

        if self.batch_size <= 0:
            errors.append("BATCH_SIZE must be greater than 0")
        if self.max_batches is not None and self.max_batches <= 0:
            errors.append("MAX_BATCHES must be greater than 0 or unset")
        if self.max_files_per_run is not None and self.max_files_per_run <= 0:
            errors.append("MAX_FILES_PER_RUN must be greater than 0 or unset")
        if self.test_limit <= 0:
            errors.append("TEST_LIMIT must be greater than 0")
        if self.upload_timeout <= 0:
            errors.append("UPLOAD_TIMEOUT must be greater than 0")
        if min(
            self.production_file_wait, self.test_file_wait,
            self.batch_wait, self.test_batch_wait,
        ) < 0:
            errors.append("Wait times must be >= 0")
        if not self.allowed_extensions_set:
            errors.append("ALLOWED_EXTENSIONS must list at least one extension")
        if self.backup_keep_days < 0:
            errors.append("BACKUP_KEEP_DAYS must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    def validate_for_upload(self) -> None:
        """Check the settings needed to talk to the remote store.

        Only real (non-simulated) runs need credentials, so these rules are
        not part of construction.

        Raises:
            ConfigurationError: If a required remote setting is missing.
        """
        errors: list[str] = []
        if not self.remote_url or _PLACEHOLDER_URL in self.remote_url:
            errors.append("REMOTE_URL must be set")
        if not self.access_token or _PLACEHOLDER_TOKEN in self.access_token:
            errors.append("ACCESS_TOKEN must be set")
        if not self.target_folder_id:
            errors.append("TARGET_FOLDER_ID is required")
        if not str(self.source_folder):
            errors.append("SOURCE_FOLDER is required")
        if errors:
            raise ConfigurationError("; ".join(errors))

    # --- Helpers ---

    @property
    def allowed_extensions_set(self) -> frozenset[str]:
        """Lower-cased extensions without the leading dot."""
        return frozenset(
            e.strip().lower().lstrip(".")
            for e in self.allowed_extensions.split(",")
            if e.strip().lstrip(".")
        )

    @property
    def session_file_cap(self) -> int | None:
        """Files allowed per production invocation, None when unbounded."""
        if self.max_files_per_run is not None:
            return self.max_files_per_run
        if self.max_batches is None:
            return None
        return self.max_batches * self.batch_size

    @property
    def large_file_threshold_bytes(self) -> int:
        return int(self.large_file_threshold_mb * 1024 * 1024)

    @property
    def environment(self) -> str:
        """Guess the deployment tier from the remote URL."""
        url = self.remote_url.lower()
        if "localhost" in url or "127.0.0.1" in url:
            return "local"
        if "dev." in url or "development" in url:
            return "development"
        if "staging" in url or "stage" in url:
            return "staging"
        return "production"

    def file_wait(self, test_mode: bool) -> float:
        return self.test_file_wait if test_mode else self.production_file_wait

    def batch_wait_for(self, test_mode: bool) -> float:
        return self.test_batch_wait if test_mode else self.batch_wait

    def estimated_run_seconds(self, total_files: int) -> int:
        """Estimate wall time for one production invocation over total_files."""
        cap = self.session_file_cap
        files = total_files if cap is None else min(total_files, cap)
        if files <= 0:
            return 0
        batches = math.ceil(files / self.batch_size)
        seconds = (
            files * self.production_file_wait
            + (batches - 1) * self.batch_wait
            + files * _ESTIMATED_UPLOAD_SECONDS
        )
        return math.ceil(seconds)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
