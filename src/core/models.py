# src/core/models.py - v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, model_validator


# === DISCOVERY ===


class FileRecord(BaseModel):
    """A source file found by the scanner. Immutable once discovered."""

    model_config = ConfigDict(frozen=True)

    absolute_path: Path
    relative_path: str  # root-relative, "/" separated
    file_name: str
    size_bytes: int


class PathClassification(BaseModel):
    """Result of resolving a relative path. Pure function of the path."""

    model_config = ConfigDict(frozen=True)

    feature: str
    table: str
    row_id: str
    file_name: str
    original_path: str


# === MAPPING ===


class UploadTarget(BaseModel):
    """One (feature, column) slot a file will fill once uploaded.

    Only ``artifact_id`` changes after construction, through stamp().
    """

    model_config = ConfigDict(validate_assignment=True)

    feature: str
    table: str
    column: str
    row_id: str
    old_file_name: str
    old_path: str
    file_size: int
    artifact_id: str | None = None

    def stamp(self, artifact_id: str) -> None:
        """Record the remote id that replaced old_file_name."""
        self.artifact_id = artifact_id


# === UPLOAD OUTCOME ===


class ErrorCategory(str, enum.Enum):
    """Why an upload failed. Assigned once, where the failure is observed."""

    AUTH_FAILURE = "auth_failure"
    SIZE_LIMIT_EXCEEDED = "size_limit_exceeded"
    TIMEOUT = "timeout"
    OTHER = "other"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS: dict[ErrorCategory, str] = {
    ErrorCategory.AUTH_FAILURE: "Authentication",
    ErrorCategory.SIZE_LIMIT_EXCEEDED: "File Too Large",
    ErrorCategory.TIMEOUT: "Timeout",
    ErrorCategory.OTHER: "Other",
}


def categorize_error_message(message: str) -> ErrorCategory:
    """Map a free-text failure message to a category.

    Used only when a failure arrives as text with no status code, e.g. a
    simulated failure or a transport exception.
    """
    lowered = message.lower()
    if "401" in lowered or "403" in lowered or "token" in lowered:
        return ErrorCategory.AUTH_FAILURE
    if "413" in lowered or "too large" in lowered:
        return ErrorCategory.SIZE_LIMIT_EXCEEDED
    if "timeout" in lowered or "timed out" in lowered:
        return ErrorCategory.TIMEOUT
    return ErrorCategory.OTHER


class UploadOutcome(BaseModel):
    """Result of one upload attempt (real or simulated)."""

    model_config = ConfigDict(frozen=True)

    success: bool
    artifact_id: str | None = None
    remote_filename: str | None = None
    error_message: str | None = None
    error_category: ErrorCategory | None = None
    status_code: int | None = None

    @model_validator(mode="after")
    def check_shape(self) -> UploadOutcome:
        if self.success:
            if not self.artifact_id:
                raise ValueError("successful outcome requires artifact_id")
            if self.error_category is not None:
                raise ValueError("successful outcome cannot carry an error category")
        elif self.error_category is None or not self.error_message:
            raise ValueError("failed outcome requires error_message and error_category")
        return self

    @classmethod
    def succeeded(
        cls, artifact_id: str, remote_filename: str | None = None,
        status_code: int | None = None,
    ) -> UploadOutcome:
        return cls(
            success=True,
            artifact_id=artifact_id,
            remote_filename=remote_filename,
            status_code=status_code,
        )

    @classmethod
    def failure(
        cls,
        message: str,
        category: ErrorCategory | None = None,
        status_code: int | None = None,
    ) -> UploadOutcome:
        """Build a failed outcome, classifying the message if no category is given."""
        return cls(
            success=False,
            error_message=message,
            error_category=category or categorize_error_message(message),
            status_code=status_code,
        )

    @property
    def credential_invalid(self) -> bool:
        """True when the credential is dead and further uploads are pointless."""
        return self.error_category is ErrorCategory.AUTH_FAILURE
