# tests/unit/core/test_unit_models.py - v1
"""Tests for core/models.py - outcome shape and error categories."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from assetmigrator.core.models import (
    ErrorCategory,
    FileRecord,
    UploadOutcome,
    UploadTarget,
    categorize_error_message,
)


class TestCategorize:
    @pytest.mark.parametrize(
        "message, category",
        [
            ("HTTP 401: Unauthorized", ErrorCategory.AUTH_FAILURE),
            ("Forbidden 403", ErrorCategory.AUTH_FAILURE),
            ("TOKEN EXPIRED", ErrorCategory.AUTH_FAILURE),
            ("HTTP 413: Payload", ErrorCategory.SIZE_LIMIT_EXCEEDED),
            ("file too large", ErrorCategory.SIZE_LIMIT_EXCEEDED),
            ("Request timeout", ErrorCategory.TIMEOUT),
            ("connection timed out", ErrorCategory.TIMEOUT),
            ("HTTP 500: boom", ErrorCategory.OTHER),
        ],
    )
    def test_message_mapping(self, message, category):
        assert categorize_error_message(message) is category

    def test_labels(self):
        assert ErrorCategory.AUTH_FAILURE.label == "Authentication"
        assert ErrorCategory.SIZE_LIMIT_EXCEEDED.label == "File Too Large"
        assert ErrorCategory.OTHER.label == "Other"


class TestUploadOutcome:
    def test_success(self):
        o = UploadOutcome.succeeded("abc", remote_filename="a.jpg")
        assert o.success
        assert o.artifact_id == "abc"
        assert o.error_category is None
        assert not o.credential_invalid

    def test_failure_classifies_once(self):
        o = UploadOutcome.failure("Authentication failed (401)")
        assert not o.success
        assert o.error_category is ErrorCategory.AUTH_FAILURE
        assert o.credential_invalid

    def test_explicit_category_wins(self):
        o = UploadOutcome.failure("token bucket drained", category=ErrorCategory.OTHER)
        assert o.error_category is ErrorCategory.OTHER
        assert not o.credential_invalid

    def test_success_requires_id(self):
        with pytest.raises(ValidationError):
            UploadOutcome(success=True)

    def test_failure_requires_message(self):
        with pytest.raises(ValidationError):
            UploadOutcome(success=False, error_category=ErrorCategory.OTHER)

    def test_success_cannot_carry_category(self):
        with pytest.raises(ValidationError):
            UploadOutcome(
                success=True, artifact_id="x", error_category=ErrorCategory.OTHER,
            )


class TestUploadTarget:
    def test_stamp(self):
        t = UploadTarget(
            feature="topic", table="topic", column="pic", row_id="1",
            old_file_name="a.jpg", old_path="a.jpg", file_size=10,
        )
        assert t.artifact_id is None
        t.stamp("new-id")
        assert t.artifact_id == "new-id"


class TestFileRecord:
    def test_frozen(self):
        r = FileRecord(
            absolute_path=Path("/x/a.jpg"), relative_path="a.jpg",
            file_name="a.jpg", size_bytes=1,
        )
        with pytest.raises(ValidationError):
            r.size_bytes = 2  # type: ignore[misc]
