# tests/unit/upload/test_unit_client.py - v1
"""Tests for upload/client.py - simulated and HTTP uploads (mocked session)."""

from __future__ import annotations

import asyncio
import json
import random
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from assetmigrator.core.models import ErrorCategory
from assetmigrator.upload.client import (
    SIMULATED_FAILURE_MESSAGE,
    UploadClient,
    outcome_from_response,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _remote_settings(make_settings, **kwargs):
    return make_settings(
        remote_url="https://store.example.com",
        access_token="tok-123",
        target_folder_id="folder-9",
        **kwargs,
    )


def _session(status: int = 200, body: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status = status
    resp.text = AsyncMock(return_value=body)
    session = MagicMock()
    session.post.return_value.__aenter__.return_value = resp
    session.post.return_value.__aexit__.return_value = False
    session.close = AsyncMock()
    return session


def _ok_body(artifact_id: str = "uuid-1", name: str = "a.jpg") -> str:
    return json.dumps({"data": {"id": artifact_id, "filename_download": name}})


# ---------------------------------------------------------------------------
# outcome_from_response()
# ---------------------------------------------------------------------------

class TestOutcomeFromResponse:
    def test_success(self):
        o = outcome_from_response(200, _ok_body("abc", "pic.jpg"))
        assert o.success
        assert o.artifact_id == "abc"
        assert o.remote_filename == "pic.jpg"
        assert o.status_code == 200

    def test_numeric_id_stringified(self):
        o = outcome_from_response(201, json.dumps({"data": {"id": 17}}))
        assert o.artifact_id == "17"

    def test_parse_error(self):
        o = outcome_from_response(200, "not json")
        assert not o.success
        assert o.error_message.startswith("Parse error")
        assert o.error_category is ErrorCategory.OTHER

    def test_missing_data(self):
        o = outcome_from_response(200, json.dumps({"errors": []}))
        assert o.error_category is ErrorCategory.OTHER

    @pytest.mark.parametrize("status, fragment", [
        (401, "TOKEN EXPIRED"),
        (403, "TOKEN INVALID"),
    ])
    def test_auth_failures(self, status, fragment):
        o = outcome_from_response(status, "")
        assert fragment in o.error_message
        assert o.error_category is ErrorCategory.AUTH_FAILURE
        assert o.credential_invalid

    def test_size_limit(self):
        o = outcome_from_response(413, "too big")
        assert o.error_message == "HTTP 413: too big"
        assert o.error_category is ErrorCategory.SIZE_LIMIT_EXCEEDED

    def test_server_error(self):
        o = outcome_from_response(500, "boom")
        assert o.error_message == "HTTP 500: boom"
        assert o.error_category is ErrorCategory.OTHER
        assert not o.credential_invalid


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

class TestSimulation:
    @pytest.mark.asyncio
    async def test_success_shape(self, make_settings, no_sleep):
        s = make_settings(simulated_upload_delay=0.5, simulated_failure_rate=0.0)
        client = UploadClient(s, sleep=no_sleep, rng=random.Random(1))
        o = await client.upload_one(Path("/nope/a.jpg"), "a.jpg", simulate=True)
        assert o.success
        assert o.artifact_id.startswith("test-")
        prefix, millis, suffix = o.artifact_id.split("-")
        assert millis.isdigit()
        assert len(suffix) == 9
        assert o.remote_filename == "test_a.jpg"
        no_sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_failure_rate_one(self, make_settings, no_sleep):
        s = make_settings(simulated_failure_rate=1.0)
        client = UploadClient(s, sleep=no_sleep)
        o = await client.upload_one(Path("/nope/a.jpg"), "a.jpg", simulate=True)
        assert not o.success
        assert o.error_message == SIMULATED_FAILURE_MESSAGE
        assert o.error_category is ErrorCategory.OTHER

    @pytest.mark.asyncio
    async def test_no_network_io(self, make_settings, no_sleep):
        session = _session()
        client = UploadClient(make_settings(), session=session, sleep=no_sleep)
        await client.upload_one(Path("/nope/a.jpg"), "a.jpg", simulate=True)
        session.post.assert_not_called()


# ---------------------------------------------------------------------------
# HTTP uploads
# ---------------------------------------------------------------------------

class TestHttpUpload:
    @pytest.mark.asyncio
    async def test_posts_multipart_with_bearer(self, make_settings, tmp_path, write_file):
        path = write_file(tmp_path, "a.jpg")
        session = _session(200, _ok_body("id-1"))
        client = UploadClient(_remote_settings(make_settings), session=session)

        o = await client.upload_one(path, "a.jpg")

        assert o.success
        assert o.artifact_id == "id-1"
        args, kwargs = session.post.call_args
        assert args[0] == "https://store.example.com/files"
        assert kwargs["headers"]["Authorization"] == "Bearer tok-123"
        assert isinstance(kwargs["data"], aiohttp.FormData)

    @pytest.mark.asyncio
    async def test_ssl_disabled(self, make_settings, tmp_path, write_file):
        path = write_file(tmp_path, "a.jpg")
        session = _session(200, _ok_body())
        client = UploadClient(
            _remote_settings(make_settings, verify_ssl=False), session=session,
        )
        await client.upload_one(path, "a.jpg")
        assert session.post.call_args.kwargs["ssl"] is False

    @pytest.mark.asyncio
    async def test_auth_rejection(self, make_settings, tmp_path, write_file):
        path = write_file(tmp_path, "a.jpg")
        client = UploadClient(_remote_settings(make_settings), session=_session(401))
        o = await client.upload_one(path, "a.jpg")
        assert o.credential_invalid
        assert o.status_code == 401

    @pytest.mark.asyncio
    async def test_timeout(self, make_settings, tmp_path, write_file):
        path = write_file(tmp_path, "a.jpg")
        session = _session()
        session.post.side_effect = asyncio.TimeoutError()
        client = UploadClient(_remote_settings(make_settings), session=session)
        o = await client.upload_one(path, "a.jpg")
        assert o.error_message == "Request timeout"
        assert o.error_category is ErrorCategory.TIMEOUT

    @pytest.mark.asyncio
    async def test_client_error(self, make_settings, tmp_path, write_file):
        path = write_file(tmp_path, "a.jpg")
        session = _session()
        session.post.side_effect = aiohttp.ClientConnectionError("refused")
        client = UploadClient(_remote_settings(make_settings), session=session)
        o = await client.upload_one(path, "a.jpg")
        assert o.error_message.startswith("Request error:")
        assert o.error_category is ErrorCategory.OTHER

    @pytest.mark.asyncio
    async def test_unreadable_file(self, make_settings, tmp_path):
        session = _session()
        client = UploadClient(_remote_settings(make_settings), session=session)
        o = await client.upload_one(tmp_path / "missing.jpg", "missing.jpg")
        assert o.error_message.startswith("Cannot read file:")
        session.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_undecodable_error_body(self, make_settings, tmp_path, write_file):
        path = write_file(tmp_path, "a.jpg")
        raw = b"<h1>Bad \xff\xfe gateway</h1>"

        async def _text(encoding=None, errors="strict"):
            return raw.decode(encoding or "utf-8", errors)

        session = _session(502)
        session.post.return_value.__aenter__.return_value.text = _text
        client = UploadClient(_remote_settings(make_settings), session=session)

        o = await client.upload_one(path, "a.jpg")

        assert not o.success
        assert o.error_message.startswith("HTTP 502: <h1>Bad ")
        assert o.error_category is ErrorCategory.OTHER


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------

class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self, make_settings):
        session = _session()
        async with UploadClient(make_settings(), session=session):
            pass
        session.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_session_closed(self, make_settings):
        owned = _session()
        with patch(
            "assetmigrator.upload.client.aiohttp.ClientSession", return_value=owned,
        ):
            async with UploadClient(make_settings()):
                pass
        owned.close.assert_awaited_once()

    def test_upload_url(self, make_settings):
        client = UploadClient(_remote_settings(make_settings))
        assert client.upload_url == "https://store.example.com/files"
