# src/upload/client.py - v1
"""Async upload client for the remote artifact store (aiohttp).

One multipart POST per file, bearer-token auth, bounded timeout, no retry.
Every response or transport failure is turned into an UploadOutcome whose
category is fixed right here, where the status code is known.

Supports ``async with`` to pool one connection session across a whole run;
without it each call opens a short-lived session.
"""

from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
import random
import string
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiohttp

from assetmigrator.core.models import ErrorCategory, UploadOutcome

if TYPE_CHECKING:
    from assetmigrator.config.settings import Settings

logger = logging.getLogger(__name__)

SIMULATED_FAILURE_MESSAGE = "Simulated failure (test mode)"

_ID_ALPHABET = string.ascii_lowercase + string.digits


class UploadClient:
    """Perform or simulate single-file uploads."""

    def __init__(
        self,
        settings: Settings,
        session: aiohttp.ClientSession | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()
        self._timeout = aiohttp.ClientTimeout(total=settings.upload_timeout)

    @property
    def upload_url(self) -> str:
        return f"{self._settings.remote_url}/files"

    async def open(self) -> None:
        """Open a persistent session for connection pooling."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

    async def close(self) -> None:
        """Close the persistent session if this client opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> UploadClient:
        await self.open()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def upload_one(
        self, file_path: Path, file_name: str, simulate: bool = False,
    ) -> UploadOutcome:
        """Upload (or simulate uploading) one file. Never raises for I/O errors."""
        if simulate:
            return await self._simulate(file_name)

        if self._session is not None:
            return await self._post(self._session, file_path, file_name)
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            return await self._post(session, file_path, file_name)

    async def _simulate(self, file_name: str) -> UploadOutcome:
        await self._sleep(self._settings.simulated_upload_delay)
        if self._rng.random() < self._settings.simulated_failure_rate:
            return UploadOutcome.failure(
                SIMULATED_FAILURE_MESSAGE, category=ErrorCategory.OTHER,
            )
        suffix = "".join(self._rng.choice(_ID_ALPHABET) for _ in range(9))
        return UploadOutcome.succeeded(
            artifact_id=f"test-{int(time.time() * 1000)}-{suffix}",
            remote_filename=f"test_{file_name}",
        )

    async def _post(
        self, session: aiohttp.ClientSession, file_path: Path, file_name: str,
    ) -> UploadOutcome:
        headers = {"Authorization": f"Bearer {self._settings.access_token}"}
        content_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        ssl: Any = None if self._settings.verify_ssl else False

        try:
            with open(file_path, "rb") as fh:
                form = aiohttp.FormData()
                form.add_field("folder", self._settings.target_folder_id)
                form.add_field(
                    "file", fh, filename=file_name, content_type=content_type,
                )
                async with session.post(
                    self.upload_url,
                    data=form,
                    headers=headers,
                    timeout=self._timeout,
                    ssl=ssl,
                ) as resp:
                    body = await resp.text(errors="replace")
                    return outcome_from_response(resp.status, body)
        except asyncio.TimeoutError:
            return UploadOutcome.failure(
                "Request timeout", category=ErrorCategory.TIMEOUT,
            )
        except aiohttp.ClientError as exc:
            return UploadOutcome.failure(
                f"Request error: {exc}", category=ErrorCategory.OTHER,
            )
        except OSError as exc:
            return UploadOutcome.failure(
                f"Cannot read file: {exc}", category=ErrorCategory.OTHER,
            )


def outcome_from_response(status: int, body: str) -> UploadOutcome:
    """Classify an HTTP response from the files endpoint."""
    if 200 <= status < 300:
        try:
            data = json.loads(body)["data"]
            return UploadOutcome.succeeded(
                artifact_id=str(data["id"]),
                remote_filename=data.get("filename_download"),
                status_code=status,
            )
        except (ValueError, KeyError, TypeError) as exc:
            return UploadOutcome.failure(
                f"Parse error: {exc}",
                category=ErrorCategory.OTHER,
                status_code=status,
            )
    if status == 401:
        return UploadOutcome.failure(
            "TOKEN EXPIRED: Authentication failed (401). Update ACCESS_TOKEN",
            category=ErrorCategory.AUTH_FAILURE,
            status_code=status,
        )
    if status == 403:
        return UploadOutcome.failure(
            "TOKEN INVALID: Access forbidden (403). Check ACCESS_TOKEN permissions",
            category=ErrorCategory.AUTH_FAILURE,
            status_code=status,
        )
    if status == 413:
        return UploadOutcome.failure(
            f"HTTP 413: {body}",
            category=ErrorCategory.SIZE_LIMIT_EXCEEDED,
            status_code=status,
        )
    return UploadOutcome.failure(
        f"HTTP {status}: {body}",
        category=ErrorCategory.OTHER,
        status_code=status,
    )
