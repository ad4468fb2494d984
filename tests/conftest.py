# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides isolated settings rooted in tmp_path, the default feature registry,
a recording no-op sleep and a helper to lay out a source tree.
No network access: real uploads go through a mocked aiohttp session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from assetmigrator.config.settings import Settings
from assetmigrator.features.registry import FeatureRegistry
from assetmigrator.logging.logger import ROOT_LOGGER


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by setup_logging so streams never leak across tests."""
    yield
    root = logging.getLogger(ROOT_LOGGER)
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    """Factory for Settings with every folder under tmp_path and no pacing."""

    def _make(**kwargs) -> Settings:
        values = {
            "source_folder": tmp_path / "old",
            "processed_folder": tmp_path / "processed",
            "failed_folder": tmp_path / "failed",
            "output_dir": tmp_path / "out",
            "backup_folder": tmp_path / "backups",
            "production_file_wait": 0.0,
            "test_file_wait": 0.0,
            "batch_wait": 0.0,
            "test_batch_wait": 0.0,
            "simulated_upload_delay": 0.0,
            "simulated_failure_rate": 0.0,
        }
        values.update(kwargs)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def registry() -> FeatureRegistry:
    return FeatureRegistry()


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Async sleep replacement that returns immediately and records waits."""
    return AsyncMock(return_value=None)


@pytest.fixture
def source_root(settings: Settings) -> Path:
    root = settings.source_folder
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def write_file() -> Callable[..., Path]:
    """Create root/relative with size bytes of content."""

    def _write(root: Path, relative: str, size: int = 16) -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x" * size)
        return path

    return _write
