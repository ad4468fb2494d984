# src/logging/context.py - v1
"""Contextual logging support: attach run_id, feature and batch to records."""

from __future__ import annotations

import contextvars
from dataclasses import asdict, dataclass
from typing import Any

_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_feature: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "feature", default=None
)
_batch: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "batch", default=None
)


@dataclass(frozen=True)
class LogContext:
    """Snapshot of the current logging context."""

    run_id: str | None = None
    feature: str | None = None
    batch: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields for JSON log injection."""
        return {k: v for k, v in asdict(self).items() if v is not None}


def get_context() -> LogContext:
    return LogContext(run_id=_run_id.get(), feature=_feature.get(), batch=_batch.get())


def set_run_context(run_id: str, feature: str | None = None) -> None:
    """Set run-level context (once per invocation)."""
    _run_id.set(run_id)
    _feature.set(feature)


def set_batch_context(batch: int | None) -> None:
    _batch.set(batch)


def clear_context() -> None:
    _run_id.set(None)
    _feature.set(None)
    _batch.set(None)
