# src/logging/context.py - v1
"""Contextual logging support: attach content_id, scan_job_id and source to records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per scan run, plus once per adapter invocation inside that run.
_content_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "content_id", default=None
)
_scan_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "scan_job_id", default=None
)
_source: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    content_id: str | None = None
    scan_job_id: str | None = None
    source: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        content_id=_content_id.get(),
        scan_job_id=_scan_job_id.get(),
        source=_source.get(),
    )


def set_scan_context(content_id: str, scan_job_id: str | None = None) -> None:
    """Set scan-level context (called once per orchestration run)."""
    _content_id.set(content_id)
    _scan_job_id.set(scan_job_id)


def set_source_context(source: str | None) -> None:
    """Set the adapter currently running; None clears it."""
    _source.set(source)


def clear_context() -> None:
    """Reset all context variables."""
    _content_id.set(None)
    _scan_job_id.set(None)
    _source.set(None)
