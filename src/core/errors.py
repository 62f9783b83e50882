# src/core/errors.py - v1
"""Error taxonomy surfaced by the detection engine.

Transport failures never appear here: adapters absorb them and return no
results. What remains is what a caller can act on.
"""

from __future__ import annotations


class LeakwatchError(Exception):
    """Base class for all engine errors."""


class RecordNotFoundError(LeakwatchError):
    """A record looked up by id does not exist."""

    def __init__(self, kind: str, record_id: str) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class ContentNotFoundError(RecordNotFoundError):
    """Protected content lookup failed."""

    def __init__(self, content_id: str) -> None:
        self.content_id = content_id
        super().__init__("Content", content_id)


class ScanFailedError(LeakwatchError):
    """A scan aborted on an error outside the adapter boundaries."""

    def __init__(self, content_id: str, scan_job_id: str, cause: Exception) -> None:
        self.content_id = content_id
        self.scan_job_id = scan_job_id
        self.cause = cause
        super().__init__(f"Scan {scan_job_id} for content {content_id} failed: {cause}")


class DuplicateInfringementError(LeakwatchError):
    """An infringement already exists for this (content_id, source_url)."""

    def __init__(self, content_id: str, source_url: str) -> None:
        self.content_id = content_id
        self.source_url = source_url
        super().__init__(f"Infringement already recorded for {content_id}: {source_url}")


class InvalidStatusTransitionError(LeakwatchError):
    """Infringement status change not allowed by the lifecycle."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move infringement from {current!r} to {target!r}")


class ScanJobAlreadyFinalizedError(LeakwatchError):
    """A scan job may only leave the running state once."""

    def __init__(self, scan_job_id: str, status: str) -> None:
        self.scan_job_id = scan_job_id
        self.status = status
        super().__init__(f"Scan job {scan_job_id} already finalized as {status!r}")
