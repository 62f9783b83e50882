# src/storage/base_record_store.py - v1
"""Abstract record store for owners, protected content, infringements and scan jobs.

Implementations must enforce uniqueness of (content_id, source_url) for
infringements and signal a conflict with ``DuplicateInfringementError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from leakwatch.core.models import (
    Infringement,
    InfringementStatus,
    Owner,
    ProtectedContent,
    ScanJob,
    ScanStatus,
    ScanType,
)


class BaseRecordStore(ABC):
    """Unified interface for persistent record backends."""

    # --- Owners ---

    @abstractmethod
    async def save_owner(self, owner: Owner) -> Owner:
        """Insert or replace an owner."""

    @abstractmethod
    async def get_owner(self, owner_id: str) -> Owner | None:
        """Return the owner, or None if unknown."""

    # --- Protected content ---

    @abstractmethod
    async def save_content(self, content: ProtectedContent) -> ProtectedContent:
        """Insert or replace a protected content item."""

    @abstractmethod
    async def get_content(self, content_id: str) -> ProtectedContent:
        """Return the content item.

        Raises:
            ContentNotFoundError: If no such content exists.
        """

    @abstractmethod
    async def list_due_content(self, now: datetime, limit: int) -> list[ProtectedContent]:
        """Active daily/weekly content whose next scan is unset or due at ``now``."""

    @abstractmethod
    async def mark_content_scanned(self, content_id: str, at: datetime) -> ProtectedContent:
        """Set last_scanned_at and increment scan_count."""

    @abstractmethod
    async def schedule_next_scan(self, content_id: str, at: datetime) -> ProtectedContent:
        """Set next_scan_at."""

    # --- Infringements ---

    @abstractmethod
    async def find_infringement(
        self, content_id: str, source_url: str,
    ) -> Infringement | None:
        """Lookup by natural key."""

    @abstractmethod
    async def create_infringement(self, infringement: Infringement) -> Infringement:
        """Insert a new infringement.

        Raises:
            DuplicateInfringementError: If (content_id, source_url) already exists.
        """

    @abstractmethod
    async def list_infringements(
        self, content_id: str, status: InfringementStatus | None = None,
    ) -> list[Infringement]:
        """Infringements of a content item, newest first."""

    @abstractmethod
    async def update_infringement_status(
        self, infringement_id: str, status: InfringementStatus,
    ) -> Infringement:
        """Move an infringement along its lifecycle.

        Raises:
            RecordNotFoundError: Unknown infringement id.
            InvalidStatusTransitionError: Transition not allowed.
        """

    @abstractmethod
    async def count_infringements_by_status(
        self, content_id: str | None = None,
    ) -> dict[InfringementStatus, int]:
        """Grouped counts, optionally restricted to one content item."""

    # --- Scan jobs ---

    @abstractmethod
    async def create_scan_job(
        self, content_id: str, scan_type: ScanType = ScanType.FULL,
    ) -> ScanJob:
        """Create a job in the running state."""

    @abstractmethod
    async def finalize_scan_job(
        self,
        scan_job_id: str,
        status: ScanStatus,
        *,
        results_count: int = 0,
        infringements_found: int = 0,
        error_message: str | None = None,
        completed_at: datetime | None = None,
    ) -> ScanJob:
        """Move a running job to completed or failed.

        Raises:
            RecordNotFoundError: Unknown job id.
            ScanJobAlreadyFinalizedError: The job already left ``running``.
        """

    @abstractmethod
    async def get_scan_job(self, scan_job_id: str) -> ScanJob:
        """Return the job or raise RecordNotFoundError."""

    @abstractmethod
    async def list_scan_jobs(self, content_id: str) -> list[ScanJob]:
        """Jobs of a content item, oldest first."""

    def close(self) -> None:
        """Release backend resources. No-op by default."""


# --- Shared rules for implementations ---

SCHEDULED_FREQUENCIES = ("daily", "weekly")


def is_due(content: ProtectedContent, now: datetime) -> bool:
    """Whether ``content`` should be picked up by the scheduled scan run."""
    return (
        content.is_active
        and content.scan_frequency.value in SCHEDULED_FREQUENCIES
        and (content.next_scan_at is None or content.next_scan_at <= now)
    )


def due_sort_key(content: ProtectedContent) -> tuple[int, datetime]:
    """Never-scheduled content first, then oldest due date."""
    if content.next_scan_at is None:
        return (0, content.created_at)
    return (1, content.next_scan_at)


def check_final_status(status: ScanStatus) -> None:
    if status is ScanStatus.RUNNING:
        raise ValueError("A scan job can only be finalized as completed or failed")
