# src/storage/memory_store.py - v1
"""In-process record store (RECORD_STORE_BACKEND=memory).

All mutations run under one asyncio lock, so the existence check and the
insert of an infringement are atomic with respect to concurrent scans.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

from leakwatch.core.errors import (
    ContentNotFoundError,
    DuplicateInfringementError,
    InvalidStatusTransitionError,
    RecordNotFoundError,
    ScanJobAlreadyFinalizedError,
)
from leakwatch.core.models import (
    Infringement,
    InfringementStatus,
    Owner,
    ProtectedContent,
    ScanJob,
    ScanStatus,
    ScanType,
    utcnow,
)
from leakwatch.storage.base_record_store import (
    BaseRecordStore,
    check_final_status,
    due_sort_key,
    is_due,
)


class InMemoryRecordStore(BaseRecordStore):
    """Dict-backed store for tests and single-process use."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._owners: dict[str, Owner] = {}
        self._content: dict[str, ProtectedContent] = {}
        self._infringements: dict[str, Infringement] = {}
        self._natural_keys: dict[tuple[str, str], str] = {}
        self._jobs: dict[str, ScanJob] = {}

    async def save_owner(self, owner: Owner) -> Owner:
        async with self._lock:
            self._owners[owner.id] = owner
        return owner

    async def get_owner(self, owner_id: str) -> Owner | None:
        return self._owners.get(owner_id)

    async def save_content(self, content: ProtectedContent) -> ProtectedContent:
        async with self._lock:
            self._content[content.id] = content
        return content

    async def get_content(self, content_id: str) -> ProtectedContent:
        try:
            return self._content[content_id]
        except KeyError:
            raise ContentNotFoundError(content_id) from None

    async def list_due_content(self, now: datetime, limit: int) -> list[ProtectedContent]:
        due = [c for c in self._content.values() if is_due(c, now)]
        return sorted(due, key=due_sort_key)[:limit]

    async def mark_content_scanned(self, content_id: str, at: datetime) -> ProtectedContent:
        async with self._lock:
            content = await self.get_content(content_id)
            updated = content.model_copy(
                update={"last_scanned_at": at, "scan_count": content.scan_count + 1}
            )
            self._content[content_id] = updated
        return updated

    async def schedule_next_scan(self, content_id: str, at: datetime) -> ProtectedContent:
        async with self._lock:
            content = await self.get_content(content_id)
            updated = content.model_copy(update={"next_scan_at": at})
            self._content[content_id] = updated
        return updated

    async def find_infringement(
        self, content_id: str, source_url: str,
    ) -> Infringement | None:
        infringement_id = self._natural_keys.get((content_id, source_url))
        return self._infringements.get(infringement_id) if infringement_id else None

    async def create_infringement(self, infringement: Infringement) -> Infringement:
        natural_key = (infringement.content_id, infringement.source_url)
        async with self._lock:
            if natural_key in self._natural_keys:
                raise DuplicateInfringementError(*natural_key)
            self._natural_keys[natural_key] = infringement.id
            self._infringements[infringement.id] = infringement
        return infringement

    async def list_infringements(
        self, content_id: str, status: InfringementStatus | None = None,
    ) -> list[Infringement]:
        found = [
            i for i in self._infringements.values()
            if i.content_id == content_id and (status is None or i.status is status)
        ]
        return sorted(found, key=lambda i: i.detected_at, reverse=True)

    async def update_infringement_status(
        self, infringement_id: str, status: InfringementStatus,
    ) -> Infringement:
        async with self._lock:
            current = self._infringements.get(infringement_id)
            if current is None:
                raise RecordNotFoundError("Infringement", infringement_id)
            if not current.status.can_transition_to(status):
                raise InvalidStatusTransitionError(current.status.value, status.value)
            updated = current.model_copy(update={"status": status})
            self._infringements[infringement_id] = updated
        return updated

    async def count_infringements_by_status(
        self, content_id: str | None = None,
    ) -> dict[InfringementStatus, int]:
        counts: dict[InfringementStatus, int] = {}
        for i in self._infringements.values():
            if content_id is None or i.content_id == content_id:
                counts[i.status] = counts.get(i.status, 0) + 1
        return counts

    async def create_scan_job(
        self, content_id: str, scan_type: ScanType = ScanType.FULL,
    ) -> ScanJob:
        job = ScanJob(content_id=content_id, scan_type=scan_type)
        async with self._lock:
            self._jobs[job.id] = job
        return job

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
        check_final_status(status)
        async with self._lock:
            job = await self.get_scan_job(scan_job_id)
            if job.is_finalized:
                raise ScanJobAlreadyFinalizedError(scan_job_id, job.status.value)
            finalized = job.model_copy(
                update={
                    "status": status,
                    "completed_at": completed_at or utcnow(),
                    "results_count": results_count,
                    "infringements_found": infringements_found,
                    "error_message": error_message,
                }
            )
            self._jobs[scan_job_id] = finalized
        return finalized

    async def get_scan_job(self, scan_job_id: str) -> ScanJob:
        try:
            return self._jobs[scan_job_id]
        except KeyError:
            raise RecordNotFoundError("Scan job", scan_job_id) from None

    async def list_scan_jobs(self, content_id: str) -> list[ScanJob]:
        jobs = [j for j in self._jobs.values() if j.content_id == content_id]
        return sorted(jobs, key=lambda j: j.started_at)
