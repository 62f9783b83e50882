# src/scan/orchestrator.py - v1
"""Scan orchestrator: one detection run for one protected content item.

Workflow:
    1. Create a ScanJob in ``running`` state.
    2. Load the content and its owner's entitlement.
    3. Run the enabled adapters in scan order; an adapter that raises is
       logged and contributes no results.
    4. Persist candidates idempotently by (content_id, source_url).
    5. Finalize the job as ``completed`` and stamp the content as scanned.

Any failure outside the adapters finalizes the job as ``failed`` and is
surfaced: ``ContentNotFoundError`` as-is, everything else wrapped in
``ScanFailedError``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime

from leakwatch.core.errors import (
    ContentNotFoundError,
    DuplicateInfringementError,
    ScanFailedError,
)
from leakwatch.core.models import (
    CandidateResult,
    Infringement,
    MessagingCandidate,
    ProtectedContent,
    ScanJob,
    ScanStatus,
    ScanType,
    SourceType,
    utcnow,
)
from leakwatch.logging.context import clear_context, set_scan_context, set_source_context
from leakwatch.scan.policy import (
    RecordStoreSubscriptionLookup,
    SubscriptionLookup,
    enabled_sources,
)
from leakwatch.sources.base_source import BaseSourceAdapter
from leakwatch.storage.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)


class ScanOrchestrator:
    """Runs adapters for a content item and owns all infringement persistence."""

    def __init__(
        self,
        store: BaseRecordStore,
        adapters: Mapping[SourceType, BaseSourceAdapter],
        subscriptions: SubscriptionLookup | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._adapters = dict(adapters)
        self._subscriptions = subscriptions or RecordStoreSubscriptionLookup(store)
        self._clock = clock

    @property
    def store(self) -> BaseRecordStore:
        return self._store

    async def run_scan(self, content_id: str, scan_type: ScanType = ScanType.FULL) -> int:
        """Run a full detection pass.

        Returns:
            Number of newly created infringements.

        Raises:
            ContentNotFoundError: The content does not exist.
            ScanFailedError: Any other failure outside adapter boundaries.
        """
        job = await self._store.create_scan_job(content_id, scan_type)
        set_scan_context(content_id, job.id)
        logger.info("Scan started (%s)", scan_type.value)
        try:
            content = await self._store.get_content(content_id)
            entitled = await self._subscriptions.has_web_search(content.owner_id)
            sources = enabled_sources(entitled)
            if not entitled:
                logger.info("Web search not included in plan, skipping")

            results_count = 0
            new_count = 0
            for source_type in sources:
                adapter = self._adapters.get(source_type)
                if adapter is None:
                    continue
                candidates = await self._run_adapter(adapter, content)
                results_count += len(candidates)
                new_count += await self.persist_candidates(content.id, candidates)

            now = self._clock()
            await self._store.finalize_scan_job(
                job.id,
                ScanStatus.COMPLETED,
                results_count=results_count,
                infringements_found=new_count,
                completed_at=now,
            )
            await self._store.mark_content_scanned(content.id, now)
            logger.info(
                "Scan completed: %d results, %d new infringements",
                results_count, new_count,
            )
            return new_count
        except Exception as exc:
            await self._fail(job, exc)
            if isinstance(exc, ContentNotFoundError):
                raise
            raise ScanFailedError(content_id, job.id, exc) from exc
        finally:
            clear_context()

    async def persist_candidates(
        self, content_id: str, candidates: Iterable[CandidateResult],
    ) -> int:
        """Create ``detected`` infringements for unseen URLs.

        Existing rows are never touched. A uniqueness conflict from a
        concurrent scan counts as already present.
        """
        created = 0
        for candidate in candidates:
            if await self._store.find_infringement(content_id, candidate.source_url):
                continue
            record = Infringement.from_candidate(
                content_id, candidate, self._detected_at(candidate),
            )
            try:
                await self._store.create_infringement(record)
            except DuplicateInfringementError:
                logger.debug("Infringement already recorded: %s", candidate.source_url)
                continue
            created += 1
        return created

    def _detected_at(self, candidate: CandidateResult) -> datetime:
        """Message date for channel posts, scan time otherwise."""
        if isinstance(candidate, MessagingCandidate) and candidate.posted_at is not None:
            return candidate.posted_at
        return self._clock()

    async def _run_adapter(
        self, adapter: BaseSourceAdapter, content: ProtectedContent,
    ) -> list[CandidateResult]:
        set_source_context(adapter.source_type.value)
        try:
            results = list(await adapter.search(content))
        except Exception:
            logger.exception("Adapter %s failed, continuing", adapter.source_type.value)
            return []
        finally:
            set_source_context(None)
        logger.info("Adapter %s returned %d results", adapter.source_type.value, len(results))
        return results

    async def _fail(self, job: ScanJob, exc: Exception) -> None:
        logger.error("Scan failed: %s", exc)
        try:
            await self._store.finalize_scan_job(
                job.id,
                ScanStatus.FAILED,
                error_message=str(exc) or type(exc).__name__,
                completed_at=self._clock(),
            )
        except Exception:
            logger.exception("Could not mark scan job %s as failed", job.id)

    async def close(self) -> None:
        for adapter in self._adapters.values():
            await adapter.close()
