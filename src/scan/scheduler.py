# src/scan/scheduler.py - v1
"""Scheduled scans for content with a daily or weekly frequency.

Meant to be triggered periodically (cron). Each due item is scanned on its
own; a failure is recorded in that item's result and the batch continues.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from leakwatch.api.models import DueScanItem, DueScanReport
from leakwatch.core.models import ScanFrequency, ScanType, utcnow
from leakwatch.scan.orchestrator import ScanOrchestrator

logger = logging.getLogger(__name__)

SCAN_INTERVALS: dict[ScanFrequency, timedelta] = {
    ScanFrequency.DAILY: timedelta(days=1),
    ScanFrequency.WEEKLY: timedelta(days=7),
}


def next_scan_time(frequency: ScanFrequency, now: datetime) -> datetime | None:
    """Next due time for a frequency; None for manual content."""
    interval = SCAN_INTERVALS.get(frequency)
    return now + interval if interval else None


class DueScanRunner:
    """Runs scans for due content, at most ``batch_size`` per invocation."""

    def __init__(
        self,
        orchestrator: ScanOrchestrator,
        batch_size: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._orchestrator = orchestrator
        self._store = orchestrator.store
        self._batch_size = batch_size
        self._clock = clock

    async def run_due_scans(self, now: datetime | None = None) -> DueScanReport:
        now = now or self._clock()
        due = await self._store.list_due_content(now, self._batch_size)
        logger.info("Found %d items due for scanning", len(due))

        report = DueScanReport()
        for content in due:
            try:
                found = await self._orchestrator.run_scan(content.id, ScanType.SCHEDULED)
                next_at = next_scan_time(content.scan_frequency, now)
                if next_at is not None:
                    await self._store.schedule_next_scan(content.id, next_at)
                item = DueScanItem(
                    content_id=content.id,
                    title=content.title,
                    status="scanned",
                    found=found,
                    next_scan_at=next_at,
                )
            except Exception as e:
                logger.error("Failed to scan content %s: %s", content.id, e)
                item = DueScanItem(
                    content_id=content.id,
                    title=content.title,
                    status="failed",
                    error=str(e),
                )
            report.results.append(item)

        report.processed = len(report.results)
        return report
