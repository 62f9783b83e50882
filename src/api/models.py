# src/api/models.py - v1
"""API-level report models returned by the facade and the scheduler."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from leakwatch.cache.models import CacheStats, SweepResult
from leakwatch.core.models import utcnow


class DueScanItem(BaseModel):
    """Outcome of one scheduled scan."""

    content_id: str
    title: str
    status: Literal["scanned", "failed"]
    found: int = 0
    next_scan_at: datetime | None = None
    error: str | None = None


class DueScanReport(BaseModel):
    """Return value of a scheduled scan batch."""

    processed: int = 0
    results: list[DueScanItem] = Field(default_factory=list)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == "failed")


class CacheMaintenanceReport(BaseModel):
    """Return value of facade.maintain_cache()."""

    cleanup: SweepResult
    stats_before: CacheStats
    stats_after: CacheStats
    timestamp: datetime = Field(default_factory=utcnow)
