# src/cache/models.py - v1
"""Cache domain models: CacheEntry, CacheStats, SweepResult."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from leakwatch.core.models import CandidateResult, SourceType


class CacheEntry(BaseModel):
    """Snapshot of one adapter's final result list for one content item."""

    key: str
    content_id: str
    source_type: SourceType
    results: list[CandidateResult] = Field(default_factory=list)
    created_at: datetime
    expires_at: datetime
    hit_count: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class SweepResult(BaseModel):
    """Outcome of a batch removal of expired entries."""

    deleted: int = 0
    remaining: int = 0


class CacheStats(BaseModel):
    """Read-only aggregate over all cache entries."""

    total_entries: int = 0
    total_hits: int = 0
    by_source_type: dict[str, int] = Field(default_factory=dict)
    average_age_hours: float = 0.0
