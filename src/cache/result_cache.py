# src/cache/result_cache.py - v1
"""Content/source keyed cache of adapter outputs.

Applies key derivation, TTL, eviction-on-read and hit counting on top of any
``BaseCacheStore``. Every store failure degrades to a miss (reads) or a
logged no-op (writes); the cache never fails a scan.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from leakwatch.cache.base_cache_store import BaseCacheStore
from leakwatch.cache.cache_key import generate_cache_key
from leakwatch.cache.models import CacheEntry, CacheStats, SweepResult
from leakwatch.core.models import CandidateResult, SourceType, utcnow

logger = logging.getLogger(__name__)

CACHE_TTL_HOURS = 48


class ResultCache:
    """Expiring snapshot cache keyed by (content_id, source_type)."""

    def __init__(
        self,
        store: BaseCacheStore,
        ttl_hours: int = CACHE_TTL_HOURS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._ttl = timedelta(hours=ttl_hours)
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    async def get(
        self, content_id: str, source_type: SourceType,
    ) -> list[CandidateResult] | None:
        """Return the cached snapshot, or None on miss / expiry / store error."""
        key = generate_cache_key(content_id, source_type)
        try:
            entry = await self._store.get(key)
            if entry is None:
                logger.info("Cache MISS for %s on content %s", source_type.value, content_id[:8])
                return None

            if entry.is_expired(self._clock()):
                logger.info("Cache EXPIRED for %s on content %s", source_type.value, content_id[:8])
                await self._store.delete(key)
                return None

            hits = await self._store.increment_hits(key)
        except Exception:
            logger.exception("Cache read failed for %s on content %s", source_type.value, content_id[:8])
            return None

        logger.info(
            "Cache HIT for %s on content %s (%d hits)",
            source_type.value, content_id[:8], hits,
        )
        return list(entry.results)

    async def put(
        self,
        content_id: str,
        source_type: SourceType,
        results: Sequence[CandidateResult],
    ) -> None:
        """Upsert the snapshot; resets hits and restarts the TTL."""
        now = self._clock()
        entry = CacheEntry(
            key=generate_cache_key(content_id, source_type),
            content_id=content_id,
            source_type=source_type,
            results=list(results),
            created_at=now,
            expires_at=now + self._ttl,
            hit_count=0,
        )
        try:
            await self._store.put(entry)
        except Exception:
            logger.exception("Cache write failed for %s on content %s", source_type.value, content_id[:8])
            return
        logger.info(
            "Cache STORED %d %s results for content %s (expires in %dh)",
            len(entry.results), source_type.value, content_id[:8],
            int(self._ttl.total_seconds() // 3600),
        )

    async def invalidate(self, content_id: str) -> int:
        """Drop all entries for a content item (e.g. after its title changed)."""
        try:
            deleted = await self._store.delete_by_content(content_id)
        except Exception:
            logger.exception("Cache invalidation failed for content %s", content_id[:8])
            return 0
        logger.info("Cache INVALIDATED %d entries for content %s", deleted, content_id[:8])
        return deleted

    async def sweep_expired(self) -> SweepResult:
        """Batch-delete expired entries. Meant for periodic maintenance."""
        try:
            deleted = await self._store.delete_expired(self._clock())
            remaining = await self._store.count()
        except Exception:
            logger.exception("Cache sweep failed")
            return SweepResult()
        logger.info("Cache sweep deleted %d expired entries, %d remaining", deleted, remaining)
        return SweepResult(deleted=deleted, remaining=remaining)

    async def stats(self) -> CacheStats:
        try:
            entries = await self._store.list_entries()
        except Exception:
            logger.exception("Cache stats failed")
            return CacheStats()

        now = self._clock()
        by_source_type: dict[str, int] = {}
        total_hits = 0
        total_age_s = 0.0
        for entry in entries:
            source = entry.source_type.value
            by_source_type[source] = by_source_type.get(source, 0) + 1
            total_hits += entry.hit_count
            total_age_s += (now - entry.created_at).total_seconds()

        return CacheStats(
            total_entries=len(entries),
            total_hits=total_hits,
            by_source_type=by_source_type,
            average_age_hours=(total_age_s / len(entries) / 3600) if entries else 0.0,
        )

    def close(self) -> None:
        self._store.close()
