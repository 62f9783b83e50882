# src/cache/base_cache_store.py - v1
"""Abstract cache store interface.

Stores are dumb persistence: expiry decisions, hit accounting policy and
error degradation live in ``ResultCache``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from leakwatch.cache.models import CacheEntry


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by key."""

    @abstractmethod
    async def put(self, entry: CacheEntry) -> None:
        """Insert or wholesale replace the entry stored under ``entry.key``."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a cache entry. Returns True if something was removed."""

    @abstractmethod
    async def increment_hits(self, key: str) -> int:
        """Add one hit to an entry and return the new count (0 if absent)."""

    @abstractmethod
    async def delete_by_content(self, content_id: str) -> int:
        """Remove every entry belonging to ``content_id``."""

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Remove entries with ``expires_at < now``."""

    @abstractmethod
    async def count(self) -> int:
        """Number of stored entries."""

    @abstractmethod
    async def list_entries(self) -> list[CacheEntry]:
        """List all cached entries (for stats)."""

    def close(self) -> None:
        """Release backend resources. No-op by default."""
