# src/cache/redis_store.py - v1
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install leakwatch[redis].
Suitable for multi-instance deployments sharing one cache.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import ValidationError

from leakwatch.cache.base_cache_store import BaseCacheStore
from leakwatch.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_KEY_PREFIX = "leakwatch:cache:"
_INDEX_KEY = "leakwatch:cache:__index__"
_CONTENT_INDEX_PREFIX = "leakwatch:cache:content:"
_HITS_SUFFIX = ":hits"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store.

    The entry body and its hit counter are separate keys so hits can use
    atomic INCR.
    """

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install leakwatch[redis]"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> CacheEntry | None:
        data = self._client.get(f"{_KEY_PREFIX}{key}")
        if data is None:
            return None
        try:
            entry = CacheEntry.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None
        hits = self._client.get(f"{_KEY_PREFIX}{key}{_HITS_SUFFIX}")
        entry.hit_count = int(hits or 0)
        return entry

    async def put(self, entry: CacheEntry) -> None:
        redis_key = f"{_KEY_PREFIX}{entry.key}"
        self._client.set(redis_key, entry.model_dump_json())
        self._client.set(f"{redis_key}{_HITS_SUFFIX}", entry.hit_count)
        self._client.sadd(_INDEX_KEY, entry.key)
        self._client.sadd(f"{_CONTENT_INDEX_PREFIX}{entry.content_id}", entry.key)

    async def delete(self, key: str) -> bool:
        entry = await self.get(key)
        removed = self._client.delete(
            f"{_KEY_PREFIX}{key}", f"{_KEY_PREFIX}{key}{_HITS_SUFFIX}"
        )
        self._client.srem(_INDEX_KEY, key)
        if entry is not None:
            self._client.srem(f"{_CONTENT_INDEX_PREFIX}{entry.content_id}", key)
        return bool(removed)

    async def increment_hits(self, key: str) -> int:
        if not self._client.exists(f"{_KEY_PREFIX}{key}"):
            return 0
        return int(self._client.incr(f"{_KEY_PREFIX}{key}{_HITS_SUFFIX}"))

    async def delete_by_content(self, content_id: str) -> int:
        index_key = f"{_CONTENT_INDEX_PREFIX}{content_id}"
        deleted = 0
        for key in self._client.smembers(index_key):
            if await self.delete(key):
                deleted += 1
        self._client.delete(index_key)
        return deleted

    async def delete_expired(self, now: datetime) -> int:
        deleted = 0
        for entry in await self.list_entries():
            if entry.expires_at < now and await self.delete(entry.key):
                deleted += 1
        return deleted

    async def count(self) -> int:
        return int(self._client.scard(_INDEX_KEY))

    async def list_entries(self) -> list[CacheEntry]:
        entries: list[CacheEntry] = []
        for key in self._client.smembers(_INDEX_KEY):
            entry = await self.get(key)
            if entry is not None:
                entries.append(entry)
        return entries

    def close(self) -> None:
        self._client.close()
