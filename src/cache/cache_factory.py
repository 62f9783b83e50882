# src/cache/cache_factory.py - v1
"""Factory for cache store instantiation."""

from __future__ import annotations

from leakwatch.cache.base_cache_store import BaseCacheStore
from leakwatch.cache.result_cache import ResultCache
from leakwatch.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "json" if settings is None else settings.cache_backend
    cache_root = "~/.leakwatch/cache" if settings is None else str(settings.cache_root)

    if backend == "json":
        from leakwatch.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=cache_root)

    if backend == "sqlite":
        from leakwatch.cache.sqlite_store import SqliteCacheStore
        return SqliteCacheStore(db_path=f"{cache_root}/scan_cache.db")

    if backend == "redis":
        from leakwatch.cache.redis_store import RedisCacheStore
        if settings is None or not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(redis_url=settings.cache_redis_url)

    raise ValueError(f"Unsupported cache backend: {backend!r}")


def create_result_cache(settings: Settings | None = None) -> ResultCache | None:
    """Build the result cache, or None when caching is disabled."""
    if settings is not None and not settings.cache_enabled:
        return None
    ttl = 48 if settings is None else settings.cache_ttl_hours
    return ResultCache(create_cache_store(settings), ttl_hours=ttl)
