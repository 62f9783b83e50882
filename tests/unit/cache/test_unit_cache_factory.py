# tests/unit/cache/test_unit_cache_factory.py - v1
"""Tests for cache/cache_factory.py."""

from __future__ import annotations

import pytest

from leakwatch.cache.cache_factory import create_cache_store, create_result_cache
from leakwatch.cache.json_store import JsonCacheStore
from leakwatch.cache.result_cache import ResultCache
from leakwatch.cache.sqlite_store import SqliteCacheStore
from leakwatch.config.settings import Settings


class TestCreateCacheStore:
    def test_json_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="json", cache_root=tmp_path)
        assert isinstance(create_cache_store(s), JsonCacheStore)

    def test_sqlite_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="sqlite", cache_root=tmp_path)
        store = create_cache_store(s)
        assert isinstance(store, SqliteCacheStore)
        assert (tmp_path / "scan_cache.db").exists()
        store.close()

    def test_redis_requires_url(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="redis", cache_root=tmp_path)
        with pytest.raises(ValueError, match="CACHE_REDIS_URL"):
            create_cache_store(s)


class TestCreateResultCache:
    def test_disabled(self, tmp_path):
        s = Settings(_env_file=None, cache_enabled=False, cache_root=tmp_path)
        assert create_result_cache(s) is None

    def test_ttl_from_settings(self, tmp_path):
        s = Settings(_env_file=None, cache_root=tmp_path, cache_ttl_hours=12)
        cache = create_result_cache(s)
        assert isinstance(cache, ResultCache)
        assert cache.ttl.total_seconds() == 12 * 3600
