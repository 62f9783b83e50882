# tests/unit/api/test_unit_facade.py - v1
"""Tests for api/facade.py: wiring, resource release and cache maintenance."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from leakwatch.api import facade
from leakwatch.api.facade import (
    cache_stats,
    check_rate_limit,
    get_default_limiter,
    invalidate_cache,
    maintain_cache,
    run_due_scans,
    run_scan,
    stop_default_limiter,
    sweep_cache,
)
from leakwatch.cache.json_store import JsonCacheStore
from leakwatch.cache.result_cache import ResultCache
from leakwatch.config.settings import Settings
from leakwatch.core.errors import ContentNotFoundError
from leakwatch.core.models import SourceType
from leakwatch.ratelimit.limiter import RateLimitCategory, RateLimiter, RateLimitRule
from tests.fakes import FakeAdapter, make_torrent_candidate, make_web_candidate


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        cache_root=tmp_path / "cache",
        record_store_backend="memory",
    )


@pytest.fixture
def result_cache(tmp_path, clock):
    return ResultCache(JsonCacheStore(tmp_path / "injected"), clock=clock)


def _adapters():
    return {
        SourceType.WEB_SEARCH: FakeAdapter(SourceType.WEB_SEARCH),
        SourceType.MESSAGING: FakeAdapter(SourceType.MESSAGING),
        SourceType.TORRENT: FakeAdapter(SourceType.TORRENT, [make_torrent_candidate("magnet:?xt=1")]),
    }


class TestRunScan:
    @pytest.mark.asyncio
    async def test_injected_collaborators(self, settings, record_store):
        adapters = _adapters()
        found = await run_scan(
            "content_react", settings=settings, record_store=record_store, adapters=adapters,
        )
        assert found == 1
        assert not any(a.closed for a in adapters.values())

    @pytest.mark.asyncio
    async def test_built_adapters_are_closed(self, settings, record_store):
        adapters = _adapters()
        with patch.object(facade, "create_source_adapters", return_value=adapters) as factory:
            await run_scan("content_react", settings=settings, record_store=record_store)
        assert factory.call_args.kwargs["cache"] is not None
        assert all(a.closed for a in adapters.values())

    @pytest.mark.asyncio
    async def test_built_store_from_settings(self, settings):
        with pytest.raises(ContentNotFoundError):
            await run_scan("ghost", settings=settings, adapters={})


class TestRunDueScans:
    @pytest.mark.asyncio
    async def test_batch_size_from_settings(self, tmp_path, record_store):
        settings = Settings(_env_file=None, cache_root=tmp_path, due_scan_batch_size=1)
        report = await run_due_scans(
            settings=settings, record_store=record_store, adapters=_adapters(),
        )
        assert report.processed == 1
        assert report.results[0].content_id == "content_pro"


class TestCacheMaintenance:
    @pytest.mark.asyncio
    async def test_maintain_cache(self, result_cache, clock):
        await result_cache.put("c1", SourceType.WEB_SEARCH, [make_web_candidate("https://a")])
        clock.advance(hours=30)
        await result_cache.put("c2", SourceType.WEB_SEARCH, [])
        clock.advance(hours=20)

        report = await maintain_cache(result_cache=result_cache)

        assert report.cleanup.deleted == 1
        assert report.stats_before.total_entries == 2
        assert report.stats_after.total_entries == 1

    @pytest.mark.asyncio
    async def test_sweep_stats_invalidate(self, result_cache):
        await result_cache.put("c1", SourceType.WEB_SEARCH, [])
        await result_cache.put("c1", SourceType.TORRENT, [])
        assert (await cache_stats(result_cache=result_cache)).total_entries == 2
        assert (await sweep_cache(result_cache=result_cache)).deleted == 0
        assert await invalidate_cache("c1", result_cache=result_cache) == 2

    @pytest.mark.asyncio
    async def test_cache_from_settings(self, settings):
        stats = await cache_stats(settings=settings)
        assert stats.total_entries == 0
        assert (settings.cache_root).is_dir()

    @pytest.mark.asyncio
    async def test_cache_disabled(self, tmp_path):
        settings = Settings(_env_file=None, cache_enabled=False, cache_root=tmp_path / "off")
        assert (await sweep_cache(settings=settings)).deleted == 0
        assert (await cache_stats(settings=settings)).total_entries == 0
        assert await invalidate_cache("c1", settings=settings) == 0
        assert (await maintain_cache(settings=settings)).cleanup.remaining == 0
        assert not (tmp_path / "off").exists()


class TestRateLimit:
    def test_injected_limiter(self):
        limiter = RateLimiter({RateLimitCategory.SCAN: RateLimitRule(60, 1)})
        assert check_rate_limit("user:1", limiter=limiter).allowed is True
        assert check_rate_limit("user:1", limiter=limiter).allowed is False

    def test_default_limiter_shared(self):
        assert get_default_limiter() is get_default_limiter()
        decision = check_rate_limit("user:facade-test", RateLimitCategory.API)
        assert decision.remaining == 99

    def test_default_limiter_no_sweep_outside_event_loop(self, monkeypatch):
        monkeypatch.setattr(facade, "_default_limiter", None)
        assert get_default_limiter().sweeper_running is False

    @pytest.mark.asyncio
    async def test_default_limiter_starts_sweep_with_configured_interval(self, monkeypatch):
        monkeypatch.setattr(facade, "_default_limiter", None)
        settings = Settings(_env_file=None, rate_limit_sweep_interval_s=42)
        with patch.object(RateLimiter, "start_sweeper") as start:
            check_rate_limit("user:sweep", settings=settings)
        start.assert_called_once_with(42)

    @pytest.mark.asyncio
    async def test_default_limiter_sweep_runs_until_stopped(self, monkeypatch):
        monkeypatch.setattr(facade, "_default_limiter", None)
        limiter = get_default_limiter(Settings(_env_file=None))
        assert limiter.sweeper_running is True
        assert get_default_limiter() is limiter
        await stop_default_limiter()
        assert limiter.sweeper_running is False
