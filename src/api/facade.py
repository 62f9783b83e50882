# src/api/facade.py - v1
"""Public API facade: entry points for route handlers, cron triggers and the CLI.

Usage:
    from leakwatch.api.facade import run_scan
    new_count = await run_scan(content_id)

Every function accepts already-built collaborators. Anything not injected
is created from settings and released before returning.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from contextlib import AsyncExitStack
from datetime import datetime

from leakwatch.api.models import CacheMaintenanceReport, DueScanReport
from leakwatch.cache.cache_factory import create_result_cache
from leakwatch.cache.models import CacheStats, SweepResult
from leakwatch.cache.result_cache import ResultCache
from leakwatch.config.settings import Settings
from leakwatch.core.models import ScanType, SourceType, utcnow
from leakwatch.ratelimit.limiter import RateLimitCategory, RateLimitDecision, RateLimiter
from leakwatch.scan.orchestrator import ScanOrchestrator
from leakwatch.scan.scheduler import DueScanRunner
from leakwatch.sources.base_source import BaseSourceAdapter
from leakwatch.sources.source_factory import create_source_adapters
from leakwatch.storage.base_record_store import BaseRecordStore
from leakwatch.storage.store_factory import create_record_store

logger = logging.getLogger(__name__)

_default_limiter: RateLimiter | None = None


async def run_scan(
    content_id: str,
    settings: Settings | None = None,
    record_store: BaseRecordStore | None = None,
    result_cache: ResultCache | None = None,
    adapters: Mapping[SourceType, BaseSourceAdapter] | None = None,
    scan_type: ScanType = ScanType.FULL,
) -> int:
    """Scan one content item across all entitled sources.

    Args:
        content_id: Protected content to scan.
        settings: Global settings. Loaded from .env if None.
        record_store: Persistence backend. Built from settings if None.
        result_cache: Web search result cache. Built from settings if None.
        adapters: Source adapters by type. Built from settings if None.
        scan_type: Recorded on the scan job.

    Returns:
        Number of newly created infringements.

    Raises:
        ContentNotFoundError: The content does not exist.
        ScanFailedError: Unrecoverable internal failure.
    """
    settings = settings or Settings()
    async with AsyncExitStack() as stack:
        orchestrator = _build_orchestrator(
            stack, settings, record_store, result_cache, adapters,
        )
        return await orchestrator.run_scan(content_id, scan_type)


async def run_due_scans(
    settings: Settings | None = None,
    record_store: BaseRecordStore | None = None,
    result_cache: ResultCache | None = None,
    adapters: Mapping[SourceType, BaseSourceAdapter] | None = None,
    now: datetime | None = None,
) -> DueScanReport:
    """Scan every daily/weekly item that is due, one batch per call."""
    settings = settings or Settings()
    async with AsyncExitStack() as stack:
        orchestrator = _build_orchestrator(
            stack, settings, record_store, result_cache, adapters,
        )
        runner = DueScanRunner(orchestrator, batch_size=settings.due_scan_batch_size)
        return await runner.run_due_scans(now)


async def sweep_cache(
    settings: Settings | None = None, result_cache: ResultCache | None = None,
) -> SweepResult:
    """Delete expired cache entries."""
    async with AsyncExitStack() as stack:
        cache = _resolve_cache(stack, settings, result_cache)
        return await cache.sweep_expired() if cache else SweepResult()


async def cache_stats(
    settings: Settings | None = None, result_cache: ResultCache | None = None,
) -> CacheStats:
    async with AsyncExitStack() as stack:
        cache = _resolve_cache(stack, settings, result_cache)
        return await cache.stats() if cache else CacheStats()


async def invalidate_cache(
    content_id: str,
    settings: Settings | None = None,
    result_cache: ResultCache | None = None,
) -> int:
    """Drop cached results of a content item after its title or keywords change."""
    async with AsyncExitStack() as stack:
        cache = _resolve_cache(stack, settings, result_cache)
        return await cache.invalidate(content_id) if cache else 0


async def maintain_cache(
    settings: Settings | None = None, result_cache: ResultCache | None = None,
) -> CacheMaintenanceReport:
    """Sweep expired entries and report stats before and after."""
    async with AsyncExitStack() as stack:
        cache = _resolve_cache(stack, settings, result_cache)
        if cache is None:
            return CacheMaintenanceReport(
                cleanup=SweepResult(), stats_before=CacheStats(), stats_after=CacheStats(),
            )
        logger.info("Starting cache cleanup")
        before = await cache.stats()
        cleanup = await cache.sweep_expired()
        after = await cache.stats()
        logger.info(
            "Cache cleanup complete: %d deleted, %d remaining",
            cleanup.deleted, cleanup.remaining,
        )
        return CacheMaintenanceReport(
            cleanup=cleanup, stats_before=before, stats_after=after, timestamp=utcnow(),
        )


def check_rate_limit(
    identity: str,
    category: RateLimitCategory | str = RateLimitCategory.SCAN,
    limiter: RateLimiter | None = None,
    settings: Settings | None = None,
) -> RateLimitDecision:
    """Guard for callers; check the ``scan`` category before ``run_scan``."""
    return (limiter or get_default_limiter(settings)).check(identity, category)


def get_default_limiter(settings: Settings | None = None) -> RateLimiter:
    """Process-wide limiter shared by callers that do not inject their own.

    Called from inside a running event loop, it also starts the background
    sweep with a period of ``rate_limit_sweep_interval_s``.
    """
    global _default_limiter
    if _default_limiter is None:
        _default_limiter = RateLimiter()
    if not _default_limiter.sweeper_running and _in_event_loop():
        interval = (settings or Settings()).rate_limit_sweep_interval_s
        _default_limiter.start_sweeper(interval)
        logger.debug("Rate limiter sweep started (every %ds)", interval)
    return _default_limiter


async def stop_default_limiter() -> None:
    """Stop the background sweep of the process-wide limiter."""
    if _default_limiter is not None:
        await _default_limiter.stop_sweeper()


def _in_event_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


# --- Wiring ---


def _build_orchestrator(
    stack: AsyncExitStack,
    settings: Settings,
    record_store: BaseRecordStore | None,
    result_cache: ResultCache | None,
    adapters: Mapping[SourceType, BaseSourceAdapter] | None,
) -> ScanOrchestrator:
    if record_store is None:
        record_store = create_record_store(settings)
        stack.callback(record_store.close)

    if adapters is None:
        if result_cache is None:
            result_cache = create_result_cache(settings)
            if result_cache is not None:
                stack.callback(result_cache.close)
        adapters = create_source_adapters(settings, cache=result_cache)
        for adapter in adapters.values():
            stack.push_async_callback(adapter.close)

    return ScanOrchestrator(record_store, adapters)


def _resolve_cache(
    stack: AsyncExitStack,
    settings: Settings | None,
    result_cache: ResultCache | None,
) -> ResultCache | None:
    if result_cache is not None:
        return result_cache
    cache = create_result_cache(settings or Settings())
    if cache is None:
        logger.info("Result cache disabled")
        return None
    stack.callback(cache.close)
    return cache
