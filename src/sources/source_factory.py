# src/sources/source_factory.py - v1
"""Factory: build the source adapters from settings.

Every source type always gets an adapter. Missing credentials produce a
disabled adapter (``is_available() is False``) that returns no results,
so configuration absence is never an error.
"""

from __future__ import annotations

import logging

import httpx

from leakwatch.cache.result_cache import ResultCache
from leakwatch.config.settings import Settings
from leakwatch.core.models import SourceType
from leakwatch.sources.base_source import BaseSourceAdapter
from leakwatch.sources.messaging import MessagingAdapter, MessagingClient, TelethonMessagingClient
from leakwatch.sources.torrent import TorrentIndexAdapter
from leakwatch.sources.torrent_sites import DEFAULT_SITES
from leakwatch.sources.web_search import WebSearchAdapter

logger = logging.getLogger(__name__)


def create_messaging_client(settings: Settings) -> MessagingClient | None:
    """Telethon client when a session is configured, else None."""
    if not settings.telegram_configured:
        return None
    return TelethonMessagingClient(
        api_id=settings.telegram_api_id,
        api_hash=settings.telegram_api_hash,
        session=settings.telegram_session,
        connection_retries=settings.telegram_connection_retries,
    )


def create_source_adapters(
    settings: Settings,
    cache: ResultCache | None = None,
    messaging_client: MessagingClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[SourceType, BaseSourceAdapter]:
    """Instantiate one adapter per source type.

    Args:
        settings: Application settings (credentials and limits).
        cache: Result cache used by the web search adapter.
        messaging_client: Pre-built messaging handle; built from settings if None.
        http_client: Shared HTTP client; each adapter owns its own if None.

    Returns:
        Mapping of source type to adapter, in scan order.
    """
    disabled = set(settings.torrent_disabled_sites_list)
    sites = [s for s in DEFAULT_SITES if s.name.lower() not in disabled]
    if disabled:
        logger.debug("Torrent sites disabled: %s", ", ".join(sorted(disabled)))
    if not settings.web_search_configured:
        logger.info("Web search disabled: GOOGLE_CSE_API_KEY and GOOGLE_CSE_ID not set")

    if messaging_client is None:
        messaging_client = create_messaging_client(settings)

    return {
        SourceType.WEB_SEARCH: WebSearchAdapter(
            settings.google_cse_api_key,
            settings.google_cse_id,
            cache=cache,
            endpoint=settings.google_cse_endpoint,
            page_size=settings.web_search_page_size,
            max_results=settings.web_search_max_results,
            query_delay_ms=settings.web_search_query_delay_ms,
            timeout_s=settings.web_search_timeout_s,
            threshold=settings.confidence_threshold,
            client=http_client,
        ),
        SourceType.MESSAGING: MessagingAdapter(
            messaging_client, search_limit=settings.telegram_search_limit,
        ),
        SourceType.TORRENT: TorrentIndexAdapter(
            sites,
            per_site_limit=settings.torrent_per_site_limit,
            max_results=settings.torrent_max_results,
            request_timeout_s=settings.torrent_request_timeout_s,
            query_delay_ms=settings.torrent_query_delay_ms,
            user_agent=settings.torrent_user_agent,
            threshold=settings.confidence_threshold,
            client=http_client,
        ),
    }
