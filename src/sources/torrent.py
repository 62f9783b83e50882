# src/sources/torrent.py - v1
"""Torrent index source adapter.

For every query, all configured sites are searched concurrently. Each site
call is bounded by its own timeout and its failures stay local: a slow or
dead index yields no listings and never delays or fails the others.

Listings are merged, ranked by seeders and capped per query, then scored
with the torrent scoring function. Only candidates at or above the
confidence threshold are returned; persistence happens in the orchestrator.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from leakwatch.core.models import (
    CandidateResult,
    ContentType,
    ProtectedContent,
    SourceType,
    TorrentCandidate,
)
from leakwatch.scoring.confidence import (
    CONFIDENCE_THRESHOLD,
    meets_threshold,
    score_torrent_result,
)
from leakwatch.sources.base_source import BaseSourceAdapter
from leakwatch.sources.torrent_sites import (
    DEFAULT_SITES,
    TorrentListing,
    TorrentSite,
    parse_html,
    parse_json,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

SleepFn = Callable[[float], Awaitable[Any]]


def build_queries(content: ProtectedContent) -> list[str]:
    """Title, title + download, title + type hint, first keyword + first title word."""
    title = content.title
    type_hint = "pdf" if ContentType(content.content_type) is ContentType.PDF else "course"
    queries = [title, f"{title} download", f"{title} {type_hint}"]
    if content.keywords:
        queries.append(f"{content.keywords[0]} {title.split()[0]}")
    return queries


def to_candidate(listing: TorrentListing, confidence: int = 0) -> TorrentCandidate:
    if listing.seeders:
        snippet = f"Seeders: {listing.seeders}, Leechers: {listing.leechers or 0}"
        if listing.size:
            snippet += f", Size: {listing.size}"
    else:
        snippet = f"Found on {listing.site_name}"
    return TorrentCandidate(
        source_url=listing.link,
        source_domain=listing.site_name.lower(),
        title=f"[{listing.site_name}] {listing.title}",
        snippet=snippet,
        confidence=confidence,
        site_name=listing.site_name,
        torrent_title=listing.title,
        seeders=listing.seeders,
        leechers=listing.leechers,
        size=None if listing.size is None else str(listing.size),
    )


class TorrentIndexAdapter(BaseSourceAdapter):
    """Fan-out search across torrent indexes."""

    def __init__(
        self,
        sites: Sequence[TorrentSite] = DEFAULT_SITES,
        *,
        per_site_limit: int = 10,
        max_results: int = 20,
        request_timeout_s: float = 10.0,
        query_delay_ms: int = 500,
        user_agent: str = DEFAULT_USER_AGENT,
        threshold: int = CONFIDENCE_THRESHOLD,
        client: httpx.AsyncClient | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._sites = [s for s in sites if s.enabled]
        self._per_site_limit = per_site_limit
        self._max_results = max_results
        self._request_timeout_s = request_timeout_s
        self._query_delay_s = query_delay_ms / 1000
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/json",
        }
        self._threshold = threshold
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    @property
    def source_type(self) -> SourceType:
        return SourceType.TORRENT

    @property
    def sites(self) -> list[TorrentSite]:
        return list(self._sites)

    def is_available(self) -> bool:
        return bool(self._sites)

    async def search(self, content: ProtectedContent) -> list[CandidateResult]:
        results: list[CandidateResult] = []
        seen_links: set[str] = set()

        for index, query in enumerate(build_queries(content)):
            if index:
                await self._sleep(self._query_delay_s)
            for listing in await self.search_all(query):
                if listing.link in seen_links:
                    continue
                seen_links.add(listing.link)
                try:
                    candidate = to_candidate(listing)
                except ValidationError as e:
                    logger.warning("Skipping unusable %s listing: %s", listing.site_name, e)
                    continue
                score = score_torrent_result(candidate, content.title, content.keywords)
                if meets_threshold(score, self._threshold):
                    results.append(candidate.model_copy(update={"confidence": score}))

        logger.info("Torrent search found %d candidates", len(results))
        return results

    async def search_all(self, query: str) -> list[TorrentListing]:
        """Query every site in parallel, merge by seeders descending, cap."""
        outcomes = await asyncio.gather(
            *(self.search_site(site, query) for site in self._sites),
            return_exceptions=True,
        )
        merged: list[TorrentListing] = []
        for site, outcome in zip(self._sites, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Error searching %s: %r", site.name, outcome)
                continue
            merged.extend(outcome)
        merged.sort(key=lambda listing: listing.seeders or 0, reverse=True)
        return merged[: self._max_results]

    async def search_site(self, site: TorrentSite, query: str) -> list[TorrentListing]:
        """Search one site. Transport and payload failures yield an empty list."""
        url = site.build_url(query)
        try:
            resp = await asyncio.wait_for(
                self._get_client().get(url, headers=self._headers),
                timeout=self._request_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("%s request timed out", site.name)
            return []
        except httpx.HTTPError as e:
            logger.warning("%s search failed: %s", site.name, e)
            return []

        if not resp.is_success:
            logger.warning("%s returned %d", site.name, resp.status_code)
            return []

        try:
            if site.shape == "json":
                listings = parse_json(site, resp.text)
            else:
                listings = parse_html(site, url, resp.text, query)
        except (ValueError, TypeError) as e:
            logger.warning("%s returned an unreadable payload: %s", site.name, e)
            return []

        return listings[: self._per_site_limit]

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._request_timeout_s),
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
