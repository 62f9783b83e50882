# src/sources/web_search.py - v1
"""Search-engine source adapter (Google Custom Search JSON API).

Issues three compound queries per content item, each OR-ing several piracy
patterns together to keep the number of billed API calls low:

1. general piracy phrases around the exact title;
2. content-type specific phrases (video vs document);
3. up to three content keywords combined with download phrases.

The result cache is consulted before any network call and populated once
with the final thresholded, sorted and capped list.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import urlparse

import httpx

from leakwatch.cache.result_cache import ResultCache
from leakwatch.core.models import (
    CandidateResult,
    ContentType,
    ProtectedContent,
    SourceType,
    WebSearchCandidate,
)
from leakwatch.scoring.confidence import (
    CONFIDENCE_THRESHOLD,
    meets_threshold,
    score_web_result,
)
from leakwatch.sources.base_source import BaseSourceAdapter

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://www.googleapis.com/customsearch/v1"

_GENERAL_PATTERNS = (
    '"free download"',
    "torrent",
    '"telegram channel"',
    "mega.nz",
    '"google drive"',
)

_TYPE_PATTERNS: dict[ContentType, tuple[str, ...]] = {
    ContentType.VIDEO: (
        '"download mp4"',
        '"full course free"',
        "1080p",
        '"udemy rip"',
        '"course videos mega"',
    ),
    ContentType.PDF: (
        '"pdf free download"',
        "ebook",
        "libgen",
        '"workbook free pdf"',
        '"course materials pdf"',
    ),
}

_KEYWORD_PATTERNS: dict[ContentType, tuple[str, ...]] = {
    ContentType.VIDEO: ('"free download"', '"course video"'),
    ContentType.PDF: ('"pdf free download"', "ebook"),
}

MAX_QUERY_KEYWORDS = 3

SleepFn = Callable[[float], Awaitable[Any]]


def _any_of(patterns: tuple[str, ...] | list[str]) -> str:
    return "(" + " OR ".join(patterns) + ")"


def build_queries(content: ProtectedContent) -> list[str]:
    """Return the three compound queries for ``content``."""
    title = f'"{content.title}"'
    content_type = ContentType(content.content_type)
    keywords = [f'"{k}"' for k in content.keywords[:MAX_QUERY_KEYWORDS]]
    return [
        f"{title} {_any_of(_GENERAL_PATTERNS)}",
        f"{title} {_any_of(_TYPE_PATTERNS[content_type])}",
        f"{_any_of(keywords)} {_any_of(_KEYWORD_PATTERNS[content_type])}",
    ]


def _normalize_host(host: str | None) -> str:
    host = (host or "").lower()
    return host[4:] if host.startswith("www.") else host


def is_self_match(url: str, original_url: str) -> bool:
    """True when ``url`` lives on the original host or one of its subdomains."""
    own = _normalize_host(urlparse(original_url).hostname)
    if not own:
        return False
    host = _normalize_host(urlparse(url).hostname)
    return host == own or host.endswith("." + own)


class WebSearchAdapter(BaseSourceAdapter):
    """Google Custom Search adapter with result caching and query pacing."""

    def __init__(
        self,
        api_key: str,
        search_engine_id: str,
        *,
        cache: ResultCache | None = None,
        endpoint: str = DEFAULT_ENDPOINT,
        page_size: int = 10,
        max_results: int = 20,
        query_delay_ms: int = 200,
        timeout_s: float = 15.0,
        threshold: int = CONFIDENCE_THRESHOLD,
        client: httpx.AsyncClient | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._api_key = api_key
        self._search_engine_id = search_engine_id
        self._cache = cache
        self._endpoint = endpoint
        self._page_size = page_size
        self._max_results = max_results
        self._query_delay_s = query_delay_ms / 1000
        self._timeout = httpx.Timeout(timeout_s)
        self._threshold = threshold
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    @property
    def source_type(self) -> SourceType:
        return SourceType.WEB_SEARCH

    def is_available(self) -> bool:
        return bool(self._api_key and self._search_engine_id)

    async def search(self, content: ProtectedContent) -> list[CandidateResult]:
        if not self.is_available():
            logger.warning("Google CSE not configured, skipping web search")
            return []

        if self._cache is not None:
            cached = await self._cache.get(content.id, self.source_type)
            if cached is not None:
                return cached

        results: list[WebSearchCandidate] = []
        seen_urls: set[str] = set()
        succeeded = 0
        queries = build_queries(content)

        for index, query in enumerate(queries):
            if index:
                await self._sleep(self._query_delay_s)
            items = await self._fetch(query)
            if items is None:
                continue
            succeeded += 1
            for item in items:
                candidate = self._to_candidate(item)
                if candidate is None or candidate.source_url in seen_urls:
                    continue
                seen_urls.add(candidate.source_url)
                if is_self_match(candidate.source_url, content.original_url):
                    continue
                score = score_web_result(
                    candidate, content.title, content.keywords, content.content_type,
                )
                if meets_threshold(score, self._threshold):
                    results.append(candidate.model_copy(update={"confidence": score}))

        # Stable sort keeps encounter order among equal scores.
        results.sort(key=lambda c: c.confidence, reverse=True)
        final: list[CandidateResult] = list(results[: self._max_results])

        if succeeded and self._cache is not None:
            await self._cache.put(content.id, self.source_type, final)

        logger.info(
            "Web search found %d candidates (%d/%d queries ok)",
            len(final), succeeded, len(queries),
        )
        return final

    async def _fetch(self, query: str) -> list[dict[str, Any]] | None:
        """Run one API call. None signals a transport or payload failure."""
        params = {
            "key": self._api_key,
            "cx": self._search_engine_id,
            "q": query,
            "num": str(self._page_size),
        }
        try:
            resp = await self._get_client().get(self._endpoint, params=params)
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.RequestError, httpx.HTTPStatusError) as e:
            logger.warning("Google CSE request failed: %s", e)
            return None
        except json.JSONDecodeError as e:
            logger.warning("Google CSE returned malformed JSON: %s", e)
            return None

        if not isinstance(payload, dict):
            logger.warning("Google CSE returned unexpected payload type")
            return None
        items = payload.get("items") or []
        return [i for i in items if isinstance(i, dict)]

    @staticmethod
    def _to_candidate(item: dict[str, Any]) -> WebSearchCandidate | None:
        link = item.get("link")
        if not link or not isinstance(link, str):
            return None
        domain = item.get("displayLink") or urlparse(link).hostname or ""
        return WebSearchCandidate(
            source_url=link,
            source_domain=str(domain),
            title=str(item.get("title") or ""),
            snippet=str(item.get("snippet") or ""),
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
