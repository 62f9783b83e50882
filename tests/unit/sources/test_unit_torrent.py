# tests/unit/sources/test_unit_torrent.py - v1
"""Tests for sources/torrent.py: fan-out, isolation, scoring and caps."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import patch

import httpx
import pytest

from leakwatch.core.models import SourceType
from leakwatch.sources.torrent import TorrentIndexAdapter, build_queries, to_candidate
from leakwatch.sources.torrent_sites import TorrentListing, TorrentSite

LEET = TorrentSite("1337x", "https://1337x.test/search/{query}/1/")
YTS = TorrentSite("YTS", "https://yts.test/api?query_term={query}", shape="json")
SLOW = TorrentSite("Slow", "https://slow.test/?q={query}")
OFF = TorrentSite("Off", "https://off.test/?q={query}", enabled=False)

LEET_HTML = """
<a href="/torrent/123/React-Masterclass-2024-1080p/">React</a><td class="seeds">150</td>
<a href="/torrent/456/Cooking-Basics/">Cooking</a><td class="seeds">3</td>
"""
YTS_JSON = json.dumps({
    "data": {
        "movies": [{
            "title_long": "React Masterclass 2024 (2024)",
            "url": "https://yts.test/movies/react",
            "torrents": [{"seeds": 40, "peers": 2, "size": "1.2 GB"}],
        }]
    }
})


def _router(routes: dict[str, object], log: list[str] | None = None):
    async def handler(request: httpx.Request) -> httpx.Response:
        if log is not None:
            log.append(request.url.host)
        route = routes.get(request.url.host)
        if route is None:
            return httpx.Response(404)
        if callable(route):
            return await route(request)
        return route
    return handler


async def _no_sleep(seconds):
    return None


def _adapter(routes, sites=(LEET, YTS), log=None, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(_router(routes, log)))
    kwargs.setdefault("sleep", _no_sleep)
    return TorrentIndexAdapter(sites, client=client, **kwargs)


class TestBuildQueries:
    def test_video(self, sample_content):
        assert build_queries(sample_content) == [
            "React Masterclass 2024",
            "React Masterclass 2024 download",
            "React Masterclass 2024 course",
            "react React",
        ]

    def test_pdf(self, pdf_content):
        queries = build_queries(pdf_content)
        assert queries[2] == "Python Data Handbook pdf"
        assert queries[3] == "python Python"


class TestToCandidate:
    def test_with_seeders(self):
        listing = TorrentListing("1337x", "React 2024", "magnet:x", seeders=12, leechers=None, size="2 GB")
        candidate = to_candidate(listing, 55)
        assert candidate.title == "[1337x] React 2024"
        assert candidate.torrent_title == "React 2024"
        assert candidate.snippet == "Seeders: 12, Leechers: 0, Size: 2 GB"
        assert candidate.source_domain == "1337x"
        assert candidate.confidence == 55
        assert candidate.source_type is SourceType.TORRENT

    def test_without_seeders(self):
        candidate = to_candidate(TorrentListing("Nyaa", "t", "https://nyaa.si/view/1"))
        assert candidate.snippet == "Found on Nyaa"


class TestTorrentIndexAdapter:
    def test_disabled_sites_dropped(self):
        adapter = TorrentIndexAdapter((LEET, OFF))
        assert [s.name for s in adapter.sites] == ["1337x"]
        assert TorrentIndexAdapter((OFF,)).is_available() is False

    @pytest.mark.asyncio
    async def test_search_scores_and_dedupes(self, sample_content):
        routes = {
            "1337x.test": httpx.Response(200, text=LEET_HTML),
            "yts.test": httpx.Response(200, text=YTS_JSON),
        }
        results = await _adapter(routes).search(sample_content)

        assert [r.source_url for r in results] == [
            "https://1337x.test/torrent/123/React-Masterclass-2024-1080p/",
            "https://yts.test/movies/react",
        ]
        assert [r.confidence for r in results] == [80, 70]
        assert results[0].seeders == 150

    @pytest.mark.asyncio
    async def test_every_query_hits_every_site(self, sample_content):
        log: list[str] = []
        sleeps: list[float] = []

        async def record_sleep(seconds):
            sleeps.append(seconds)

        adapter = _adapter({}, log=log, sleep=record_sleep, query_delay_ms=300)
        assert await adapter.search(sample_content) == []
        assert sorted(log) == sorted(["1337x.test", "yts.test"] * 4)
        assert sleeps == [0.3, 0.3, 0.3]

    @pytest.mark.asyncio
    async def test_threshold(self, sample_content):
        routes = {"1337x.test": httpx.Response(200, text=LEET_HTML)}
        results = await _adapter(routes, sites=(LEET,), threshold=90).search(sample_content)
        assert results == []

    @pytest.mark.asyncio
    async def test_slow_site_does_not_block_others(self, sample_content):
        async def hang(request):
            await asyncio.sleep(5)
            return httpx.Response(200, text=LEET_HTML)

        routes = {
            "slow.test": hang,
            "yts.test": httpx.Response(200, text=YTS_JSON),
        }
        adapter = _adapter(routes, sites=(SLOW, YTS), request_timeout_s=0.05)
        listings = await asyncio.wait_for(adapter.search_all("React Masterclass 2024"), timeout=2)
        assert [l.site_name for l in listings] == ["YTS"]

    @pytest.mark.asyncio
    async def test_timed_out_site_leaves_scored_results_from_others(self, sample_content):
        async def hang(request):
            await asyncio.sleep(5)
            return httpx.Response(200, text=LEET_HTML)

        routes = {
            "slow.test": hang,
            "1337x.test": httpx.Response(200, text=LEET_HTML),
            "yts.test": httpx.Response(200, text=YTS_JSON),
        }
        adapter = _adapter(routes, sites=(SLOW, LEET, YTS), request_timeout_s=0.05)
        results = await asyncio.wait_for(adapter.search(sample_content), timeout=5)

        assert [r.site_name for r in results] == ["1337x", "YTS"]
        assert [r.confidence for r in results] == [80, 70]

    @pytest.mark.asyncio
    async def test_bad_json_fields_do_not_drop_other_sites(self, sample_content):
        body = json.dumps({
            "data": {"movies": [{
                "title": "React Masterclass 2024",
                "url": "https://yts.test/movies/react-na",
                "torrents": [{"seeds": "N/A"}],
            }]}
        })
        routes = {
            "1337x.test": httpx.Response(200, text=LEET_HTML),
            "yts.test": httpx.Response(200, text=body),
        }
        results = await _adapter(routes).search(sample_content)

        assert [r.source_url for r in results] == [
            "https://1337x.test/torrent/123/React-Masterclass-2024-1080p/",
            "https://yts.test/movies/react-na",
        ]
        assert results[0].seeders == 150
        assert results[1].seeders is None

    @pytest.mark.asyncio
    async def test_parser_error_empties_only_that_site(self):
        routes = {
            "1337x.test": httpx.Response(200, text=LEET_HTML),
            "yts.test": httpx.Response(200, text=YTS_JSON),
        }
        with patch("leakwatch.sources.torrent.parse_json", side_effect=TypeError("unexpected shape")):
            listings = await _adapter(routes).search_all("q")
        assert {l.site_name for l in listings} == {"1337x"}

    @pytest.mark.asyncio
    async def test_failing_sites_isolated(self):
        async def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        routes = {
            "1337x.test": refuse,
            "yts.test": httpx.Response(200, text="<html>maintenance</html>"),
            "slow.test": httpx.Response(503),
        }
        adapter = _adapter(routes, sites=(LEET, YTS, SLOW))
        assert await adapter.search_all("anything") == []

    @pytest.mark.asyncio
    async def test_merge_sorted_by_seeders_and_capped(self):
        html = "".join(
            f'<a href="/torrent/{i}/Item-{i}/">x</a><td class="seeds">{i}</td>' for i in (5, 50)
        )
        routes = {
            "1337x.test": httpx.Response(200, text=html),
            "yts.test": httpx.Response(200, text=YTS_JSON),
        }
        adapter = _adapter(routes, max_results=2)
        listings = await adapter.search_all("q")
        assert [l.seeders for l in listings] == [50, 40]

    @pytest.mark.asyncio
    async def test_per_site_limit(self):
        html = "".join(f'<a href="/torrent/{i}/Item-{i}/">x</a>' for i in range(5))
        adapter = _adapter({"1337x.test": httpx.Response(200, text=html)}, sites=(LEET,), per_site_limit=2)
        assert len(await adapter.search_site(LEET, "q")) == 2

    @pytest.mark.asyncio
    async def test_user_agent_sent(self):
        seen: list[str] = []

        async def capture(request):
            seen.append(request.headers["User-Agent"])
            return httpx.Response(200, text="")

        adapter = _adapter({"1337x.test": capture}, sites=(LEET,), user_agent="leakwatch-test")
        await adapter.search_site(LEET, "q")
        assert seen == ["leakwatch-test"]

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        adapter = TorrentIndexAdapter((LEET,))
        client = adapter._get_client()
        await adapter.close()
        assert client.is_closed is True
