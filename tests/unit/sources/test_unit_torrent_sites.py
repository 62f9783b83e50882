# tests/unit/sources/test_unit_torrent_sites.py - v1
"""Tests for sources/torrent_sites.py: URL building and response parsers."""

from __future__ import annotations

import json

import pytest

from leakwatch.sources.torrent_sites import (
    DEFAULT_SITES,
    TorrentSite,
    absolute_link,
    parse_html,
    parse_json,
    title_from_link,
)

SITE = TorrentSite("1337x", "https://1337x.to/search/{query}/1/")
YTS = TorrentSite("YTS", "https://yts.mx/api/v2/list_movies.json?query_term={query}", shape="json")

HTML = """
<table>
<tr><td><a href="/torrent/123/React-Masterclass-2024-1080p/">React</a></td>
    <td class="coll-2 seeds">150</td><td class="coll-3 leeches">9</td></tr>
<tr><td><a href="/torrent/456/Cooking-Basics/">Cooking</a></td>
    <td class="coll-2 seeds">3</td></tr>
<tr><td><a href="magnet:?xt=urn:btih:abc&dn=React+Hooks+Guide.mkv">m</a></td></tr>
<tr><td><a href="/torrent/123/React-Masterclass-2024-1080p/">dup</a></td></tr>
</table>
"""


class TestTorrentSite:
    def test_build_url_quotes_query(self):
        assert SITE.build_url("React Masterclass/2024") == (
            "https://1337x.to/search/React%20Masterclass%2F2024/1/"
        )

    def test_default_sites(self):
        names = [s.name for s in DEFAULT_SITES]
        assert names == ["1337x", "TorrentGalaxy", "YTS", "RARBG-proxy", "LimeTorrents", "Nyaa"]
        assert all("{query}" in s.search_url for s in DEFAULT_SITES)
        assert [s.name for s in DEFAULT_SITES if s.shape == "json"] == ["YTS"]


class TestTitleFromLink:
    def test_detail_slug(self):
        assert title_from_link("/torrent/1/React-Masterclass-2024/", "q") == "React Masterclass 2024"

    def test_magnet_display_name(self):
        link = "magnet:?xt=urn:btih:abc&dn=React+Masterclass+2024.mkv&tr=udp"
        assert title_from_link(link, "q") == "React Masterclass 2024"

    def test_torrent_file(self):
        link = "https://files.example/dl/React-Hooks%20Guide.torrent"
        assert title_from_link(link, "q") == "React Hooks Guide"

    def test_fallback(self):
        assert title_from_link("magnet:?xt=urn:btih:abc", "the query") == "the query"


class TestAbsoluteLink:
    def test_relative(self):
        assert absolute_link("/torrent/1/x", "https://1337x.to/search/q/1/") == "https://1337x.to/torrent/1/x"

    def test_absolute_untouched(self):
        assert absolute_link("magnet:?xt=1", "https://1337x.to/") == "magnet:?xt=1"


class TestParseHtml:
    def test_links_titles_and_seeders(self):
        listings = parse_html(SITE, SITE.build_url("react"), HTML, "react")
        assert [l.link for l in listings] == [
            "https://1337x.to/torrent/123/React-Masterclass-2024-1080p/",
            "https://1337x.to/torrent/456/Cooking-Basics/",
            "magnet:?xt=urn:btih:abc&dn=React+Hooks+Guide.mkv",
        ]
        assert listings[0].title == "React Masterclass 2024 1080p"
        assert listings[2].title == "React Hooks Guide"
        assert [l.seeders for l in listings] == [150, 3, None]
        assert all(l.site_name == "1337x" for l in listings)

    def test_single_quoted_href(self):
        body = "<a href='/torrent/77/React-Masterclass-2024-1080p/'>React</a>"
        listings = parse_html(SITE, SITE.build_url("react"), body, "react")
        assert len(listings) == 1
        assert listings[0].link == "https://1337x.to/torrent/77/React-Masterclass-2024-1080p/"
        assert listings[0].title == "React Masterclass 2024 1080p"

    def test_ignores_navigation_links(self):
        body = (
            '<a href="/search/react/2/">next</a>'
            '<a href="/torrent/9/React-Hooks/">hooks</a>'
            '<a name="top">top</a>'
        )
        listings = parse_html(SITE, "https://1337x.to/", body, "q")
        assert [l.title for l in listings] == ["React Hooks"]

    def test_seeder_spans_and_unreadable_counts(self):
        body = (
            '<a href="/torrent/1/A/">a</a><span class="seeders">1,204</span>'
            '<a href="/torrent/2/B/">b</a><span class="seeders">n/a</span>'
        )
        listings = parse_html(SITE, "https://1337x.to/", body, "q")
        assert [l.seeders for l in listings] == [1204, None]

    def test_no_links(self):
        assert parse_html(SITE, "https://1337x.to/", "<html>No results</html>", "q") == []


class TestParseJson:
    def test_movies(self):
        body = json.dumps({
            "data": {
                "movies": [
                    {
                        "title_long": "React Masterclass 2024 (2024)",
                        "url": "https://yts.mx/movies/react",
                        "torrents": [{"seeds": 40, "peers": 2, "size": "1.2 GB"}],
                    },
                    {"title": "No Torrents", "slug": "no-torrents"},
                    "junk",
                ]
            }
        })
        listings = parse_json(YTS, body)
        assert len(listings) == 2
        assert listings[0].seeders == 40
        assert listings[0].leechers == 2
        assert listings[0].size == "1.2 GB"
        assert listings[1].link == "https://yts.mx/movies/no-torrents"
        assert listings[1].seeders is None

    @pytest.mark.parametrize("body", ['{"data": {"movies": null}}', '{"data": []}', "[]", '{"status": "ok"}'])
    def test_empty_shapes(self, body):
        assert parse_json(YTS, body) == []

    def test_bad_field_values_coerced_or_dropped(self):
        body = json.dumps({
            "data": {
                "movies": [
                    {"title": "A", "url": "https://yts.mx/movies/a", "torrents": [{"seeds": "N/A", "peers": -3, "size": 5}]},
                    {"title": "B", "url": 42, "slug": "b", "torrents": [{"seeds": "17", "peers": 2.0}]},
                    {"title": "C", "url": None, "torrents": "junk"},
                    {"title": "D", "url": "https://yts.mx/movies/d", "torrents": ["junk"]},
                ]
            }
        })
        listings = parse_json(YTS, body)
        assert [l.link for l in listings] == [
            "https://yts.mx/movies/a",
            "https://yts.mx/movies/b",
            "https://yts.mx/movies/d",
        ]
        assert [l.seeders for l in listings] == [None, 17, None]
        assert [l.leechers for l in listings] == [None, 2, None]
        assert listings[0].size is None

    def test_malformed(self):
        with pytest.raises(json.JSONDecodeError):
            parse_json(YTS, "<html>")
