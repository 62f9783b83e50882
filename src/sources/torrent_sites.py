# src/sources/torrent_sites.py - v1
"""Torrent index site table and response parsers.

Each site has a search URL template and a response shape. JSON sites expose
structured fields. HTML pages are parsed with BeautifulSoup and their anchors
kept when the href looks like a detail page, magnet URI or .torrent file;
the title is derived from the URL slug.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Literal
from urllib.parse import quote, unquote, urlparse

from bs4 import BeautifulSoup

ResponseShape = Literal["html", "json"]


@dataclass(frozen=True)
class TorrentSite:
    """One torrent index. ``search_url`` contains a ``{query}`` placeholder."""

    name: str
    search_url: str
    shape: ResponseShape = "html"
    enabled: bool = True

    def build_url(self, query: str) -> str:
        return self.search_url.replace("{query}", quote(query, safe=""))


@dataclass
class TorrentListing:
    """Raw listing extracted from one site's response."""

    site_name: str
    title: str
    link: str
    seeders: int | None = None
    leechers: int | None = None
    size: str | None = None


DEFAULT_SITES: tuple[TorrentSite, ...] = (
    TorrentSite("1337x", "https://1337x.to/search/{query}/1/"),
    TorrentSite("TorrentGalaxy", "https://torrentgalaxy.to/torrents.php?search={query}"),
    TorrentSite(
        "YTS",
        "https://yts.mx/api/v2/list_movies.json?query_term={query}",
        shape="json",
    ),
    TorrentSite("RARBG-proxy", "https://rargb.to/search/?search={query}"),
    TorrentSite("LimeTorrents", "https://www.limetorrents.lol/search/all/{query}/"),
    TorrentSite("Nyaa", "https://nyaa.si/?q={query}"),
)

# href shapes that identify a torrent listing.
LINK_SHAPES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^/torrent/\d+/"),
    re.compile(r"^magnet:\?xt=urn:btih:"),
    re.compile(r"\.torrent"),
    re.compile(r"^/torrent/"),
)

SEEDER_CELLS = "td[class*=seed], span[class*=seed]"

_EXTENSION = re.compile(r"\.\w+$")


def title_from_link(link: str, fallback: str) -> str:
    """Human-readable title from the last path segment of a link."""
    if link.startswith("magnet:"):
        match = re.search(r"[?&]dn=([^&]+)", link)
        slug = match.group(1).replace("+", " ") if match else ""
    else:
        slug = link.rstrip("/").split("/")[-1]
    slug = _EXTENSION.sub("", slug.replace("-", " "))
    return unquote(slug).strip() or fallback


def absolute_link(link: str, page_url: str) -> str:
    if link.startswith("/"):
        parsed = urlparse(page_url)
        return f"{parsed.scheme}://{parsed.netloc}{link}"
    return link


def is_torrent_link(href: str) -> bool:
    return any(shape.search(href) for shape in LINK_SHAPES)


def parse_html(site: TorrentSite, page_url: str, body: str, query: str) -> list[TorrentListing]:
    """Collect torrent links in document order, then assign seeder cells in order."""
    soup = BeautifulSoup(body, "html.parser")

    listings: list[TorrentListing] = []
    seen: set[str] = set()
    for anchor in soup.find_all("a", href=True):
        link = anchor["href"].strip()
        if link in seen or not is_torrent_link(link):
            continue
        seen.add(link)
        listings.append(
            TorrentListing(
                site_name=site.name,
                title=title_from_link(link, query),
                link=absolute_link(link, page_url),
            )
        )

    for listing, cell in zip(listings, soup.select(SEEDER_CELLS)):
        listing.seeders = _as_count(cell.get_text(strip=True))
    return listings


def parse_json(site: TorrentSite, body: str) -> list[TorrentListing]:
    """YTS-style ``data.movies[]`` payload.

    Movies without a usable link are dropped; counts that are not
    non-negative integers become None.

    Raises:
        json.JSONDecodeError: If the body is not valid JSON.
    """
    payload = json.loads(body)
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return []
    movies = data.get("movies")
    if not isinstance(movies, list):
        return []

    listings: list[TorrentListing] = []
    for movie in movies:
        if not isinstance(movie, dict):
            continue
        link = _movie_link(movie)
        if link is None:
            continue
        torrents = movie.get("torrents")
        first = torrents[0] if isinstance(torrents, list) and torrents else {}
        if not isinstance(first, dict):
            first = {}
        size = first.get("size")
        listings.append(
            TorrentListing(
                site_name=site.name,
                title=str(movie.get("title_long") or movie.get("title") or ""),
                link=link,
                seeders=_as_count(first.get("seeds")),
                leechers=_as_count(first.get("peers")),
                size=size if isinstance(size, str) else None,
            )
        )
    return listings


def _movie_link(movie: dict[str, Any]) -> str | None:
    url = movie.get("url")
    if isinstance(url, str) and url:
        return url
    slug = movie.get("slug")
    if isinstance(slug, str) and slug:
        return f"https://yts.mx/movies/{slug}"
    return None


def _as_count(value: Any) -> int | None:
    """Non-negative integer from a count field, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value >= 0 and value.is_integer() else None
    if isinstance(value, str):
        text = value.replace(",", "").strip()
        return int(text) if text.isdigit() else None
    return None
