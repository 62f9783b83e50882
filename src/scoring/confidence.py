# src/scoring/confidence.py - v1
"""Deterministic confidence scoring for candidate results.

Each scorer is a pure function returning an integer in [0, 100]. Fractional
partial-match credit is floored so a candidate never crosses the retention
threshold on rounding alone.

Messaging results are not scored: a keyword hit inside a public file-sharing
channel is treated as high confidence and gets ``MESSAGING_CONFIDENCE``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from leakwatch.core.models import ContentType, TorrentCandidate, WebSearchCandidate
from leakwatch.scoring import indicators

CONFIDENCE_THRESHOLD = 40
MESSAGING_CONFIDENCE = 90

# Web-search weights
WEB_EXACT_TITLE = 40
WEB_FUZZY_TITLE_MAX = 30
WEB_KEYWORD = 5
WEB_FREE_PHRASE = 10
WEB_PIRACY_DOMAIN = 25

# Torrent weights
TORRENT_EXACT_TITLE = 50
TORRENT_FUZZY_TITLE_MAX = 40
TORRENT_KEYWORD = 10
TORRENT_QUALITY_TAG = 5
TORRENT_SEEDERS_HIGH = 15
TORRENT_SEEDERS_LOW = 10


@dataclass(frozen=True)
class ContentTypeProfile:
    """Content-type specific signals applied on top of the generic ones."""

    piracy_domains: tuple[str, ...]
    keywords: tuple[str, ...]
    extensions: tuple[str, ...]
    domain_bonus: int = 20
    keyword_bonus: int = 8
    extension_bonus: int = 15


PROFILES: dict[ContentType, ContentTypeProfile] = {
    ContentType.VIDEO: ContentTypeProfile(
        piracy_domains=indicators.VIDEO_PIRACY_DOMAINS,
        keywords=indicators.VIDEO_KEYWORDS,
        extensions=indicators.VIDEO_EXTENSIONS,
    ),
    ContentType.PDF: ContentTypeProfile(
        piracy_domains=indicators.PDF_PIRACY_DOMAINS,
        keywords=indicators.PDF_KEYWORDS,
        extensions=indicators.PDF_EXTENSIONS,
    ),
}


def profile_for(content_type: ContentType | str) -> ContentTypeProfile:
    """Resolve the profile for a content type; unknown values raise ValueError."""
    return PROFILES[ContentType(content_type)]


def clamp_score(score: float) -> int:
    return int(max(0, min(100, math.floor(score))))


def meets_threshold(score: int, threshold: int = CONFIDENCE_THRESHOLD) -> bool:
    return score >= threshold


def score_web_result(
    candidate: WebSearchCandidate,
    reference_title: str,
    reference_keywords: Sequence[str],
    content_type: ContentType | str = ContentType.VIDEO,
) -> int:
    """Score a search-engine hit against the protected content."""
    profile = profile_for(content_type)
    title = candidate.title.lower()
    snippet = candidate.snippet.lower()
    domain = candidate.source_domain.lower()
    url = candidate.source_url.lower()
    texts = (title, snippet)

    score = 0.0
    ref_title = reference_title.lower().strip()
    if ref_title and ref_title in title:
        score += WEB_EXACT_TITLE
    else:
        score += _fuzzy_credit(ref_title, texts, WEB_FUZZY_TITLE_MAX)

    for keyword in reference_keywords:
        if _any_contains(texts, (keyword.lower(),)):
            score += WEB_KEYWORD

    if _any_contains(texts, indicators.FREE_PHRASES):
        score += WEB_FREE_PHRASE

    if _any_contains((domain,), indicators.PIRACY_DOMAINS):
        score += WEB_PIRACY_DOMAIN

    if _any_contains((domain,), profile.piracy_domains):
        score += profile.domain_bonus
    if _any_contains(texts, profile.keywords):
        score += profile.keyword_bonus
    if _any_contains((url,), profile.extensions):
        score += profile.extension_bonus

    return clamp_score(score)


def score_torrent_result(
    candidate: TorrentCandidate,
    reference_title: str,
    reference_keywords: Sequence[str],
) -> int:
    """Score a torrent listing; only the torrent title and seeders count."""
    title = candidate.torrent_title.lower()

    score = 0.0
    ref_title = reference_title.lower().strip()
    if ref_title and ref_title in title:
        score += TORRENT_EXACT_TITLE
    else:
        score += _fuzzy_credit(ref_title, (title,), TORRENT_FUZZY_TITLE_MAX)

    for keyword in reference_keywords:
        if keyword.lower() in title:
            score += TORRENT_KEYWORD

    if _any_contains((title,), indicators.TORRENT_QUALITY_TAGS):
        score += TORRENT_QUALITY_TAG

    seeders = candidate.seeders or 0
    if seeders > 100:
        score += TORRENT_SEEDERS_HIGH
    elif seeders > 10:
        score += TORRENT_SEEDERS_LOW

    return clamp_score(score)


def _fuzzy_credit(ref_title: str, texts: Iterable[str], cap: int) -> float:
    """Share of significant reference words (len > 3) found in any text."""
    words = [w for w in ref_title.split() if len(w) > 3]
    if not words:
        return 0.0
    texts = tuple(texts)
    matched = sum(1 for w in words if any(w in t for t in texts))
    return min(cap, matched * cap / len(words))


def _any_contains(haystacks: Iterable[str], needles: Iterable[str]) -> bool:
    haystacks = tuple(haystacks)
    return any(n and n in h for n in needles for h in haystacks)
