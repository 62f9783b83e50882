# src/scoring/indicators.py - v1
"""Phrase and domain lists feeding the confidence heuristics.

Domain entries are substrings matched against the lowercased display domain,
so "yts" also catches "yts.mx" and mirrors.
"""

from __future__ import annotations

# Generic piracy / file-locker domains.
PIRACY_DOMAINS: tuple[str, ...] = (
    "courseclub",
    "freecoursesite",
    "getfreecourses",
    "tutorialbar",
    "desirecourse",
    "myfreecourses",
    "paidcoursesfree",
    "udemy24",
    "freetutorials",
    "downloadly",
    "1337x",
    "thepiratebay",
    "torrentgalaxy",
    "mega.nz",
    "drive.google.com",
    "t.me",
    "telegram",
)

FREE_PHRASES: tuple[str, ...] = (
    "free download",
    "free course",
    "torrent",
    "mega link",
    "google drive",
    "telegram",
    "crack",
    "pirated",
    "nulled",
)

VIDEO_PIRACY_DOMAINS: tuple[str, ...] = (
    "yts",
    "rarbg",
    "rutracker",
    "nyaa",
    "kickass",
    "katcr",
    "btdig",
    "limetorrents",
    "eztv",
    "seedpeer",
    "gload",
    "fmovies",
    "123movies",
    "putlocker",
)

VIDEO_KEYWORDS: tuple[str, ...] = (
    "mp4 download",
    "mkv download",
    "full course download",
    "video leak",
    "course rip",
    "hdtv",
    "webrip",
    "720p",
    "1080p",
    "4k download",
    "course videos free",
)

VIDEO_EXTENSIONS: tuple[str, ...] = (".mp4", ".mkv", ".avi", ".mov")

PDF_PIRACY_DOMAINS: tuple[str, ...] = (
    "libgen",
    "lib.gen",
    "sci-hub",
    "z-lib",
    "zlibrary",
    "pdfdrive",
    "pdfsearchengine",
    "ebookee",
    "ebook3000",
    "bookzz",
    "b-ok",
    "booksc",
    "scribd",
    "slideshare",
    "issuu",
    "calameo",
)

PDF_KEYWORDS: tuple[str, ...] = (
    "pdf free download",
    "pdf leak",
    "ebook free",
    "epub download",
    "pdf torrent",
    "workbook free",
    "guide pdf",
    "cheatsheet free",
    "slides download",
    "course materials free",
)

PDF_EXTENSIONS: tuple[str, ...] = (".pdf", ".epub", ".mobi")

# Release-quality tags typical of ripped uploads.
TORRENT_QUALITY_TAGS: tuple[str, ...] = (
    "rip",
    "webrip",
    "dvdrip",
    "hdtv",
    "1080p",
    "720p",
    "4k",
    "x264",
    "x265",
    "hevc",
)
