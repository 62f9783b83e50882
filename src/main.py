# src/main.py - v1
"""CLI entry point: scan, due-scans and cache maintenance commands.

Usage:
    leakwatch scan <content_id>
    leakwatch due-scans
    leakwatch cache sweep|stats
    leakwatch cache invalidate <content_id>

Exit codes: 0 success, 1 failure, 2 content not found.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from leakwatch.version import __version__

if TYPE_CHECKING:
    from leakwatch.config.settings import Settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NOT_FOUND = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FAILURE

    from pydantic import ValidationError

    from leakwatch.config.settings import ConfigurationError, Settings

    try:
        settings = Settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FAILURE


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="leakwatch",
        description=f"leakwatch v{__version__} - Multi-source infringement detection",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- scan ---
    p_scan = subparsers.add_parser("scan", help="Scan one protected content item")
    p_scan.add_argument("content_id", help="Protected content id")
    p_scan.set_defaults(func=_cmd_scan)

    # --- due-scans ---
    p_due = subparsers.add_parser(
        "due-scans", help="Run scheduled scans for due daily/weekly content",
    )
    p_due.set_defaults(func=_cmd_due_scans)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Result cache maintenance")
    cache_sub = p_cache.add_subparsers(dest="cache_command")

    p_sweep = cache_sub.add_parser("sweep", help="Delete expired entries")
    p_sweep.set_defaults(func=_cmd_cache_sweep)

    p_stats = cache_sub.add_parser("stats", help="Show cache statistics")
    p_stats.set_defaults(func=_cmd_cache_stats)

    p_invalidate = cache_sub.add_parser(
        "invalidate", help="Drop cached results of a content item",
    )
    p_invalidate.add_argument("content_id", help="Protected content id")
    p_invalidate.set_defaults(func=_cmd_cache_invalidate)

    return parser


async def _cmd_scan(args: argparse.Namespace, settings: Settings) -> int:
    """Execute a single scan."""
    from leakwatch.api.facade import run_scan
    from leakwatch.core.errors import ContentNotFoundError

    try:
        found = await run_scan(args.content_id, settings=settings)
    except ContentNotFoundError as exc:
        logger.error("%s", exc)
        return EXIT_NOT_FOUND

    print(f"\nScan complete:")
    print(f"  Content ID:        {args.content_id}")
    print(f"  New infringements: {found}")
    return EXIT_OK


async def _cmd_due_scans(args: argparse.Namespace, settings: Settings) -> int:
    """Execute one batch of scheduled scans."""
    from leakwatch.api.facade import run_due_scans

    report = await run_due_scans(settings=settings)

    print(f"\nScheduled scans complete:")
    print(f"  Processed: {report.processed}")
    print(f"  Failed:    {report.failed}")
    for item in report.results:
        detail = f"{item.found} new" if item.status == "scanned" else item.error
        print(f"  - {item.content_id} [{item.status}] {item.title}: {detail}")
    return EXIT_FAILURE if report.failed else EXIT_OK


async def _cmd_cache_sweep(args: argparse.Namespace, settings: Settings) -> int:
    from leakwatch.api.facade import maintain_cache

    report = await maintain_cache(settings=settings)

    print(f"\nCache cleanup complete:")
    print(f"  Deleted:   {report.cleanup.deleted}")
    print(f"  Remaining: {report.cleanup.remaining}")
    return EXIT_OK


async def _cmd_cache_stats(args: argparse.Namespace, settings: Settings) -> int:
    from leakwatch.api.facade import cache_stats

    stats = await cache_stats(settings=settings)

    print(f"\nCache statistics:")
    print(f"  Entries:       {stats.total_entries}")
    print(f"  Total hits:    {stats.total_hits}")
    print(f"  Avg age (h):   {stats.average_age_hours:.1f}")
    for source, count in sorted(stats.by_source_type.items()):
        print(f"  {source + ':':14s} {count}")
    return EXIT_OK


async def _cmd_cache_invalidate(args: argparse.Namespace, settings: Settings) -> int:
    from leakwatch.api.facade import invalidate_cache

    deleted = await invalidate_cache(args.content_id, settings=settings)
    print(f"\nInvalidated {deleted} cache entries for {args.content_id}")
    return EXIT_OK


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from leakwatch.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("telethon").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
