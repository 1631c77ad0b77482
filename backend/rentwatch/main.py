"""RentWatch command line entry point.

Usage:
    rentwatch                   # scrape, save new listings, notify
    rentwatch --dry-run         # scrape and print, no database or Slack
    rentwatch --clear           # delete stored listings first
    rentwatch --url URL [--url URL ...]
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import httpx
import structlog

from rentwatch.config import Settings
from rentwatch.core.exceptions import ConfigurationError, RentWatchException
from rentwatch.core.logging import configure_logging
from rentwatch.db.session import create_engine_and_session
from rentwatch.scrapers.register_adapters import build_adapter_factory
from rentwatch.scrapers.scraper_service import ScraperService
from rentwatch.scrapers.utils.user_agents import get_browser_headers
from rentwatch.services.notification_service import SlackNotifier
from rentwatch.services.property_service import PropertyService
from rentwatch.services.watch_service import RunSummary, WatchService

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rentwatch",
        description="Watch Japanese rental portals for new listings",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete all stored listings before scraping",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Scrape and print results without touching the database or Slack",
    )
    parser.add_argument(
        "--url",
        action="append",
        dest="urls",
        metavar="URL",
        help="Search result URL to watch (repeatable, overrides TARGET_URLS)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LOG_LEVEL setting)",
    )
    return parser


def print_summary(summary: RunSummary) -> None:
    """Human-readable report of a run on stdout."""
    print(f"\n{'=' * 70}")
    mode = "DRY RUN" if summary.dry_run else "RUN"
    print(f"  {mode}: {summary.found} listings found", end="")
    if not summary.dry_run:
        print(f", {summary.new} new, {summary.saved} saved, {summary.messages_sent} messages sent")
    else:
        print()
    print(f"{'=' * 70}")

    for result in summary.sites:
        status = "ok" if result.succeeded else f"FAILED ({result.error})"
        print(f"  {result.site:<10} urls={result.url_count:<3} records={result.record_count:<4} {status}")
    for url in summary.unmatched_urls:
        print(f"  unsupported URL skipped: {url}")

    if summary.properties:
        print()
    for i, record in enumerate(summary.properties, 1):
        print(f"[{i}] {record.title}")
        print(f"    {record.price} | {record.layout} | {record.area}")
        print(f"    {record.address}")
        print(f"    {record.url}")


async def run(settings: Settings, args: argparse.Namespace) -> RunSummary:
    """Wire the components from settings and execute one run."""
    urls: List[str] = args.urls or settings.get_target_urls()

    async with httpx.AsyncClient(
        headers=get_browser_headers(),
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
        follow_redirects=True,
    ) as http_client:
        factory = build_adapter_factory(settings=settings, http_client=http_client)
        scraper_service = ScraperService(factory)

        if args.dry_run:
            watch = WatchService(scraper_service, urls)
            return await watch.run(dry_run=True)

        engine, session_factory = create_engine_and_session(
            settings.require_database_url(), echo=settings.DEBUG
        )
        try:
            property_service = PropertyService(session_factory)
            await property_service.initialize(engine)
            notifier = SlackNotifier(
                settings.SLACK_WEBHOOK_URL,
                http_client=http_client,
                interval=settings.SLACK_INTERVAL_SECONDS,
                retry_base_delay=settings.RETRY_BASE_DELAY_SECONDS,
            )
            watch = WatchService(scraper_service, urls, property_service, notifier)
            return await watch.run(clear=args.clear)
        finally:
            await engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
    except ValueError as e:
        # pydantic ValidationError subclasses ValueError
        configure_logging()
        logger.error("invalid_configuration", error=str(e))
        return 1

    configure_logging(args.log_level or settings.LOG_LEVEL, json=settings.LOG_JSON)

    try:
        summary = asyncio.run(run(settings, args))
    except ConfigurationError as e:
        logger.error("configuration_error", error=e.message)
        return 1
    except RentWatchException as e:
        logger.error("watch_run_failed", error=e.message, exc_info=True)
        return 1
    except Exception as e:
        logger.error("unexpected_error", error=str(e), exc_info=True)
        return 1

    print_summary(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
