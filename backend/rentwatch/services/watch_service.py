"""One watcher run: scrape, diff against the store, save and notify."""

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from rentwatch.core.exceptions import ConfigurationError
from rentwatch.scrapers.base import PropertyRecord
from rentwatch.scrapers.scraper_service import ScraperService, SiteResult
from rentwatch.services.notification_service import SlackNotifier
from rentwatch.services.property_service import PropertyService

logger = structlog.get_logger(__name__)


@dataclass
class RunSummary:
    """What a run found and did."""

    found: int = 0
    new: int = 0
    saved: int = 0
    messages_sent: int = 0
    cleared: bool = False
    dry_run: bool = False
    sites: List[SiteResult] = field(default_factory=list)
    unmatched_urls: List[str] = field(default_factory=list)
    properties: List[PropertyRecord] = field(default_factory=list)

    @property
    def failed_sites(self) -> List[str]:
        return [result.site for result in self.sites if not result.succeeded]


class WatchService:
    """Run the scrape -> diff -> save -> notify pipeline once."""

    def __init__(
        self,
        scraper_service: ScraperService,
        target_urls: List[str],
        property_service: Optional[PropertyService] = None,
        notifier: Optional[SlackNotifier] = None,
    ):
        """Initialize the pipeline.

        Args:
            scraper_service: Orchestrator used for scraping
            target_urls: Search result URLs to watch
            property_service: Persistence gateway (not needed for dry runs)
            notifier: Slack notifier (None disables notifications)
        """
        self.scraper_service = scraper_service
        self.target_urls = list(target_urls)
        self.property_service = property_service
        self.notifier = notifier
        self.logger = logger.bind(service="watch_service")

    async def run(self, clear: bool = False, dry_run: bool = False) -> RunSummary:
        """Execute one run.

        Args:
            clear: Delete every stored listing before scraping
            dry_run: Scrape only; nothing is read from or written to the store
                and nothing is sent

        Returns:
            RunSummary of the run

        Raises:
            ConfigurationError: If persistence is needed but not configured
            PersistenceError: If clearing the store fails
        """
        summary = RunSummary(dry_run=dry_run)
        if not dry_run and self.property_service is None:
            raise ConfigurationError("A property store is required unless running dry")

        self.logger.info("watch_run_started", urls=len(self.target_urls), dry_run=dry_run)

        if clear and not dry_run:
            deleted = await self.property_service.delete_all_properties()
            summary.cleared = True
            self.logger.info("store_cleared", deleted=deleted)

        report = await self.scraper_service.scrape(self.target_urls)
        summary.found = len(report.properties)
        summary.sites = report.sites
        summary.unmatched_urls = report.unmatched_urls

        if dry_run:
            summary.properties = report.properties
            self.logger.info("watch_run_finished", found=summary.found, dry_run=True)
            return summary

        new_records = await self.property_service.find_new_properties(report.properties)
        summary.new = len(new_records)
        summary.properties = new_records

        if new_records:
            saved = await self.property_service.save_new_properties(new_records)
            summary.saved = len(saved)
            if saved and self.notifier is not None:
                summary.messages_sent = await self.notifier.notify_new_properties(saved)

        self.logger.info(
            "watch_run_finished",
            found=summary.found,
            new=summary.new,
            saved=summary.saved,
            messages_sent=summary.messages_sent,
            failed_sites=summary.failed_sites,
        )
        return summary
