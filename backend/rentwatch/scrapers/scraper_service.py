"""Scraper orchestration service.

Routes search URLs to their site adapters, runs one batch per site
concurrently and merges the results into a single deduplicated list.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import structlog

from rentwatch.scrapers.base import PropertyRecord
from rentwatch.scrapers.factory import AdapterFactory
from rentwatch.scrapers.utils.identity import deduplicate_properties

logger = structlog.get_logger(__name__)


@dataclass
class SiteResult:
    """Outcome of one site's batch."""

    site: str
    url_count: int
    record_count: int = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ScrapeReport:
    """Merged result of a scrape across all sites."""

    properties: List[PropertyRecord] = field(default_factory=list)
    sites: List[SiteResult] = field(default_factory=list)
    unmatched_urls: List[str] = field(default_factory=list)

    @property
    def succeeded_sites(self) -> List[str]:
        return [result.site for result in self.sites if result.succeeded]

    @property
    def failed_sites(self) -> List[str]:
        return [result.site for result in self.sites if not result.succeeded]


class ScraperService:
    """Service for running site adapters over a list of search URLs.

    Each site gets one task; inside a task the adapter fetches its URLs
    sequentially with its own delays. A site whose batch raises is reported
    as failed and the other sites' records are still returned.
    """

    def __init__(self, adapter_factory: AdapterFactory):
        """Initialize scraper service.

        Args:
            adapter_factory: Factory with the site adapters registered
        """
        self.adapter_factory = adapter_factory
        self.logger = logger.bind(service="scraper_service")

    def partition_urls(self, urls: List[str]) -> Dict[str, List[str]]:
        """Group URLs by site slug; URLs no site claims are left out.

        Returns:
            Mapping of site slug to its URLs, in first-seen order
        """
        groups: Dict[str, List[str]] = {}
        for url in urls:
            site_slug = self.adapter_factory.site_for_url(url)
            if site_slug is None:
                continue
            groups.setdefault(site_slug, []).append(url)
        return groups

    async def _run_site(self, site_slug: str, urls: List[str]) -> List[PropertyRecord]:
        adapter = self.adapter_factory.create_adapter(site_slug)
        if adapter is None:
            raise ValueError(f"No adapter registered for site: {site_slug}")

        self.logger.info("site_batch_started", site=site_slug, urls=len(urls))
        return await adapter.extract_all(urls)

    async def scrape(self, urls: List[str]) -> ScrapeReport:
        """Scrape every URL and return the merged, deduplicated records.

        Args:
            urls: Search result URLs for any of the supported sites

        Returns:
            ScrapeReport with the records and a per-site tally
        """
        report = ScrapeReport()
        groups = self.partition_urls(urls)

        routed = {url for site_urls in groups.values() for url in site_urls}
        report.unmatched_urls = [url for url in urls if url not in routed]
        for url in report.unmatched_urls:
            self.logger.warning("unsupported_url", url=url)

        site_slugs = list(groups)
        results = await asyncio.gather(
            *(self._run_site(site_slug, groups[site_slug]) for site_slug in site_slugs),
            return_exceptions=True,
        )

        all_records: List[PropertyRecord] = []
        for site_slug, result in zip(site_slugs, results):
            site_result = SiteResult(site=site_slug, url_count=len(groups[site_slug]))
            if isinstance(result, BaseException):
                site_result.error = str(result) or type(result).__name__
                self.logger.error(
                    "site_batch_failed",
                    site=site_slug,
                    error=site_result.error,
                    exc_info=result,
                )
            else:
                site_result.record_count = len(result)
                all_records.extend(result)
            report.sites.append(site_result)

        report.properties = deduplicate_properties(all_records)

        self.logger.info(
            "scrape_complete",
            total=len(all_records),
            unique=len(report.properties),
            succeeded_sites=report.succeeded_sites,
            failed_sites=report.failed_sites,
        )
        return report
