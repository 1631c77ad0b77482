"""Factory for creating and routing site adapter instances."""

from typing import Dict, List, Optional, Type

import httpx
import structlog

from rentwatch.config import Settings
from rentwatch.scrapers.base import BaseScraperAdapter
from rentwatch.scrapers.utils import DelayStrategy, FixedDelay


logger = structlog.get_logger(__name__)


class AdapterFactory:
    """Factory for creating and configuring adapter instances.

    Provides dependency injection for the HTTP client, pacing strategies
    and fetch limits taken from settings.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        page_delay: Optional[DelayStrategy] = None,
        url_delay: Optional[DelayStrategy] = None,
    ):
        """Initialize the adapter factory.

        Args:
            settings: Process settings; adapter defaults are used when omitted
            http_client: Shared client injected into every adapter
            page_delay: Override for the delay between result pages
            url_delay: Override for the delay between search URLs
        """
        self.settings = settings
        self.http_client = http_client

        if page_delay is None and settings is not None:
            page_delay = FixedDelay(settings.PAGE_DELAY_SECONDS)
        if url_delay is None and settings is not None:
            url_delay = FixedDelay(settings.URL_DELAY_SECONDS)
        self.page_delay = page_delay
        self.url_delay = url_delay

        # Registry of adapter classes, in registration order
        self._adapter_registry: Dict[str, Type[BaseScraperAdapter]] = {}

    def register_adapter(self, site_slug: str, adapter_class: Type[BaseScraperAdapter]) -> None:
        """Register an adapter class for a site.

        Args:
            site_slug: Site slug identifier (e.g., "suumo")
            adapter_class: Adapter class (must inherit from BaseScraperAdapter)
        """
        if not issubclass(adapter_class, BaseScraperAdapter):
            raise ValueError(f"Adapter class must inherit from BaseScraperAdapter: {adapter_class}")

        self._adapter_registry[site_slug] = adapter_class
        logger.debug("adapter_registered", site_slug=site_slug, adapter_class=adapter_class.__name__)

    def create_adapter(self, site_slug: str) -> Optional[BaseScraperAdapter]:
        """Create and configure an adapter instance.

        Args:
            site_slug: Site slug identifier

        Returns:
            Configured adapter instance, or None if not registered
        """
        adapter_class = self._adapter_registry.get(site_slug)
        if not adapter_class:
            logger.warning("adapter_not_found", site_slug=site_slug)
            return None

        adapter = adapter_class()

        # Inject dependencies
        adapter.http_client = self.http_client
        if self.page_delay is not None:
            adapter.page_delay = self.page_delay
        if self.url_delay is not None:
            adapter.url_delay = self.url_delay
        if self.settings is not None:
            adapter.max_pages = self.settings.MAX_PAGES
            adapter.timeout = self.settings.REQUEST_TIMEOUT_SECONDS
            adapter.fetch_attempts = self.settings.FETCH_MAX_ATTEMPTS
            adapter.retry_base_delay = self.settings.RETRY_BASE_DELAY_SECONDS

        return adapter

    def site_for_url(self, url: str) -> Optional[str]:
        """Slug of the first registered site whose URL patterns match ``url``."""
        for site_slug, adapter_class in self._adapter_registry.items():
            if adapter_class.matches(url):
                return site_slug
        return None

    def get_registered_sites(self) -> List[str]:
        """Get list of registered site slugs.

        Returns:
            List of site slug strings
        """
        return list(self._adapter_registry.keys())

    def has_adapter(self, site_slug: str) -> bool:
        """Check if an adapter is registered for a site.

        Args:
            site_slug: Site slug identifier

        Returns:
            True if adapter is registered
        """
        return site_slug in self._adapter_registry
