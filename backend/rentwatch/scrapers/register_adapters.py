"""Register all site adapters with a factory.

Called once at startup by the run pipeline (and by the debugging script).
"""

from typing import Optional

import httpx
import structlog

from rentwatch.config import Settings
from rentwatch.scrapers.adapters import (
    GoodroomsAdapter,
    NiftyAdapter,
    RStoreAdapter,
    SumaityAdapter,
    SuumoAdapter,
    YahooAdapter,
)
from rentwatch.scrapers.factory import AdapterFactory
from rentwatch.scrapers.utils import DelayStrategy

logger = structlog.get_logger(__name__)

# Registration order is also URL routing order
ADAPTERS = (
    ("suumo", SuumoAdapter),
    ("nifty", NiftyAdapter),
    ("goodrooms", GoodroomsAdapter),
    ("rstore", RStoreAdapter),
    ("yahoo", YahooAdapter),
    ("sumaity", SumaityAdapter),
)


def register_all_adapters(factory: AdapterFactory) -> AdapterFactory:
    """Register every known site adapter with ``factory``.

    Returns:
        The same factory, for chaining
    """
    for site_slug, adapter_class in ADAPTERS:
        factory.register_adapter(site_slug, adapter_class)

    logger.info(
        "all_adapters_registered",
        count=len(factory.get_registered_sites()),
        sites=factory.get_registered_sites(),
    )
    return factory


def build_adapter_factory(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    page_delay: Optional[DelayStrategy] = None,
    url_delay: Optional[DelayStrategy] = None,
) -> AdapterFactory:
    """Create a factory with all site adapters registered."""
    factory = AdapterFactory(
        settings=settings,
        http_client=http_client,
        page_delay=page_delay,
        url_delay=url_delay,
    )
    return register_all_adapters(factory)
