"""Site-specific adapter implementations.

Each adapter module implements a class that inherits from
BaseScraperAdapter and knows the result-page markup of one portal.
"""

from .suumo import SuumoAdapter
from .nifty import NiftyAdapter
from .goodrooms import GoodroomsAdapter
from .rstore import RStoreAdapter
from .yahoo import YahooAdapter
from .sumaity import SumaityAdapter

__all__ = [
    "SuumoAdapter",
    "NiftyAdapter",
    "GoodroomsAdapter",
    "RStoreAdapter",
    "YahooAdapter",
    "SumaityAdapter",
]
