"""Scraper system for fetching rental listings from Japanese portals.

This package provides:
- Base adapter class with shared fetching, pagination and pacing
- Site adapters for the six supported portals
- Factory for creating adapters and routing URLs to them
- Orchestration service running all sites concurrently
"""

from .base import BaseScraperAdapter, PageState, PropertyRecord
from .factory import AdapterFactory

__all__ = [
    # Base classes
    "BaseScraperAdapter",
    # Data structures
    "PropertyRecord",
    "PageState",
    # Factory
    "AdapterFactory",
]
