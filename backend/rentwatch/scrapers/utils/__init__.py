"""Scraper utilities for address normalization, identity, pacing and retries."""

from .address import cleanup_address, normalize_address, to_full_width, to_half_width
from .identity import deduplicate_properties, generate_property_id
from .rate_limiter import DelayStrategy, FixedDelay, NoDelay, RateLimiter
from .retry import RETRYABLE_HTTP_ERRORS, with_retry
from .user_agents import DEFAULT_HEADERS, get_browser_headers


__all__ = [
    # Address normalization
    "normalize_address",
    "cleanup_address",
    "to_full_width",
    "to_half_width",
    # Identity
    "generate_property_id",
    "deduplicate_properties",
    # Pacing
    "DelayStrategy",
    "FixedDelay",
    "NoDelay",
    "RateLimiter",
    # Retry
    "with_retry",
    "RETRYABLE_HTTP_ERRORS",
    # Headers
    "DEFAULT_HEADERS",
    "get_browser_headers",
]
