"""Custom exception classes for the application."""

from typing import Optional


class RentWatchException(Exception):
    """Base exception for all RentWatch errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(RentWatchException):
    """Raised when required process configuration is missing or invalid."""


class ScraperError(RentWatchException):
    """Raised when a scraper encounters an error."""

    def __init__(self, site: str, message: str):
        self.site = site
        super().__init__(f"Scraper error for {site}: {message}")


class NetworkError(ScraperError):
    """Raised when a page could not be downloaded."""

    def __init__(self, url: str, site: str, original_error: Optional[Exception] = None):
        self.url = url
        self.original_error = original_error
        super().__init__(site, f"network error while fetching {url}")


class ParseError(ScraperError):
    """Raised when downloaded content could not be turned into records."""

    def __init__(self, url: str, site: str, original_error: Optional[Exception] = None):
        self.url = url
        self.original_error = original_error
        super().__init__(site, f"failed to parse content from {url}")


class PersistenceError(RentWatchException):
    """Raised when the property store cannot be read or written."""
