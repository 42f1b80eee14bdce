"""
Error types raised by the catalog crawler.

None of these are fatal to a crawl run: per-item errors are logged and the
item is dropped, and a listing page failure ends pagination.
"""

from typing import Optional


class CrawlerError(Exception):
    """Base class for crawl-time errors."""


class UrlBuildError(CrawlerError):
    """A relative path could not be turned into a valid absolute URL."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not build URL from {path!r}: {reason}")


class FetchError(CrawlerError):
    """A page could not be fetched (non-success status or transport failure)."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ExtractionError(CrawlerError):
    """A required record field could not be extracted from a detail page."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class RecipeError(ValueError):
    """The crawl configuration is invalid (bad URL, selector or limit)."""
