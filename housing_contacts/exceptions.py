"""
Exception types for Housing Contact Scraper.

Only PersistenceError (and genuinely unexpected errors) should reach the
caller of a run; the others are caught where they happen and recorded.
"""

from typing import Optional


class HousingScraperError(Exception):
    """Base class for all scraper errors."""


class FetchError(HousingScraperError):
    """A search, probe or page request failed (network error or non-2xx)."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class PageTimeoutError(HousingScraperError):
    """A page extraction exceeded its per-page budget."""

    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(f"Page timeout ({timeout_seconds:g}s)")
        self.url = url
        self.timeout_seconds = timeout_seconds


class PersistenceError(HousingScraperError):
    """The persistence collaborator failed; results cannot be stored."""
