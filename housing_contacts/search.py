"""
Web search client (DuckDuckGo HTML endpoint).

Queries are strictly sequential: every call passes through the shared
DomainRateLimiter keyed on the search host before the request goes out.
Result links are returned as found; redirect-wrapped hrefs are decoded by
the callers through utils.unwrap_redirect.
"""

from dataclasses import dataclass
from typing import List, Optional

import requests
from bs4 import BeautifulSoup
from loguru import logger

from config.settings import SEARCH_URL, SEARCH_DELAY, REQUEST_TIMEOUT
from housing_contacts.exceptions import FetchError
from housing_contacts.fetcher import PageFetcher
from housing_contacts.rate_limiter import DomainRateLimiter
from housing_contacts.utils import clean_text


@dataclass(frozen=True)
class SearchResult:
    """One anchor from a results page."""
    href: str
    text: str
    title: str = ''


class SearchClient:
    """
    Issues free-text queries and returns the anchors of the results page.
    """

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        rate_limiter: Optional[DomainRateLimiter] = None,
        search_url: str = SEARCH_URL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.fetcher = fetcher or PageFetcher(timeout=timeout)
        self.rate_limiter = rate_limiter or DomainRateLimiter(interval=SEARCH_DELAY)
        self.search_url = search_url
        self.timeout = timeout

    def search(self, query: str) -> List[SearchResult]:
        """
        Run one query.

        Args:
            query: Free-text query, e.g. 'Stanford University site:.edu'

        Returns:
            Every anchor with an href on the results page

        Raises:
            FetchError: If the provider cannot be reached or refuses the query
        """
        self.rate_limiter.wait(self.search_url)
        logger.debug(f"Searching: {query}")

        try:
            response = self.fetcher.session.get(
                self.search_url,
                params={'q': query},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self.rate_limiter.record_error(self.search_url)
            raise FetchError(self.search_url, f"Search failed for '{query}': {e.__class__.__name__}") from e

        if not response.ok:
            self.rate_limiter.record_error(self.search_url, response.status_code)
            raise FetchError(self.search_url, f"Search HTTP {response.status_code} for '{query}'",
                             status_code=response.status_code)

        self.rate_limiter.record_success(self.search_url)
        results = parse_results(response.text)
        logger.debug(f"Search '{query}' returned {len(results)} links")
        return results


def parse_results(html: str) -> List[SearchResult]:
    """Extract every anchor (href, text, title) from a results page."""
    soup = BeautifulSoup(html, 'html.parser')
    results = []

    for link in soup.find_all('a', href=True):
        results.append(SearchResult(
            href=link['href'],
            text=clean_text(link.get_text()),
            title=link.get('title', '') or '',
        ))

    return results


__all__ = ['SearchClient', 'SearchResult', 'parse_results']
