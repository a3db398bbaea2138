"""
HTTP access to target sites.

PageFetcher wraps one requests.Session with a realistic browser user agent
(fake_useragent), a bounded redirect count and per-call timeouts. Every
failure surfaces as FetchError so callers catch exactly one type.
"""

from typing import Optional

import requests
from fake_useragent import UserAgent
from loguru import logger

from config.settings import (
    USE_RANDOM_USER_AGENT,
    REQUEST_TIMEOUT,
    DOMAIN_PROBE_TIMEOUT,
    MAX_REDIRECTS,
)
from housing_contacts.exceptions import FetchError


FALLBACK_USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

DEFAULT_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
    'Accept-Encoding': 'gzip, deflate',
    'Connection': 'keep-alive',
}

_ua: Optional[UserAgent] = None


def get_user_agent() -> str:
    """Get user agent string."""
    global _ua

    if not USE_RANDOM_USER_AGENT:
        return FALLBACK_USER_AGENT

    if _ua is None:
        _ua = UserAgent()
    return _ua.random


class PageFetcher:
    """
    GET/HEAD client for target sites.

    Safe to share between the executor threads used for probe batches.
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        max_redirects: int = MAX_REDIRECTS,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.max_redirects = max_redirects
        self.session.headers.update(DEFAULT_HEADERS)
        self.session.headers['User-Agent'] = get_user_agent()

    def get(self, url: str, timeout: Optional[float] = None) -> str:
        """
        Fetch a page body.

        Args:
            url: Absolute URL
            timeout: Per-call timeout in seconds (default: REQUEST_TIMEOUT)

        Returns:
            Decoded response body

        Raises:
            FetchError: On network failure, too many redirects or non-2xx status
        """
        try:
            logger.debug(f"Fetching: {url}")
            response = self.session.get(url, timeout=timeout or self.timeout)
        except requests.RequestException as e:
            raise FetchError(url, f"Request failed: {e.__class__.__name__}") from e

        if not response.ok:
            raise FetchError(url, f"HTTP {response.status_code}", status_code=response.status_code)

        return response.text

    def head(self, url: str, timeout: Optional[float] = None) -> int:
        """
        Lightweight existence probe.

        Returns:
            Final status code after following redirects

        Raises:
            FetchError: On network failure or too many redirects
        """
        try:
            response = self.session.head(url, timeout=timeout or self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise FetchError(url, f"Probe failed: {e.__class__.__name__}") from e

        return response.status_code

    def is_reachable(self, url: str, timeout: float = DOMAIN_PROBE_TIMEOUT) -> bool:
        """
        Live reachability check used to confirm a guessed domain.

        True only when a GET answers 200 within the timeout and redirect limit.
        """
        try:
            response = self.session.get(url, timeout=timeout)
        except requests.RequestException as e:
            logger.debug(f"Not reachable: {url} ({e.__class__.__name__})")
            return False

        return response.status_code == 200

    def close(self):
        self.session.close()


__all__ = ['PageFetcher', 'get_user_agent']
