"""
Per-run ledger of visited pages and already-emitted emails.
"""

from threading import Lock
from typing import Set
from urllib.parse import urlparse


def normalize_url(url: str) -> str:
    """
    Origin plus path without trailing slashes, lowercased.

    'https://x.edu/housing' and 'https://x.edu/Housing/' normalize the same;
    query strings and fragments are dropped.
    """
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return url.strip().lower()

    if not parsed.scheme or not parsed.netloc:
        return url.strip().lower()

    path = parsed.path.rstrip('/')
    return f"{parsed.scheme}://{parsed.netloc}{path}".lower()


class URLTracker:
    """
    Visited-set and email-set for one discovery run.

    Only the orchestrator's extraction loop mutates a tracker; page workers
    read it through has_been_scraped() to skip links already handled.
    """

    def __init__(self):
        self._scraped_urls: Set[str] = set()
        self._emails: Set[str] = set()
        self._lock = Lock()

    normalize_url = staticmethod(normalize_url)

    def has_been_scraped(self, url: str) -> bool:
        with self._lock:
            return normalize_url(url) in self._scraped_urls

    def mark_as_scraped(self, url: str):
        with self._lock:
            self._scraped_urls.add(normalize_url(url))

    def has_email(self, email: str) -> bool:
        with self._lock:
            return email.lower() in self._emails

    def add_email(self, email: str):
        with self._lock:
            self._emails.add(email.lower())

    @property
    def scraped_count(self) -> int:
        return len(self._scraped_urls)

    @property
    def email_count(self) -> int:
        return len(self._emails)


__all__ = ['URLTracker', 'normalize_url']
