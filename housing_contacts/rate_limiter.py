"""
Per-host request pacing.

A fixed-interval gate keyed by hostname: consecutive requests to the same
host are spaced by at least the host's current interval, requests to
different hosts do not wait on each other. 429/503 responses double the
interval for that host (capped); a success relaxes it back towards the
configured interval.

Search queries and probe batches go through the same limiter, so pacing
lives here instead of being scattered as sleeps around the fetch calls.
"""

import asyncio
import time
from collections import defaultdict
from threading import Lock
from typing import Dict, Optional
from urllib.parse import urlparse

from loguru import logger


class DomainRateLimiter:
    """
    Fixed-interval gate per host with backoff on throttling responses.
    """

    def __init__(self, interval: float = 1.5, max_interval: float = 30.0):
        """
        Initialize the gate.

        Args:
            interval: Minimum spacing between requests to the same host (seconds)
            max_interval: Upper bound for the backed-off spacing (seconds)
        """
        self.interval = interval
        self.max_interval = max_interval

        self.last_request_time: Dict[str, float] = {}
        self.current_interval: Dict[str, float] = defaultdict(lambda: interval)
        self.error_count: Dict[str, int] = defaultdict(int)

        self.lock = Lock()

        self.total_requests = 0
        self.total_delays = 0.0

    @staticmethod
    def _key(url_or_host: str) -> str:
        """Hostname used as the gate key (accepts a URL or a bare host)."""
        if '://' not in url_or_host:
            return url_or_host.lower()
        try:
            return urlparse(url_or_host).netloc.lower()
        except ValueError:
            return url_or_host.lower()

    def _reserve(self, key: str) -> float:
        """
        Reserve the next slot for key and return how long to wait for it.

        Must be called with the lock held. The slot is booked before waiting,
        so concurrent callers queue up one interval apart.
        """
        now = time.monotonic()
        last = self.last_request_time.get(key)
        wait_time = 0.0 if last is None else max(0.0, last + self.current_interval[key] - now)

        self.last_request_time[key] = now + wait_time
        self.total_requests += 1
        self.total_delays += wait_time
        return wait_time

    def wait(self, url_or_host: str) -> float:
        """
        Block until a request to this host may be issued.

        Returns:
            Seconds waited
        """
        key = self._key(url_or_host)
        with self.lock:
            wait_time = self._reserve(key)

        if wait_time > 0:
            logger.debug(f"Rate limiting {key}: waiting {wait_time:.1f}s")
            time.sleep(wait_time)

        return wait_time

    async def wait_async(self, url_or_host: str) -> float:
        """
        Async version of wait(); sleeps without blocking the event loop.

        Returns:
            Seconds waited
        """
        key = self._key(url_or_host)
        with self.lock:
            wait_time = self._reserve(key)

        if wait_time > 0:
            logger.debug(f"Rate limiting {key}: waiting {wait_time:.1f}s")
            await asyncio.sleep(wait_time)

        return wait_time

    def record_success(self, url_or_host: str):
        """Relax the interval for this host back towards the base interval."""
        key = self._key(url_or_host)

        with self.lock:
            self.error_count[key] = 0
            current = self.current_interval[key]
            if current > self.interval:
                self.current_interval[key] = max(self.interval, current * 0.75)
                logger.debug(f"Reduced interval for {key}: {self.current_interval[key]:.1f}s")

    def record_error(self, url_or_host: str, status_code: Optional[int] = None):
        """
        Record a failed request.

        Only explicit throttling (429 or 503) widens the interval; other
        failures say nothing about the host's rate limits.
        """
        key = self._key(url_or_host)

        with self.lock:
            self.error_count[key] += 1

            if status_code in (429, 503):
                self.current_interval[key] = min(
                    self.max_interval,
                    max(self.current_interval[key], self.interval, 0.5) * 2.0
                )
                logger.warning(f"Rate limit hit for {key} (status {status_code}): "
                               f"interval now {self.current_interval[key]:.1f}s")

    def get_stats(self) -> dict:
        with self.lock:
            return {
                'total_requests': self.total_requests,
                'total_delays': round(self.total_delays, 1),
                'hosts_accessed': len(self.last_request_time),
                'hosts_with_errors': sum(1 for count in self.error_count.values() if count > 0),
            }

    def reset(self):
        """Reset all pacing state."""
        with self.lock:
            self.last_request_time.clear()
            self.current_interval.clear()
            self.error_count.clear()
            self.total_requests = 0
            self.total_delays = 0.0


__all__ = ['DomainRateLimiter']
