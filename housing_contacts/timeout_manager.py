"""
Run and page time budgets.

One RunBudget per discovery run: a long global budget checked before each
page is started, and a short per-page budget that each page (and any
secondary pages it triggers) is raced against.
"""

import time
from typing import Optional

from loguru import logger

from config.settings import SCRAPING_TIMEOUT_SECONDS, PAGE_TIMEOUT_SECONDS


class RunBudget:
    """
    Wall-clock budgets for one run.

    Args:
        run_timeout: Global budget across all page extractions (seconds)
        page_timeout: Budget for a single page (seconds)
    """

    def __init__(
        self,
        run_timeout: float = SCRAPING_TIMEOUT_SECONDS,
        page_timeout: float = PAGE_TIMEOUT_SECONDS,
    ):
        self.run_timeout = run_timeout
        self.page_timeout = page_timeout
        self.started_at: Optional[float] = None

        # Statistics
        self.pages_started = 0
        self.page_timeouts = 0

    def start(self):
        """Start the run clock (idempotent)."""
        if self.started_at is None:
            self.started_at = time.monotonic()

    @property
    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return time.monotonic() - self.started_at

    @property
    def exhausted(self) -> bool:
        """True once the global budget is spent; no new page may start."""
        exhausted = self.elapsed > self.run_timeout
        if exhausted:
            logger.warning(f"Scraping timeout reached after {self.elapsed:.0f}s")
        return exhausted

    def page_deadline(self) -> float:
        """Monotonic deadline for a page starting now."""
        self.pages_started += 1
        return time.monotonic() + self.page_timeout

    @staticmethod
    def remaining(deadline: float) -> float:
        """Seconds left until deadline (never negative)."""
        return max(0.0, deadline - time.monotonic())

    def record_timeout(self, url: str):
        self.page_timeouts += 1
        logger.warning(f"Page timeout ({self.page_timeout:g}s): {url}")

    def get_stats(self) -> dict:
        return {
            'elapsed_seconds': round(self.elapsed, 1),
            'pages_started': self.pages_started,
            'page_timeouts': self.page_timeouts,
            'run_timeout_seconds': self.run_timeout,
            'page_timeout_seconds': self.page_timeout,
        }


__all__ = ['RunBudget']
