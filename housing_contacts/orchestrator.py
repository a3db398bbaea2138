"""
Contact discovery orchestration.

Sequences one run:

    IDLE -> RESOLVING_IDENTITY -> DISCOVERING_PAGES -> EXTRACTING_PAGES
         -> SCORING -> DONE | FAILED

Pages are extracted one at a time. Each page worker runs in the event
loop's executor and is raced against the per-page budget with
asyncio.wait_for; a page that loses the race is recorded as a timeout and
its result is discarded. The global budget is checked before each page.
Only this loop mutates the run's URLTracker.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger

from config.keywords import DEFAULT_TABLES, KeywordTables
from config.settings import (
    MAX_COMMUNITY_PAGES_SCRAPED,
    PAGE_TIMEOUT_SECONDS,
    SCRAPING_TIMEOUT_SECONDS,
)
from housing_contacts.contact_extractor import ContactExtractor, PageScrapeResult
from housing_contacts.deduplication import deduplicate_contacts
from housing_contacts.domain_resolver import DomainResolver
from housing_contacts.exceptions import FetchError, PageTimeoutError
from housing_contacts.fetcher import PageFetcher
from housing_contacts.models import (
    EngineState,
    PageOutcome,
    RawContact,
    RunResult,
    RunStatus,
)
from housing_contacts.page_discovery import PageDiscovery
from housing_contacts.scoring import score_and_filter
from housing_contacts.search import SearchClient
from housing_contacts.timeout_manager import RunBudget
from housing_contacts.url_tracker import URLTracker


@dataclass
class RunState:
    """Mutable state of one run; discarded when the run ends."""
    tracker: URLTracker
    budget: RunBudget
    outcomes: List[PageOutcome] = field(default_factory=list)
    contacts: List[RawContact] = field(default_factory=list)
    timed_out: bool = False


class ContactDiscoveryEngine:
    """
    End-to-end discovery for one institution name per run() call.

    Collaborators default to the real network-backed implementations;
    tests pass stubs.
    """

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        search_client: Optional[SearchClient] = None,
        resolver: Optional[DomainResolver] = None,
        discovery: Optional[PageDiscovery] = None,
        extractor: Optional[ContactExtractor] = None,
        tables: Optional[KeywordTables] = None,
        run_timeout: float = SCRAPING_TIMEOUT_SECONDS,
        page_timeout: float = PAGE_TIMEOUT_SECONDS,
        max_community_pages: int = MAX_COMMUNITY_PAGES_SCRAPED,
    ):
        self.tables = tables or DEFAULT_TABLES
        self.fetcher = fetcher or PageFetcher()
        self.search_client = search_client or SearchClient(fetcher=PageFetcher())
        self.resolver = resolver or DomainResolver(self.search_client, self.fetcher, self.tables)
        self.discovery = discovery or PageDiscovery(self.search_client, self.fetcher, self.tables)
        self.extractor = extractor or ContactExtractor(self.tables)
        self.run_timeout = run_timeout
        self.page_timeout = page_timeout
        self.max_community_pages = max_community_pages
        self.state = EngineState.IDLE

    def _transition(self, state: EngineState):
        logger.debug(f"Engine state: {self.state.value} -> {state.value}")
        self.state = state

    async def run(self, name: str) -> RunResult:
        """
        Discover, extract and rank housing contacts for one institution.

        Network failures and budget exhaustion are recorded in the result;
        only unexpected errors propagate (the engine is left in FAILED).
        """
        try:
            return await self._run(name)
        except Exception:
            self._transition(EngineState.FAILED)
            logger.exception(f"Discovery run failed for '{name}'")
            raise

    async def _run(self, name: str) -> RunResult:
        loop = asyncio.get_running_loop()
        budget = RunBudget(self.run_timeout, self.page_timeout)
        budget.start()

        logger.info(f"Starting contact discovery for: {name}")

        self._transition(EngineState.RESOLVING_IDENTITY)
        domain = await loop.run_in_executor(None, self.resolver.resolve, name)
        if not domain:
            logger.info(f"Continuing name-only discovery for '{name}'")

        self._transition(EngineState.DISCOVERING_PAGES)
        pages = await self.discovery.discover_pages(name, domain)
        discovered = [page.url for page in pages]

        if not pages:
            logger.warning(f"No housing pages found for '{name}'")
            self._transition(EngineState.DONE)
            return RunResult(
                institution_name=name,
                resolved_domain=domain,
                elapsed_seconds=budget.elapsed,
                status=RunStatus.NO_PAGES,
            )

        self._transition(EngineState.EXTRACTING_PAGES)
        state = RunState(tracker=URLTracker(), budget=budget)

        for page in pages:
            if budget.exhausted:
                state.timed_out = True
                break

            deadline = budget.page_deadline()
            result = await self._process_page(page.url, deadline, state)

            if result is not None and self.is_hub_page(page.url):
                await self._process_community_pages(page.url, result, deadline, state)

            if state.timed_out:
                break

        logger.info(f"Extraction finished in {budget.elapsed:.0f}s"
                    f"{' (TIMED OUT)' if state.timed_out else ''}")

        self._transition(EngineState.SCORING)
        ranked = score_and_filter(state.contacts)
        unique = deduplicate_contacts(ranked)

        self._transition(EngineState.DONE)
        return RunResult(
            institution_name=name,
            resolved_domain=domain,
            discovered_pages=discovered,
            page_outcomes=state.outcomes,
            contacts=unique,
            timed_out=state.timed_out,
            elapsed_seconds=budget.elapsed,
            total_found=len(state.contacts),
            relevant_count=len(ranked),
            status=RunStatus.PARTIAL if state.timed_out else RunStatus.COMPLETED,
        )

    def is_hub_page(self, url: str) -> bool:
        lower = url.lower()
        return any(marker in lower for marker in self.tables.hub_path_markers)

    async def _process_page(self, url: str, deadline: float, state: RunState) -> Optional[PageScrapeResult]:
        """
        Race one page worker against the page deadline and fold its result in.

        Returns:
            The worker's result, or None when the page failed, timed out or
            was already visited
        """
        loop = asyncio.get_running_loop()
        cancel_event = threading.Event()
        worker = loop.run_in_executor(
            None, self.extractor.scrape_page, url, state.tracker, self.fetcher, cancel_event
        )

        try:
            result = await asyncio.wait_for(worker, timeout=state.budget.remaining(deadline))
        except asyncio.TimeoutError:
            cancel_event.set()
            state.budget.record_timeout(url)
            error = PageTimeoutError(url, self.page_timeout)
            state.outcomes.append(PageOutcome(url=url, success=False, error=str(error)))
            return None
        except FetchError as e:
            logger.warning(f"Failed to scrape {url}: {e}")
            state.outcomes.append(PageOutcome(url=url, success=False, error=str(e)))
            return None
        except Exception as e:
            logger.exception(f"Unexpected error scraping {url}")
            state.outcomes.append(PageOutcome(url=url, success=False, error=f"Unexpected error: {e}"))
            return None

        # Already handled as a followed link; not a page outcome of its own
        if result.skipped:
            return None

        for visited in result.visited_urls:
            state.tracker.mark_as_scraped(visited)

        kept = []
        for contact in result.contacts:
            if not contact.is_contact_form:
                if state.tracker.has_email(contact.email):
                    logger.debug(f"Skipping duplicate email: {contact.email}")
                    continue
                state.tracker.add_email(contact.email)
            kept.append(contact)

        state.contacts.extend(kept)
        state.outcomes.append(PageOutcome(url=url, success=True, count=len(kept)))
        logger.success(f"Scraped {len(kept)} contacts from {url}")
        return result

    async def _process_community_pages(
        self,
        hub_url: str,
        hub_result: PageScrapeResult,
        deadline: float,
        state: RunState,
    ):
        """Secondary pass over community pages linked from a housing hub."""
        if hub_result.skipped or not hub_result.html:
            return

        community_pages = self.extractor.link_extractor.discover_community_pages(
            hub_url, state.tracker, html=hub_result.html
        )
        logger.info(f"Found {len(community_pages)} additional community pages from {hub_url}")

        for url in community_pages[:self.max_community_pages]:
            if state.budget.exhausted:
                state.timed_out = True
                return
            await self._process_page(url, deadline, state)


def run_discovery(name: str, **engine_options) -> RunResult:
    """
    Synchronous entry point: run one discovery with a fresh engine.

    Example:
        >>> result = run_discovery("Stanford University", page_timeout=60)
        >>> result.to_dict()['resolvedDomain']
        'stanford.edu'
    """
    engine = ContactDiscoveryEngine(**engine_options)
    return asyncio.run(engine.run(name))


__all__ = ['ContactDiscoveryEngine', 'RunState', 'run_discovery']
