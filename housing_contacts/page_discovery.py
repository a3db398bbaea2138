"""
Page discovery: candidate URLs likely to list housing staff.

Two strategies run here and their results are unioned:
- search queries (sequential, paced by the rate limiter)
- subdomain and path probes (HEAD, fixed-size concurrent batches, paced
  between batches), with one extra hop off location/community paths

The third strategy, link-following from fetched pages, runs during
extraction (see LinkExtractor) because it needs the page bodies.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Set

from loguru import logger

from config.keywords import DEFAULT_TABLES, KeywordTables
from config.settings import (
    PROBE_BATCH_SIZE,
    PROBE_BATCH_DELAY,
    PATH_PROBE_TIMEOUT,
    SUBDOMAIN_PROBE_TIMEOUT,
    REQUEST_TIMEOUT,
)
from housing_contacts.exceptions import FetchError
from housing_contacts.fetcher import PageFetcher
from housing_contacts.link_extractor import LinkExtractor
from housing_contacts.models import CandidatePage, DiscoverySource
from housing_contacts.rate_limiter import DomainRateLimiter
from housing_contacts.search import SearchClient
from housing_contacts.utils import extract_hostname, is_edu_hostname, unwrap_redirect


class PageDiscovery:
    """
    Produces the candidate page set for one institution.
    """

    def __init__(
        self,
        search_client: SearchClient,
        fetcher: PageFetcher,
        tables: Optional[KeywordTables] = None,
        batch_size: int = PROBE_BATCH_SIZE,
        batch_delay: float = PROBE_BATCH_DELAY,
        path_timeout: float = PATH_PROBE_TIMEOUT,
        subdomain_timeout: float = SUBDOMAIN_PROBE_TIMEOUT,
    ):
        self.search_client = search_client
        self.fetcher = fetcher
        self.tables = tables or DEFAULT_TABLES
        self.batch_size = max(1, batch_size)
        self.path_timeout = path_timeout
        self.subdomain_timeout = subdomain_timeout
        self.probe_limiter = DomainRateLimiter(interval=batch_delay)
        self.link_extractor = LinkExtractor(fetcher=fetcher, tables=self.tables)

    # =========================================================================
    # Entry points
    # =========================================================================

    async def discover(self, name: str, domain: Optional[str] = None) -> Set[CandidatePage]:
        """
        Union of every strategy's candidates.

        Args:
            name: Institution name
            domain: Resolved domain, if any (enables site: queries and probes)

        Returns:
            Set of CandidatePage, unique by normalized URL
        """
        return set(await self.discover_pages(name, domain))

    async def discover_pages(self, name: str, domain: Optional[str] = None) -> List[CandidatePage]:
        """Same as discover(), as a list in discovery order."""
        found: Dict[str, CandidatePage] = {}

        self._merge(found, await self.search_pages(name, domain))

        if domain:
            self._merge(found, await self.probe_domain(domain))
        else:
            logger.info(f"No domain for '{name}', skipping subdomain/path probes")

        pages = list(found.values())
        logger.info(f"Found {len(pages)} housing-related pages for '{name}'")
        return pages

    @staticmethod
    def _merge(found: Dict[str, CandidatePage], pages: Iterable[CandidatePage]):
        for page in pages:
            found.setdefault(page.normalized_url, page)

    # =========================================================================
    # Search-query strategy
    # =========================================================================

    def build_queries(self, name: str, domain: Optional[str] = None) -> List[str]:
        queries = [template.format(name=name) for template in self.tables.search_query_templates]
        if domain:
            queries.extend(template.format(domain=domain) for template in self.tables.site_query_templates)
        return queries

    def is_relevant_result(self, href: str, text: str, title: str) -> bool:
        """Housing or contact keyword in the link text, title or URL."""
        haystacks = (text.lower(), title.lower(), href.lower())
        keywords = self.tables.housing_keywords + self.tables.contact_keywords
        return any(keyword in haystack for keyword in keywords for haystack in haystacks)

    async def search_pages(self, name: str, domain: Optional[str] = None) -> List[CandidatePage]:
        """Run the query battery one query at a time."""
        loop = asyncio.get_running_loop()
        pages: Dict[str, CandidatePage] = {}

        for query in self.build_queries(name, domain):
            try:
                results = await loop.run_in_executor(None, self.search_client.search, query)
            except FetchError as e:
                logger.warning(f"Failed to search for '{query}': {e}")
                continue

            for result in results:
                if not self.is_relevant_result(result.href, result.text, result.title):
                    continue
                url = unwrap_redirect(result.href)
                if not url or not is_edu_hostname(extract_hostname(url)):
                    continue
                self._merge(pages, [CandidatePage.create(url, DiscoverySource.SEARCH_QUERY)])

        logger.info(f"Search queries found {len(pages)} candidate pages")
        return list(pages.values())

    # =========================================================================
    # Subdomain / path probe strategy
    # =========================================================================

    def build_probe_paths(self) -> List[str]:
        """Staff-directory and location paths to probe under every base URL."""
        tables = self.tables
        paths = list(tables.housing_path_patterns)
        for prefix in tables.path_prefixes:
            paths.extend(f"{prefix}{path}" for path in tables.staff_directory_patterns)
        paths.extend(tables.staff_directory_patterns)
        for prefix in tables.location_path_prefixes:
            paths.extend(f"{prefix}{path}" for path in tables.location_patterns)
        paths.extend(tables.location_patterns)
        return list(dict.fromkeys(paths))

    def is_location_path(self, path: str) -> bool:
        return any(pattern.strip('/') in path for pattern in self.tables.location_patterns)

    async def _probe(self, url: str, timeout: float) -> int:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.fetcher.head, url, timeout)

    async def probe_batches(self, urls: List[str], timeout: float) -> List[str]:
        """
        HEAD-probe urls in concurrent batches; return those answering 200.

        One failing probe never cancels the rest of its batch.
        """
        live: List[str] = []

        for start in range(0, len(urls), self.batch_size):
            batch = urls[start:start + self.batch_size]
            await self.probe_limiter.wait_async(extract_hostname(batch[0]) or batch[0])

            statuses = await asyncio.gather(
                *(self._probe(url, timeout) for url in batch),
                return_exceptions=True,
            )

            for url, status in zip(batch, statuses):
                if isinstance(status, FetchError):
                    logger.debug(f"Probe failed: {url}")
                elif isinstance(status, BaseException):
                    logger.warning(f"Unexpected probe error for {url}: {status!r}")
                elif status == 200:
                    live.append(url)
                    logger.info(f"Found page: {url}")
                elif status in (429, 503):
                    self.probe_limiter.record_error(url, status)

        return live

    async def probe_domain(self, domain: str) -> List[CandidatePage]:
        """Probe housing subdomains, then staff/location paths on each live base."""
        pages: Dict[str, CandidatePage] = {}

        subdomain_urls = [f"https://{prefix}.{domain}" for prefix in self.tables.housing_subdomains]
        live_subdomains = await self.probe_batches(subdomain_urls, self.subdomain_timeout)
        self._merge(pages, (CandidatePage.create(url, DiscoverySource.SUBDOMAIN_PROBE)
                            for url in live_subdomains))

        for base_url in live_subdomains + [f"https://{domain}"]:
            self._merge(pages, await self.probe_paths(base_url))

        logger.info(f"Probing {domain} found {len(pages)} candidate pages")
        return list(pages.values())

    async def probe_paths(self, base_url: str) -> List[CandidatePage]:
        paths = self.build_probe_paths()
        urls = [f"{base_url}{path}" for path in paths]
        live = await self.probe_batches(urls, self.path_timeout)

        pages: Dict[str, CandidatePage] = {}
        self._merge(pages, (CandidatePage.create(url, DiscoverySource.PATH_PROBE) for url in live))

        for url in live:
            if self.is_location_path(url[len(base_url):]):
                self._merge(pages, await self.location_sub_pages(url))

        return list(pages.values())

    async def location_sub_pages(self, location_url: str) -> List[CandidatePage]:
        """One extra hop: building/hall links on a live location page."""
        loop = asyncio.get_running_loop()
        try:
            html = await loop.run_in_executor(None, self.fetcher.get, location_url, REQUEST_TIMEOUT)
        except FetchError as e:
            logger.warning(f"Failed to discover sub-pages from {location_url}: {e}")
            return []

        links = self.link_extractor.discover_location_links(html, location_url)
        if links:
            logger.info(f"Found {len(links)} location sub-pages on {location_url}")
        return [CandidatePage.create(url, DiscoverySource.LOCATION_LINK) for url in links]


__all__ = ['PageDiscovery']
