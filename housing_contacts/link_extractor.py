"""
Link Extraction Module

Finds follow-up pages inside an already fetched page: contact/staff links,
community and building pages off a housing hub, and location sub-pages off a
probed location path. All results stay on the page's own hostname and skip
URLs the run has already visited.
"""

import re
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urljoin, urldefrag, urlparse

from bs4 import BeautifulSoup
from loguru import logger

from config.keywords import DEFAULT_TABLES, KeywordTables
from config.settings import MAX_CONTACT_LINKS, MAX_COMMUNITY_PAGES, REQUEST_TIMEOUT
from housing_contacts.exceptions import FetchError
from housing_contacts.url_tracker import URLTracker, normalize_url


# Link text that names a specific place
LOCATION_TEXT_PATTERNS = (
    re.compile(r'\b(north|south|east|west|tower|hall|court|village|plaza|house)\b', re.IGNORECASE),
    re.compile(r'\b(building|complex|residence|dorm|suite)\b', re.IGNORECASE),
    re.compile(r'\b[A-Z][a-z]+ (hall|house|court|tower|apartments?)\b', re.IGNORECASE),
)

COMMUNITY_TEXT_PATTERNS = (
    re.compile(r'\b(north|south|east|west|upper|lower|new|old)\s+(campus|village|complex|area)', re.IGNORECASE),
    re.compile(r'\b(tower|hall|court|house|plaza|village|commons|square|center)\b', re.IGNORECASE),
    re.compile(r'\b(freshman|sophomore|junior|senior|graduate|family)\s+(housing|apartments?|residence)', re.IGNORECASE),
    re.compile(r'\b[A-Z][a-z]+\s+(hall|house|court|tower|apartments?|complex|village)\b', re.IGNORECASE),
)

COMMUNITY_HREF_PATTERNS = (
    re.compile(r'/(community|location|building|hall|residence|apartment)s?/', re.IGNORECASE),
    re.compile(r'/(north|south|east|west)-', re.IGNORECASE),
)

EXCLUDE_PATTERNS = (
    re.compile(r'^mailto:', re.IGNORECASE),
    re.compile(r'^tel:', re.IGNORECASE),
    re.compile(r'^javascript:', re.IGNORECASE),
    re.compile(r'^#'),
    re.compile(r'\.(pdf|docx?|jpe?g|png|gif|svg|zip)$', re.IGNORECASE),
)


def _anchors(soup: BeautifulSoup) -> Iterable[Tuple[str, str, str]]:
    """Yield (href, lowercased text, lowercased title) for every anchor."""
    for link in soup.find_all('a', href=True):
        href = link['href'].strip()
        if not href or any(pattern.search(href) for pattern in EXCLUDE_PATTERNS):
            continue
        yield href, link.get_text(' ', strip=True).lower(), (link.get('title') or '').lower()


def resolve_same_host(href: str, base_url: str) -> Optional[str]:
    """Absolute URL for href, or None if it leaves base_url's hostname."""
    try:
        full_url, _ = urldefrag(urljoin(base_url, href))
        base_host = urlparse(base_url).hostname
        link_host = urlparse(full_url).hostname
    except ValueError:
        return None

    if not link_host or link_host != base_host:
        return None
    if urlparse(full_url).scheme not in ('http', 'https'):
        return None
    return full_url


class LinkExtractor:
    """
    Keyword and naming-pattern link discovery.

    Args:
        fetcher: PageFetcher used when a page still has to be fetched
        tables: Keyword tables (default tables when None)
    """

    def __init__(self, fetcher=None, tables: Optional[KeywordTables] = None):
        self.fetcher = fetcher
        self.tables = tables or DEFAULT_TABLES
        self.contact_keywords = (
            self.tables.contact_keywords
            + self.tables.link_contact_keywords
            + self.tables.location_keywords
        )

    def is_location_text(self, text: str, title: str = '') -> bool:
        if any(keyword in text or keyword in title for keyword in self.tables.location_keywords):
            return True
        return any(pattern.search(text) for pattern in LOCATION_TEXT_PATTERNS)

    def is_community_link(self, href: str, text: str, title: str = '') -> bool:
        if any(keyword in text or keyword in title for keyword in self.tables.location_keywords):
            return True
        if any(pattern.search(text) for pattern in COMMUNITY_TEXT_PATTERNS):
            return True
        return any(pattern.search(href) for pattern in COMMUNITY_HREF_PATTERNS)

    def discover_contact_links(
        self,
        html: str,
        base_url: str,
        tracker: Optional[URLTracker] = None,
        limit: int = MAX_CONTACT_LINKS,
    ) -> List[str]:
        """
        Contact, staff and location links on a page.

        Args:
            html: Page HTML
            base_url: URL of the page (for resolving relative links)
            tracker: Run tracker; visited URLs are skipped
            limit: Maximum links returned

        Returns:
            Same-host URLs in page order
        """
        soup = BeautifulSoup(html or '', 'html.parser')
        links: List[str] = []
        seen = {normalize_url(base_url)}

        for href, text, title in _anchors(soup):
            if len(links) >= limit:
                break

            lower_href = href.lower()
            is_contact = any(
                keyword in text or keyword in title or keyword in lower_href
                for keyword in self.contact_keywords
            )
            is_location = self.is_location_text(text, title)
            if not (is_contact or is_location):
                continue

            full_url = resolve_same_host(href, base_url)
            if not full_url:
                continue

            key = normalize_url(full_url)
            if key in seen or (tracker and tracker.has_been_scraped(full_url)):
                continue

            seen.add(key)
            links.append(full_url)
            logger.debug(f"Found {'location' if is_location else 'contact'} link: {text} -> {full_url}")

        return links

    def discover_community_pages(
        self,
        url: str,
        tracker: Optional[URLTracker] = None,
        html: Optional[str] = None,
        limit: int = MAX_COMMUNITY_PAGES,
    ) -> List[str]:
        """
        Community and building pages linked from a housing hub.

        Args:
            url: Hub page URL
            tracker: Run tracker; visited URLs are skipped
            html: Hub HTML if already fetched, otherwise it is fetched here
            limit: Maximum pages returned

        Returns:
            Same-host URLs, at most limit of them
        """
        if html is None:
            if self.fetcher is None:
                return []
            try:
                html = self.fetcher.get(url, timeout=REQUEST_TIMEOUT)
            except FetchError as e:
                logger.warning(f"Failed to discover community pages from {url}: {e}")
                return []

        soup = BeautifulSoup(html, 'html.parser')
        pages: List[str] = []
        seen = {normalize_url(url)}

        def add(full_url: Optional[str]) -> bool:
            if not full_url:
                return False
            key = normalize_url(full_url)
            if key in seen or (tracker and tracker.has_been_scraped(full_url)):
                return False
            seen.add(key)
            pages.append(full_url)
            return True

        for href, text, title in _anchors(soup):
            if len(pages) >= limit:
                break
            if self.is_community_link(href, text, title):
                if add(resolve_same_host(href, url)):
                    logger.debug(f"Found community page: {text} -> {pages[-1]}")

        # Navigation blocks dedicated to communities
        if len(pages) < limit:
            for nav in soup.select(', '.join(self.tables.community_nav_selectors)):
                for link in nav.find_all('a', href=True):
                    if len(pages) >= limit:
                        break
                    if len(link.get_text(strip=True)) > 2:
                        add(resolve_same_host(link['href'], url))

        return pages[:limit]

    def discover_location_links(self, html: str, location_url: str) -> List[str]:
        """
        Links to individual buildings on a location/community page.

        Used for the single extra hop after a location path probe succeeds.
        """
        soup = BeautifulSoup(html or '', 'html.parser')
        links: List[str] = []
        seen = {normalize_url(location_url)}

        for href, text, title in _anchors(soup):
            is_location = (
                any(keyword in href.lower() for keyword in self.tables.location_keywords)
                or self.is_location_text(text, title)
            )
            if not is_location:
                continue

            full_url = resolve_same_host(href, location_url)
            if full_url and normalize_url(full_url) not in seen:
                seen.add(normalize_url(full_url))
                links.append(full_url)

        return links


__all__ = ['LinkExtractor', 'resolve_same_host']
