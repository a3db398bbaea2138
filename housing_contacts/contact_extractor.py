"""
Contact Extraction Module

Turns one page of HTML into RawContact records.

Extraction is an ordered list of named strategies, each a pure function of
an ExtractionContext:
1. structured_data - microdata/RDFa Person, data-attribute blocks, vCard/h-card
2. table_rows      - one record per table row holding an email
3. proximity       - staff-like sections, email line -> nearby name -> nearby title
4. location_staff  - building/hall/community staff blocks
5. labeled_roles   - "Hall Director: jane@school.edu" style text

Every email passes the same filter before any strategy may use it. Within
one page the first strategy that claims an email wins.
"""

import re
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Pattern, Sequence, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from loguru import logger

from config.keywords import DEFAULT_TABLES, KeywordTables
from config.settings import CONTACT_PAGE_DELAY, MAX_CONTACT_PAGES, REQUEST_TIMEOUT
from housing_contacts.email_deobfuscator import EmailDeobfuscator
from housing_contacts.exceptions import FetchError
from housing_contacts.link_extractor import LinkExtractor
from housing_contacts.models import (
    CONTACT_FORM_EMAIL,
    CONTACT_FORM_TITLE,
    DEFAULT_DEPARTMENT,
    DEFAULT_TITLE,
    RawContact,
)
from housing_contacts.url_tracker import URLTracker
from housing_contacts.utils import EMAIL_PATTERN, clean_text, extract_phones, find_emails


NAME_CHARACTERS = re.compile(r"^[a-zA-Z\s.,'-]+$")
HAS_LETTER = re.compile(r'[a-zA-Z]')
BUILDING_PATH = re.compile(r'/([\w-]+)-(hall|house|court|tower|apartments?|complex)')
CONTEXT_NAME = re.compile(r'([A-Z][a-z]+ [A-Z][a-z]+)')

# Tags that start a new line when a section is flattened to text
BLOCK_TAGS = frozenset((
    'address', 'article', 'aside', 'blockquote', 'br', 'dd', 'div', 'dl', 'dt',
    'figcaption', 'figure', 'footer', 'form', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'header', 'hr', 'li', 'main', 'nav', 'ol', 'p', 'section', 'table', 'tbody',
    'td', 'th', 'thead', 'tr', 'ul',
))

NAME_WINDOW = 4
TITLE_WINDOW = 2
MIN_SECTION_TEXT = 30


# =============================================================================
# Validity Predicates
# =============================================================================

def is_valid_email(email: str, tables: KeywordTables = DEFAULT_TABLES) -> bool:
    """
    Email filter applied before any extraction.

    Syntactically valid, 5-100 characters, not ending in a file extension such as
    '.png', no automated-mailbox marker (noreply, webmaster, ...).
    """
    if not email or not 5 <= len(email) <= 100:
        return False
    if not EMAIL_PATTERN.fullmatch(email):
        return False

    lower = email.lower()
    if any(lower.endswith(f'.{ext}') for ext in tables.file_extensions):
        return False
    if any(marker in lower for marker in tables.automated_mailbox_markers):
        return False

    return True


def filter_emails(text: str, tables: KeywordTables = DEFAULT_TABLES) -> List[str]:
    """Unique, filtered emails in order of appearance."""
    return [email for email in find_emails(text) if is_valid_email(email, tables)]


def is_valid_name(candidate: str, deny_patterns: Sequence[Pattern]) -> bool:
    """
    Name-validity predicate.

    2-60 characters, at least one letter, only letters, spaces and . , ' -
    and no deny-listed phrase (department, office, phone, ...).
    """
    if not candidate or not 2 <= len(candidate) <= 60:
        return False
    if not HAS_LETTER.search(candidate) or not NAME_CHARACTERS.match(candidate):
        return False
    return not any(pattern.search(candidate) for pattern in deny_patterns)


def is_valid_title(candidate: str, tables: KeywordTables = DEFAULT_TABLES) -> bool:
    """3-150 characters containing an administrative-title keyword."""
    if not candidate or not 3 <= len(candidate) <= 150:
        return False
    lower = candidate.lower()
    return any(keyword in lower for keyword in tables.admin_titles)


def location_context(url: str, tables: KeywordTables = DEFAULT_TABLES) -> Optional[str]:
    """
    Human-readable location label derived from a URL path.

    Examples:
        '/housing/graduate/staff' -> 'Graduate Housing'
        '/housing/smith-hall/'    -> 'Smith Hall'
    """
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return None

    for pattern, label in tables.location_context_patterns:
        if re.search(pattern, path):
            return label

    match = BUILDING_PATH.search(path)
    if match:
        building = match.group(1).replace('-', ' ').replace('_', ' ').title()
        return f"{building} {match.group(2).title()}"

    return None


# =============================================================================
# Text Helpers
# =============================================================================

def text_lines(element) -> List[str]:
    """
    Flatten an element to its visible lines.

    Block-level tags and <br> start new lines; inline markup stays on the
    line it belongs to, so '<p>Jane <b>Doe</b></p>' is one line.
    """
    parts: List[str] = []
    for node in element.descendants:
        if isinstance(node, Comment):
            continue
        if isinstance(node, NavigableString):
            if node.parent is not None and node.parent.name in ('script', 'style', 'noscript'):
                continue
            parts.append(str(node))
        elif isinstance(node, Tag) and node.name in BLOCK_TAGS:
            parts.append('\n')

    lines = (clean_text(line) for line in re.split(r'[\n\r]+', ''.join(parts)))
    return [line for line in lines if line]


def is_contact_form(section: Tag) -> bool:
    """A form element, a submit control, or submit/contact-form wording."""
    if section.name == 'form' or section.find('form') is not None:
        return True
    if section.find(attrs={'type': 'submit'}) is not None:
        return True
    text = section.get_text(' ').lower()
    return 'submit' in text or 'contact form' in text


# =============================================================================
# Extraction Context
# =============================================================================

@dataclass
class ExtractionContext:
    """Everything a strategy may look at for one page."""
    url: str
    soup: BeautifulSoup
    tables: KeywordTables = DEFAULT_TABLES
    deny_patterns: Tuple[Pattern, ...] = ()
    location: Optional[str] = None
    claimed: set = field(default_factory=set)

    @property
    def department(self) -> str:
        return self.location or DEFAULT_DEPARTMENT

    def valid_name(self, candidate: str) -> bool:
        return is_valid_name(candidate, self.deny_patterns)

    def valid_title(self, candidate: str) -> bool:
        return is_valid_title(candidate, self.tables)

    def valid_email(self, email: str) -> bool:
        return is_valid_email(email, self.tables)

    def claim(self, email: str) -> bool:
        """Reserve an email for this page; False if already taken."""
        key = email.lower()
        if key in self.claimed:
            return False
        self.claimed.add(key)
        return True

    def is_claimed(self, email: str) -> bool:
        return email.lower() in self.claimed

    def contact(self, name: str, title: str, email: str, method: str,
                phone: Optional[str] = None) -> RawContact:
        return RawContact(
            name=name,
            title=title,
            email=email,
            source_url=self.url,
            phone=phone,
            department=self.department,
            method=method,
        )


def find_name_and_title(lines: List[str], email: str, ctx: ExtractionContext) -> Tuple[str, Optional[str], Optional[str]]:
    """
    Proximity search around the line holding email.

    Returns:
        (name, title, phone); name is '' when no line nearby passes the
        name-validity predicate
    """
    lower_email = email.lower()
    for i, line in enumerate(lines):
        if lower_email not in line.lower():
            continue

        phone = None
        for k in range(max(0, i - NAME_WINDOW), min(len(lines), i + NAME_WINDOW + 1)):
            phones = extract_phones(lines[k])
            if phones:
                phone = phones[0]
                break

        for j in range(max(0, i - NAME_WINDOW), min(len(lines), i + NAME_WINDOW + 1)):
            if j == i:
                continue
            candidate = lines[j]
            if '@' in candidate or 'phone' in candidate.lower() or not ctx.valid_name(candidate):
                continue

            title = None
            for k in range(max(0, j - TITLE_WINDOW), min(len(lines), j + TITLE_WINDOW + 1)):
                if k != j and ctx.valid_title(lines[k]):
                    title = lines[k]
                    break
            return candidate, title, phone

        return '', None, phone

    return '', None, None


# =============================================================================
# Strategies
# =============================================================================

def _first_text(element: Tag, selector: str) -> str:
    found = element.select_one(selector)
    return clean_text(found.get_text(' ')) if found else ''


def _mailto(element: Tag) -> str:
    link = element.select_one('a[href^="mailto:"]')
    if not link:
        return ''
    return link['href'][len('mailto:'):].split('?')[0].strip()


def extract_structured_data(ctx: ExtractionContext) -> List[RawContact]:
    """Microdata/RDFa Person scopes and data-attribute person blocks."""
    contacts: List[RawContact] = []

    for person in ctx.soup.select('[itemscope][itemtype*="Person"]'):
        name = _first_text(person, '[itemprop="name"]')
        if not name:
            name = clean_text(f"{_first_text(person, '[itemprop=givenName]')} "
                              f"{_first_text(person, '[itemprop=familyName]')}")

        email_el = person.select_one('[itemprop="email"]')
        email = ''
        if email_el is not None:
            email = clean_text(email_el.get_text()) or email_el.get('href', '').replace('mailto:', '')

        if not (name and email and ctx.valid_name(name) and ctx.valid_email(email)):
            continue
        if not ctx.claim(email):
            continue

        contacts.append(ctx.contact(
            name=name,
            title=_first_text(person, '[itemprop="jobTitle"]') or DEFAULT_TITLE,
            email=email,
            phone=_first_text(person, '[itemprop="telephone"]') or None,
            method='structured_data',
        ))

    for block in ctx.soup.select(', '.join(ctx.tables.structured_data_selectors)):
        email = block.get('data-email', '')
        if not email:
            nested = block.select_one('[data-email]')
            email = nested.get('data-email', '') if nested else ''
        if not email:
            email = _mailto(block) or _first_text(block, '[property="email"], .email, .u-email')
        email = email.strip()

        name = (block.get('data-name', '')
                or _first_text(block, '.name, .person-name, .fn, .p-name, [property="name"], h3, h4'))
        title = (block.get('data-title', '')
                 or _first_text(block, '.title, .job-title, .position, .p-job-title, [property="jobTitle"]'))

        if not (email and name and ctx.valid_name(name) and ctx.valid_email(email)):
            continue
        if not ctx.claim(email):
            continue

        phones = extract_phones(block.get_text(' '))
        contacts.append(ctx.contact(
            name=name,
            title=title or 'Housing Contact',
            email=email,
            phone=phones[0] if phones else None,
            method='structured_data',
        ))

    return contacts


def extract_table_rows(ctx: ExtractionContext) -> List[RawContact]:
    """
    One record per email in each table row of at least two cells.

    The name is the row's first non-email, non-title cell when it is a
    valid name, otherwise any valid-name cell; the title is the first cell
    passing the title predicate.
    """
    contacts: List[RawContact] = []

    for row in ctx.soup.find_all('tr'):
        cells = [clean_text(cell.get_text(' ')) for cell in row.find_all(['td', 'th'])]
        if len(cells) < 2:
            continue

        row_text = ' '.join(cells)
        phones = extract_phones(row_text)

        for email in filter_emails(row_text, ctx.tables):
            if ctx.is_claimed(email):
                continue

            lower_email = email.lower()
            others = [cell for cell in cells if cell and lower_email not in cell.lower() and '@' not in cell]

            name = ''
            primary = next((cell for cell in others if not ctx.valid_title(cell)), '')
            if primary and ctx.valid_name(primary):
                name = primary
            else:
                name = next((cell for cell in others if ctx.valid_name(cell)), '')

            if not name:
                continue

            title = next((cell for cell in others if cell != name and ctx.valid_title(cell)), '')

            ctx.claim(email)
            contacts.append(ctx.contact(
                name=name,
                title=title or DEFAULT_TITLE,
                email=email,
                phone=phones[0] if phones else None,
                method='table_rows',
            ))

    return contacts


def is_staff_section(section: Tag, text: str, tables: KeywordTables) -> bool:
    """
    Housing keyword, admin title, an email or a staff-like class/id, and
    more than a fragment of text.
    """
    if len(text) <= MIN_SECTION_TEXT:
        return False

    class_name = ' '.join(section.get('class', [])).lower()
    element_id = (section.get('id') or '').lower()

    return (
        any(kw in text or kw in class_name or kw in element_id for kw in tables.housing_keywords)
        or any(title in text for title in tables.admin_titles)
        or '@' in text
        or any(ind in class_name or ind in element_id for ind in tables.staff_indicators)
    )


def extract_proximity(ctx: ExtractionContext) -> List[RawContact]:
    """
    Free-text heuristics over staff-like sections.

    For each email, the nearest valid name within four lines and a title
    within two lines of that name. A section that offers a contact form
    but no named person yields one contact-form placeholder.
    """
    contacts: List[RawContact] = []
    sections = ctx.soup.select(', '.join(ctx.tables.staff_section_selectors))
    placeholder_added = False

    for section in sections:
        raw_text = section.get_text(' ')
        if '@' not in raw_text:
            continue
        if not is_staff_section(section, raw_text.lower(), ctx.tables):
            continue

        emails = [email for email in filter_emails(raw_text, ctx.tables) if not ctx.is_claimed(email)]
        if not emails:
            continue

        lines = text_lines(section)
        form_section = is_contact_form(section)

        for email in emails:
            if ctx.is_claimed(email):
                continue

            name, title, phone = find_name_and_title(lines, email, ctx)

            if name:
                ctx.claim(email)
                if ctx.location and title:
                    title = f"{title} - {ctx.location}"
                contacts.append(ctx.contact(
                    name=name,
                    title=title or DEFAULT_TITLE,
                    email=email,
                    phone=phone,
                    method='proximity',
                ))
            elif form_section and not placeholder_added:
                placeholder_added = True
                contacts.append(ctx.contact(
                    name='',
                    title=CONTACT_FORM_TITLE,
                    email=CONTACT_FORM_EMAIL,
                    phone=phone,
                    method='contact_form',
                ))

    return contacts


def extract_location_staff(ctx: ExtractionContext) -> List[RawContact]:
    """Staff blocks scoped to a building, hall or community."""
    contacts: List[RawContact] = []

    for block in ctx.soup.select(', '.join(ctx.tables.location_staff_selectors)):
        lines = text_lines(block)
        for email in filter_emails(block.get_text(' '), ctx.tables):
            if ctx.is_claimed(email):
                continue
            name, title, phone = find_name_and_title(lines, email, ctx)
            if not name:
                continue
            ctx.claim(email)
            contacts.append(ctx.contact(
                name=name,
                title=title or 'Location Staff',
                email=email,
                phone=phone,
                method='location_staff',
            ))

    return contacts


def extract_labeled_roles(ctx: ExtractionContext) -> List[RawContact]:
    """'<Role>: <name> <email>' lines, e.g. 'Hall Director: Jane Doe jdoe@x.edu'."""
    contacts: List[RawContact] = []
    body = ctx.soup.body or ctx.soup
    page_text = '\n'.join(text_lines(body))

    for role in ctx.tables.labeled_roles:
        pattern = re.compile(re.escape(role) + r':\s*([^\n@]*@[^\s\n]+)', re.IGNORECASE)
        for match in pattern.finditer(page_text):
            emails = filter_emails(match.group(1), ctx.tables)
            if not emails or ctx.is_claimed(emails[0]):
                continue
            email = emails[0]

            before = clean_text(match.group(1).split(email)[0]).strip(' ,-')
            name = before if ctx.valid_name(before) and not ctx.valid_title(before) else ''
            if not name:
                start = max(0, match.start() - 100)
                end = min(len(page_text), match.end() + 100)
                for candidate in CONTEXT_NAME.findall(page_text[start:end]):
                    if ctx.valid_name(candidate) and not ctx.valid_title(candidate):
                        name = candidate
                        break
            if not name:
                continue

            ctx.claim(email)
            contacts.append(ctx.contact(
                name=name,
                title=f"{role.title()} - {ctx.location or DEFAULT_DEPARTMENT}",
                email=email,
                method='labeled_roles',
            ))

    return contacts


Strategy = Callable[[ExtractionContext], List[RawContact]]

EXTRACTION_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ('structured_data', extract_structured_data),
    ('table_rows', extract_table_rows),
    ('proximity', extract_proximity),
    ('location_staff', extract_location_staff),
    ('labeled_roles', extract_labeled_roles),
)


# =============================================================================
# Page Scraping
# =============================================================================

@dataclass
class PageScrapeResult:
    """What one page worker hands back to the orchestrator."""
    url: str
    contacts: List[RawContact] = field(default_factory=list)
    visited_urls: List[str] = field(default_factory=list)
    html: str = ''
    skipped: bool = False


class ContactExtractor:
    """
    Runs the extraction strategies over pages.

    Args:
        tables: Keyword tables (default tables when None)
        strategies: Ordered (name, function) pairs (default: all strategies)
    """

    def __init__(
        self,
        tables: Optional[KeywordTables] = None,
        strategies: Sequence[Tuple[str, Strategy]] = EXTRACTION_STRATEGIES,
        max_contact_pages: int = MAX_CONTACT_PAGES,
        contact_page_delay: float = CONTACT_PAGE_DELAY,
    ):
        self.tables = tables or DEFAULT_TABLES
        self.strategies = tuple(strategies)
        self.deny_patterns = self.tables.compiled_name_deny_patterns()
        self.deobfuscator = EmailDeobfuscator()
        self.link_extractor = LinkExtractor(tables=self.tables)
        self.max_contact_pages = max_contact_pages
        self.contact_page_delay = contact_page_delay

    def extract(self, url: str, html: str) -> List[RawContact]:
        """
        Extract contacts from one page.

        Args:
            url: Page URL (source_url and location context)
            html: Page HTML

        Returns:
            RawContacts in strategy order, unique by email within the page
        """
        if not html:
            return []

        soup = BeautifulSoup(html, 'html.parser')
        self.deobfuscator.reveal(soup)

        ctx = ExtractionContext(
            url=url,
            soup=soup,
            tables=self.tables,
            deny_patterns=self.deny_patterns,
            location=location_context(url, self.tables),
        )

        contacts: List[RawContact] = []
        for name, strategy in self.strategies:
            found = strategy(ctx)
            if found:
                logger.debug(f"{name}: {len(found)} contacts on {url}")
            contacts.extend(found)

        if contacts:
            logger.info(f"Extracted {len(contacts)} contacts from {url}")
        return contacts

    def scrape_page(
        self,
        url: str,
        tracker: URLTracker,
        fetcher,
        cancel_event: Optional[threading.Event] = None,
    ) -> PageScrapeResult:
        """
        Fetch a page, extract it, then follow its contact links.

        Reads the tracker but never mutates it; visited URLs are returned for
        the orchestrator to record. Blocking, meant to run in an executor.

        Raises:
            FetchError: If the page itself cannot be fetched
        """
        if tracker.has_been_scraped(url):
            logger.info(f"Skipping already scraped URL: {url}")
            return PageScrapeResult(url=url, skipped=True)

        html = fetcher.get(url, timeout=REQUEST_TIMEOUT)
        result = PageScrapeResult(url=url, html=html, visited_urls=[url])
        result.contacts.extend(self.extract(url, html))

        contact_links = self.link_extractor.discover_contact_links(html, url, tracker)
        if contact_links:
            logger.info(f"Found {len(contact_links)} contact pages to explore on {url}")

        for link in contact_links[:self.max_contact_pages]:
            if cancel_event is not None and cancel_event.is_set():
                logger.debug(f"Stopping contact-link crawl for {url}: page abandoned")
                break

            time.sleep(self.contact_page_delay)
            try:
                link_html = fetcher.get(link, timeout=REQUEST_TIMEOUT)
            except FetchError as e:
                logger.warning(f"Failed to scrape {link}: {e}")
                continue

            result.visited_urls.append(link)
            result.contacts.extend(self.extract(link, link_html))

        return result


__all__ = [
    'ContactExtractor',
    'ExtractionContext',
    'PageScrapeResult',
    'EXTRACTION_STRATEGIES',
    'is_valid_email',
    'is_valid_name',
    'is_valid_title',
    'filter_emails',
    'location_context',
    'text_lines',
]
