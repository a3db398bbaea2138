"""
Typed records passed between the stages of a discovery run.

Value objects (InstitutionQuery, CandidatePage) are frozen; RawContact and
ScoredContact are plain dataclasses produced by exactly one stage each.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional


CONTACT_FORM_EMAIL = 'contact-form'
CONTACT_FORM_TITLE = 'Contact via form'
DEFAULT_TITLE = 'Housing Staff'
DEFAULT_DEPARTMENT = 'Housing'


class DiscoverySource(str, Enum):
    """Which discovery strategy produced a candidate page."""
    SEARCH_QUERY = 'search_query'
    SUBDOMAIN_PROBE = 'subdomain_probe'
    PATH_PROBE = 'path_probe'
    LOCATION_LINK = 'location_link'
    IN_PAGE_LINK = 'in_page_link'


class RunStatus(str, Enum):
    """Terminal status of a run as seen by callers."""
    COMPLETED = 'completed'
    PARTIAL = 'partial'
    NO_PAGES = 'no_pages'
    FAILED = 'failed'


class EngineState(str, Enum):
    """Orchestrator states."""
    IDLE = 'idle'
    RESOLVING_IDENTITY = 'resolving_identity'
    DISCOVERING_PAGES = 'discovering_pages'
    EXTRACTING_PAGES = 'extracting_pages'
    SCORING = 'scoring'
    DONE = 'done'
    FAILED = 'failed'


@dataclass(frozen=True)
class InstitutionQuery:
    """A raw institution name with its canonical form and all name variants."""
    raw_name: str
    canonical: str
    variants: FrozenSet[str]


@dataclass(frozen=True)
class CandidatePage:
    """
    A URL hypothesized to contain housing-staff contact information.

    Equality and hashing use only the normalized URL, so a set of candidates
    never holds the same page twice even when two strategies found it.
    """
    normalized_url: str
    url: str = field(compare=False)
    source: DiscoverySource = field(compare=False, default=DiscoverySource.SEARCH_QUERY)

    @classmethod
    def create(cls, url: str, source: DiscoverySource) -> 'CandidatePage':
        # Imported here to keep models free of module-level dependencies
        from housing_contacts.url_tracker import normalize_url
        return cls(normalized_url=normalize_url(url), url=url, source=source)


@dataclass
class RawContact:
    """
    A contact record exactly as extracted from one page.

    Attributes:
        name: Person name (empty for a contact-form placeholder)
        title: Job title, possibly suffixed with a location label
        email: Email address or the 'contact-form' sentinel
        source_url: Page the record was extracted from
        phone: First phone number found near the record
        department: Location context label (e.g., 'North Campus') or 'Housing'
        extracted_at: ISO timestamp of extraction
        method: Name of the extraction strategy that produced the record
    """
    name: str
    title: str
    email: str
    source_url: str
    phone: Optional[str] = None
    department: Optional[str] = None
    extracted_at: str = field(default_factory=lambda: datetime.now().isoformat(timespec='seconds'))
    method: str = ''

    @property
    def is_contact_form(self) -> bool:
        return self.email == CONTACT_FORM_EMAIL

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class ScoredContact:
    """A RawContact with its relevance score and deduplication identity."""
    contact: RawContact
    relevance_score: int
    identity_key: str = ''

    @property
    def email(self) -> str:
        return self.contact.email

    @property
    def name(self) -> str:
        return self.contact.name

    def to_dict(self) -> Dict:
        record = self.contact.to_dict()
        record['relevance_score'] = self.relevance_score
        record['identity_key'] = self.identity_key
        return record


@dataclass
class PageOutcome:
    """Ledger entry for one processed page."""
    url: str
    success: bool
    count: int = 0
    error: Optional[str] = None

    @property
    def timed_out(self) -> bool:
        return bool(self.error) and self.error.startswith('Page timeout')

    def to_dict(self) -> Dict:
        record = {'url': self.url, 'success': self.success, 'count': self.count}
        if self.error:
            record['error'] = self.error
        return record


@dataclass
class RunResult:
    """Everything a finished run hands back to its caller."""
    institution_name: str
    resolved_domain: Optional[str]
    discovered_pages: List[str] = field(default_factory=list)
    page_outcomes: List[PageOutcome] = field(default_factory=list)
    contacts: List[ScoredContact] = field(default_factory=list)
    timed_out: bool = False
    elapsed_seconds: float = 0.0
    total_found: int = 0
    relevant_count: int = 0
    status: RunStatus = RunStatus.COMPLETED

    @property
    def no_pages_found(self) -> bool:
        return not self.discovered_pages

    @property
    def pages_succeeded(self) -> int:
        return sum(1 for outcome in self.page_outcomes if outcome.success)

    @property
    def all_pages_failed(self) -> bool:
        return bool(self.page_outcomes) and self.pages_succeeded == 0

    def to_dict(self) -> Dict:
        return {
            'resolvedDomain': self.resolved_domain,
            'discoveredPages': list(self.discovered_pages),
            'perPageOutcomes': [outcome.to_dict() for outcome in self.page_outcomes],
            'contacts': [contact.to_dict() for contact in self.contacts],
            'timedOut': self.timed_out,
            'elapsedSeconds': round(self.elapsed_seconds, 1),
            'status': self.status.value,
        }


@dataclass
class Institution:
    """Institution identity as held by the persistence collaborator."""
    id: str
    name: str
    website: Optional[str] = None
    housing_pages: List[str] = field(default_factory=list)


@dataclass
class StoredContact:
    """Contact row as held by the persistence collaborator."""
    institution_id: str
    name: str
    role: str
    email: str
    phone: Optional[str] = None
    source_url: Optional[str] = None
    status: str = 'not_contacted'
    id: Optional[str] = None

    @classmethod
    def from_scored(cls, institution_id: str, scored: ScoredContact) -> 'StoredContact':
        contact = scored.contact
        return cls(
            institution_id=institution_id,
            name=contact.name or 'Contact Form',
            role=contact.title,
            email=contact.email,
            phone=contact.phone,
            source_url=contact.source_url,
        )


__all__ = [
    'CONTACT_FORM_EMAIL',
    'CONTACT_FORM_TITLE',
    'DEFAULT_TITLE',
    'DEFAULT_DEPARTMENT',
    'DiscoverySource',
    'RunStatus',
    'EngineState',
    'InstitutionQuery',
    'CandidatePage',
    'RawContact',
    'ScoredContact',
    'PageOutcome',
    'RunResult',
    'Institution',
    'StoredContact',
]
