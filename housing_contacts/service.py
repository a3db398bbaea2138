"""
Request-level service: one institution name in, one response out.

Wraps a discovery run with the persistence collaborator: reuses an
institution that already has contacts, creates the institution after a
run, stores only contacts not already held, and turns every outcome into
a message a person can act on.
"""

import asyncio
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from loguru import logger

from housing_contacts.deduplication import filter_existing_contacts
from housing_contacts.exceptions import PersistenceError
from housing_contacts.models import Institution, PageOutcome, RunResult, RunStatus, StoredContact
from housing_contacts.name_normalizer import build_query, normalize_for_database
from housing_contacts.orchestrator import ContactDiscoveryEngine
from housing_contacts.persistence import InstitutionStore


SPELLING_SUGGESTION = (
    "Check the spelling of the institution name, or try its full official name."
)
RENDERING_SUGGESTION = (
    "The housing pages were found but may not contain easily extractable contact "
    "information, or they may require JavaScript rendering."
)
RESCRAPE_SUGGESTION = "If you want to rescrape, delete the existing institution first."
TIMEOUT_SUGGESTION = (
    "The time budget ran out before any contacts were extracted. "
    "Try again with a longer run or page timeout."
)
FETCH_FAILED_SUGGESTION = (
    "Every housing page failed to load. The site may be down or blocking "
    "automated requests; try again later."
)


@dataclass
class ScrapeResponse:
    success: bool
    message: str
    institution: Optional[Institution] = None
    contacts: List[StoredContact] = field(default_factory=list)
    existing: bool = False
    no_contacts_found: bool = False
    suggestion: Optional[str] = None
    timed_out: bool = False
    housing_pages: List[str] = field(default_factory=list)
    page_outcomes: List[PageOutcome] = field(default_factory=list)
    total_found: int = 0
    filtered_relevant: int = 0
    new_inserted: int = 0
    skipped_duplicates: int = 0
    elapsed_seconds: float = 0.0
    error: Optional[str] = None
    run_result: Optional[RunResult] = field(default=None, repr=False)

    def to_dict(self) -> Dict:
        return {
            'success': self.success,
            'message': self.message,
            'institution': asdict(self.institution) if self.institution else None,
            'contacts': [asdict(contact) for contact in self.contacts],
            'existing': self.existing,
            'no_contacts_found': self.no_contacts_found,
            'suggestion': self.suggestion,
            'timed_out': self.timed_out,
            'housing_pages_found': list(self.housing_pages),
            'scraping_results': [outcome.to_dict() for outcome in self.page_outcomes],
            'total_found': self.total_found,
            'filtered_relevant': self.filtered_relevant,
            'new_inserted': self.new_inserted,
            'skipped_duplicates': self.skipped_duplicates,
            'scraping_duration_seconds': round(self.elapsed_seconds),
            'error': self.error,
        }


def scrape_university(
    name: str,
    store: InstitutionStore,
    engine: Optional[ContactDiscoveryEngine] = None,
) -> ScrapeResponse:
    """
    Discover and store housing contacts for one institution.

    Args:
        name: Institution name as typed by the user
        store: Persistence collaborator
        engine: Discovery engine (a default network-backed one if omitted)

    Returns:
        ScrapeResponse describing what happened
    """
    name = (name or '').strip()
    if not name:
        return ScrapeResponse(success=False, message="Missing university name")

    try:
        query = build_query(name)
        lookup = set(query.variants) | {normalize_for_database(v) for v in query.variants}
        institution = store.find_institution(lookup)

        if institution:
            stored = store.list_existing_contacts(institution.id)
            if stored:
                return ScrapeResponse(
                    success=True,
                    message=f"University already exists with {len(stored)} contacts",
                    institution=institution,
                    contacts=stored,
                    existing=True,
                    suggestion=RESCRAPE_SUGGESTION,
                )

        engine = engine or ContactDiscoveryEngine()
        result = asyncio.run(engine.run(name))

        if result.status == RunStatus.NO_PAGES:
            if result.resolved_domain is None:
                message = f"Could not find the official website or any housing pages for {name}"
            else:
                message = f"No housing pages found for {name} ({result.resolved_domain})"
            return ScrapeResponse(
                success=False,
                message=message,
                suggestion=SPELLING_SUGGESTION,
                elapsed_seconds=result.elapsed_seconds,
                run_result=result,
            )

        if institution is None:
            institution = store.create_institution(name, result.resolved_domain, result.discovered_pages)

        common = dict(
            institution=institution,
            timed_out=result.timed_out,
            housing_pages=result.discovered_pages,
            page_outcomes=result.page_outcomes,
            total_found=result.total_found,
            filtered_relevant=result.relevant_count,
            elapsed_seconds=result.elapsed_seconds,
            run_result=result,
        )

        ran_out_of_time = result.timed_out or (
            result.all_pages_failed and any(outcome.timed_out for outcome in result.page_outcomes)
        )

        if not result.contacts and ran_out_of_time:
            return ScrapeResponse(
                success=True,
                message=(f"Timed out after {result.elapsed_seconds:.0f}s before any contacts were found "
                         f"from {len(result.discovered_pages)} housing pages"),
                no_contacts_found=True,
                suggestion=TIMEOUT_SUGGESTION,
                **common,
            )

        if not result.contacts and result.all_pages_failed:
            return ScrapeResponse(
                success=False,
                message=f"All {len(result.page_outcomes)} housing pages failed to load",
                no_contacts_found=True,
                suggestion=FETCH_FAILED_SUGGESTION,
                **common,
            )

        if not result.contacts:
            return ScrapeResponse(
                success=True,
                message=f"No contacts found from {len(result.discovered_pages)} housing pages",
                no_contacts_found=True,
                suggestion=RENDERING_SUGGESTION,
                **common,
            )

        new_contacts = filter_existing_contacts(
            result.contacts, store.list_existing_contacts(institution.id)
        )
        rows = [StoredContact.from_scored(institution.id, contact) for contact in new_contacts]
        if rows:
            store.insert_contacts(institution.id, rows)

        if result.timed_out:
            prefix = f"Partially scraped (timed out after {result.elapsed_seconds:.0f}s): "
        else:
            prefix = "Successfully scraped "

        return ScrapeResponse(
            success=True,
            message=f"{prefix}{len(rows)} contacts from {len(result.discovered_pages)} housing pages",
            contacts=rows,
            new_inserted=len(rows),
            skipped_duplicates=len(result.contacts) - len(rows),
            **common,
        )

    except PersistenceError as e:
        logger.error(f"Database operation failed for '{name}': {e}")
        return ScrapeResponse(
            success=False,
            message=f"Database operation failed: {e}",
            error=str(e),
        )


__all__ = ['ScrapeResponse', 'scrape_university']
