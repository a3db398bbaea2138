"""
Tests for the request-level scrape service.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from housing_contacts.exceptions import PersistenceError
from housing_contacts.models import (
    PageOutcome,
    RawContact,
    RunResult,
    RunStatus,
    ScoredContact,
    StoredContact,
)
from housing_contacts.persistence import InMemoryInstitutionStore
from housing_contacts.service import (
    FETCH_FAILED_SUGGESTION,
    RENDERING_SUGGESTION,
    SPELLING_SUGGESTION,
    TIMEOUT_SUGGESTION,
    scrape_university,
)


PAGE = 'https://stanford.edu/housing'


def scored(name, email, score=100):
    contact = RawContact(name=name, title='Director of Housing', email=email, source_url=PAGE)
    return ScoredContact(contact=contact, relevance_score=score)


def run_result(contacts=(), status=RunStatus.COMPLETED, domain='stanford.edu', pages=(PAGE,), **kwargs):
    return RunResult(
        institution_name='Stanford University',
        resolved_domain=domain,
        discovered_pages=list(pages),
        page_outcomes=[PageOutcome(url=url, success=True, count=len(contacts)) for url in pages],
        contacts=list(contacts),
        total_found=len(contacts),
        relevant_count=len(contacts),
        status=status,
        **kwargs,
    )


def stub_engine(result):
    return Mock(run=AsyncMock(return_value=result))


@pytest.fixture
def store():
    return InMemoryInstitutionStore()


class TestScrapeUniversity:
    """Test each response path."""

    def test_missing_name(self, store):
        response = scrape_university('   ', store, stub_engine(run_result()))
        assert not response.success
        assert response.message == 'Missing university name'

    def test_existing_institution_with_contacts(self, store):
        institution = store.create_institution('Stanford University', 'stanford.edu', [])
        store.insert_contacts(institution.id, [
            StoredContact(institution_id=institution.id, name='Jane Doe', role='Director', email='jdoe@stanford.edu'),
        ])
        engine = stub_engine(run_result())

        response = scrape_university('Stanford University', store, engine)

        assert response.success and response.existing
        assert response.message == 'University already exists with 1 contacts'
        assert [c.email for c in response.contacts] == ['jdoe@stanford.edu']
        engine.run.assert_not_called()

    def test_no_domain_no_pages(self, store):
        result = run_result(status=RunStatus.NO_PAGES, domain=None, pages=())

        response = scrape_university('Nowhere College', store, stub_engine(result))

        assert not response.success
        assert response.message == 'Could not find the official website or any housing pages for Nowhere College'
        assert response.suggestion == SPELLING_SUGGESTION
        assert response.run_result is result
        assert store.all_institutions() == []

    def test_domain_but_no_pages(self, store):
        result = run_result(status=RunStatus.NO_PAGES, pages=())
        response = scrape_university('Stanford University', store, stub_engine(result))
        assert response.message == 'No housing pages found for Stanford University (stanford.edu)'

    def test_no_contacts(self, store):
        response = scrape_university('Stanford University', store, stub_engine(run_result()))

        assert response.success
        assert response.no_contacts_found
        assert response.message == 'No contacts found from 1 housing pages'
        assert response.suggestion == RENDERING_SUGGESTION
        assert response.institution.website == 'https://stanford.edu'
        assert response.institution.housing_pages == [PAGE]

    def test_timed_out_without_contacts(self, store):
        result = run_result(status=RunStatus.PARTIAL, pages=(PAGE, PAGE + '/staff'),
                            timed_out=True, elapsed_seconds=600.2)
        result.page_outcomes[1] = PageOutcome(url=PAGE + '/staff', success=False, error='Page timeout (30s)')

        response = scrape_university('Stanford University', store, stub_engine(result))

        assert response.success
        assert response.timed_out
        assert response.no_contacts_found
        assert response.message == ('Timed out after 600s before any contacts were found '
                                    'from 2 housing pages')
        assert response.suggestion == TIMEOUT_SUGGESTION

    def test_every_page_timed_out(self, store):
        result = run_result()
        result.page_outcomes = [PageOutcome(url=PAGE, success=False, error='Page timeout (30s)')]

        response = scrape_university('Stanford University', store, stub_engine(result))

        assert response.suggestion == TIMEOUT_SUGGESTION

    def test_every_page_failed(self, store):
        result = run_result(pages=(PAGE, PAGE + '/staff'))
        result.page_outcomes = [
            PageOutcome(url=PAGE, success=False, error='HTTP 403 (https://stanford.edu/housing)'),
            PageOutcome(url=PAGE + '/staff', success=False, error='HTTP 404'),
        ]

        response = scrape_university('Stanford University', store, stub_engine(result))

        assert not response.success
        assert response.no_contacts_found
        assert response.message == 'All 2 housing pages failed to load'
        assert response.suggestion == FETCH_FAILED_SUGGESTION

    def test_success_stores_new_contacts(self, store):
        result = run_result([scored('Jane Doe', 'jdoe@stanford.edu'), scored('John Smith', 'jsmith@stanford.edu')])

        response = scrape_university('Stanford University', store, stub_engine(result))

        assert response.success
        assert response.message == 'Successfully scraped 2 contacts from 1 housing pages'
        assert response.new_inserted == 2
        assert response.skipped_duplicates == 0
        assert len(store.list_existing_contacts(response.institution.id)) == 2

    def test_existing_institution_without_contacts_is_reused(self, store):
        institution = store.create_institution('Stanford University', 'stanford.edu', [])
        result = run_result([scored('Jane Doe', 'jdoe@stanford.edu')])

        response = scrape_university('Stanford', store, stub_engine(result))

        assert response.institution.id == institution.id
        assert response.new_inserted == 1
        assert len(store.all_institutions()) == 1

    def test_partial_run_message(self, store):
        result = run_result([scored('Jane Doe', 'jdoe@stanford.edu')], timed_out=True, elapsed_seconds=300.4)

        response = scrape_university('Stanford University', store, stub_engine(result))

        assert response.timed_out
        assert response.message == 'Partially scraped (timed out after 300s): 1 contacts from 1 housing pages'

    def test_persistence_error(self, store):
        store.insert_contacts = Mock(side_effect=PersistenceError('disk full'))
        result = run_result([scored('Jane Doe', 'jdoe@stanford.edu')])

        response = scrape_university('Stanford University', store, stub_engine(result))

        assert not response.success
        assert response.message == 'Database operation failed: disk full'
        assert response.error == 'disk full'

    def test_to_dict_keys(self, store):
        response = scrape_university('Stanford University', store, stub_engine(run_result()))
        record = response.to_dict()
        assert record['housing_pages_found'] == [PAGE]
        assert record['scraping_results'] == [{'url': PAGE, 'success': True, 'count': 0}]
        assert 'run_result' not in record
