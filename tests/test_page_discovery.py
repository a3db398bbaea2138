"""
Tests for candidate page discovery (search queries and probes).

Probe tables are shrunk so every probed URL is listed in the test.
"""

from dataclasses import replace
from unittest.mock import Mock

import pytest

from config.keywords import DEFAULT_TABLES
from housing_contacts.exceptions import FetchError
from housing_contacts.models import DiscoverySource
from housing_contacts.page_discovery import PageDiscovery
from housing_contacts.search import SearchResult

from conftest import StubFetcher, StubSearchClient


SMALL_TABLES = replace(
    DEFAULT_TABLES,
    housing_subdomains=('housing',),
    housing_path_patterns=('/housing/staff/',),
    path_prefixes=(),
    staff_directory_patterns=('/staff/',),
    location_path_prefixes=(),
    location_patterns=('/communities/',),
    search_query_templates=('{name} housing contact', '{name} housing staff directory'),
    site_query_templates=('site:{domain} housing staff',),
)

LOCATION_HTML = '<a href="/communities/oak-hall">Oak Hall</a><a href="/faq">FAQ</a>'


def make_discovery(search=None, fetcher=None, **kwargs):
    return PageDiscovery(
        search or StubSearchClient(),
        fetcher or StubFetcher(),
        SMALL_TABLES,
        batch_delay=0,
        **kwargs,
    )


@pytest.fixture
def probe_fetcher():
    return StubFetcher(
        pages={'https://x.edu/communities/': LOCATION_HTML},
        head_status={
            'https://housing.x.edu': 200,
            'https://housing.x.edu/staff/': 200,
            'https://x.edu/communities/': 200,
            'https://x.edu/staff/': FetchError('https://x.edu/staff/', 'Probe failed: ConnectTimeout'),
        },
    )


class TestQueries:
    """Test query construction and result relevance."""

    def test_build_queries(self):
        discovery = make_discovery()
        assert discovery.build_queries('Example U') == [
            'Example U housing contact',
            'Example U housing staff directory',
        ]
        assert discovery.build_queries('Example U', 'x.edu')[-1] == 'site:x.edu housing staff'

    def test_relevance(self):
        discovery = make_discovery()
        assert discovery.is_relevant_result('https://x.edu/reslife', '', '')
        assert discovery.is_relevant_result('https://x.edu/a', 'Contact', '')
        assert not discovery.is_relevant_result('https://x.edu/about', 'About', '')

    def test_probe_paths(self):
        assert make_discovery().build_probe_paths() == ['/housing/staff/', '/staff/', '/communities/']


class TestSearchPages:
    """Test the search-query strategy."""

    @pytest.mark.asyncio
    async def test_keeps_relevant_edu_results(self):
        search = StubSearchClient({'Example U housing contact': [
            SearchResult(href='//duckduckgo.com/l/?uddg=https%3A%2F%2Fx.edu%2Fhousing%2Fcontact',
                         text='Housing Contact'),
            SearchResult(href='https://www.example.com/housing', text='Housing'),
            SearchResult(href='https://x.edu/about', text='About'),
        ]})

        pages = await make_discovery(search).search_pages('Example U')

        assert [p.url for p in pages] == ['https://x.edu/housing/contact']
        assert pages[0].source == DiscoverySource.SEARCH_QUERY

    @pytest.mark.asyncio
    async def test_failed_query_is_skipped(self):
        search = Mock()
        search.search.side_effect = [
            FetchError('https://search', 'HTTP 503', status_code=503),
            [SearchResult(href='https://x.edu/housing/staff', text='Housing Staff')],
        ]

        pages = await make_discovery(search).search_pages('Example U')

        assert [p.url for p in pages] == ['https://x.edu/housing/staff']
        assert search.search.call_count == 2


class TestProbes:
    """Test subdomain and path probes."""

    @pytest.mark.asyncio
    async def test_probe_batches_ignore_failures(self, probe_fetcher):
        discovery = make_discovery(fetcher=probe_fetcher, batch_size=2)
        live = await discovery.probe_batches([
            'https://x.edu/staff/',
            'https://x.edu/communities/',
            'https://x.edu/missing/',
        ], timeout=1)
        assert live == ['https://x.edu/communities/']

    @pytest.mark.asyncio
    async def test_probe_domain(self, probe_fetcher):
        pages = await make_discovery(fetcher=probe_fetcher).probe_domain('x.edu')

        found = {page.url: page.source for page in pages}
        assert found == {
            'https://housing.x.edu': DiscoverySource.SUBDOMAIN_PROBE,
            'https://housing.x.edu/staff/': DiscoverySource.PATH_PROBE,
            'https://x.edu/communities/': DiscoverySource.PATH_PROBE,
            'https://x.edu/communities/oak-hall': DiscoverySource.LOCATION_LINK,
        }

    @pytest.mark.asyncio
    async def test_location_fetch_failure(self):
        discovery = make_discovery(fetcher=StubFetcher())
        assert await discovery.location_sub_pages('https://x.edu/communities/') == []


class TestDiscover:
    """Test the union of strategies."""

    @pytest.mark.asyncio
    async def test_union_is_unique_by_normalized_url(self, probe_fetcher):
        search = StubSearchClient({'site:x.edu housing staff': [
            SearchResult(href='https://housing.x.edu/staff', text='Housing Staff'),
        ]})

        pages = await make_discovery(search, probe_fetcher).discover('Example U', 'x.edu')

        urls = sorted(page.normalized_url for page in pages)
        assert urls == [
            'https://housing.x.edu',
            'https://housing.x.edu/staff',
            'https://x.edu/communities',
            'https://x.edu/communities/oak-hall',
        ]

    @pytest.mark.asyncio
    async def test_no_domain_skips_probes(self):
        fetcher = Mock()
        pages = await make_discovery(fetcher=fetcher).discover_pages('Example U', None)
        assert pages == []
        fetcher.head.assert_not_called()
