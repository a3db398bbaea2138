"""
Tests for in-page link discovery.
"""

import pytest

from housing_contacts.link_extractor import LinkExtractor, resolve_same_host
from housing_contacts.url_tracker import URLTracker

from conftest import StubFetcher


HUB_HTML = """
<html><body>
<nav>
  <a href="/housing/contact-us">Contact Us</a>
  <a href="/housing/staff/">Meet the Staff</a>
  <a href="https://other.edu/staff">Partner Staff</a>
  <a href="mailto:housing@x.edu">Email</a>
  <a href="/housing/brochure.pdf">Staff Brochure</a>
  <a href="/housing/north-campus">North Campus</a>
  <a href="/housing/dining">Dining Plans</a>
  <a href="/housing/communities/smith-hall">Smith Hall</a>
  <a href="/housing/contact-us#form">Contact form</a>
</nav>
<div class="communities-nav">
  <a href="/housing/the-grove">The Grove</a>
</div>
</body></html>
"""


@pytest.fixture
def link_extractor():
    return LinkExtractor()


class TestResolveSameHost:
    """Test URL resolution and host filtering."""

    def test_relative(self):
        assert resolve_same_host('/staff', 'https://x.edu/housing') == 'https://x.edu/staff'

    def test_other_host(self):
        assert resolve_same_host('https://y.edu/staff', 'https://x.edu/housing') is None

    def test_fragment_dropped(self):
        assert resolve_same_host('/staff#top', 'https://x.edu/') == 'https://x.edu/staff'


class TestContactLinks:
    """Test contact/staff/location link discovery."""

    def test_same_host_contact_and_location_links(self, link_extractor):
        links = link_extractor.discover_contact_links(HUB_HTML, 'https://x.edu/housing')

        assert links == [
            'https://x.edu/housing/contact-us',
            'https://x.edu/housing/staff/',
            'https://x.edu/housing/north-campus',
            'https://x.edu/housing/communities/smith-hall',
        ]

    def test_skips_visited(self, link_extractor):
        tracker = URLTracker()
        tracker.mark_as_scraped('https://x.edu/housing/staff')
        links = link_extractor.discover_contact_links(HUB_HTML, 'https://x.edu/housing', tracker)
        assert 'https://x.edu/housing/staff/' not in links

    def test_limit(self, link_extractor):
        links = link_extractor.discover_contact_links(HUB_HTML, 'https://x.edu/housing', limit=2)
        assert len(links) == 2


class TestCommunityPages:
    """Test community page discovery off a housing hub."""

    def test_uses_supplied_html(self, link_extractor):
        pages = link_extractor.discover_community_pages('https://x.edu/housing', html=HUB_HTML)

        assert 'https://x.edu/housing/north-campus' in pages
        assert 'https://x.edu/housing/communities/smith-hall' in pages
        assert 'https://x.edu/housing/the-grove' in pages
        assert 'https://x.edu/housing/dining' not in pages

    def test_fetches_when_no_html(self):
        fetcher = StubFetcher(pages={'https://x.edu/housing': HUB_HTML})
        pages = LinkExtractor(fetcher=fetcher).discover_community_pages('https://x.edu/housing')
        assert fetcher.requested == ['https://x.edu/housing']
        assert pages

    def test_fetch_failure_yields_nothing(self):
        assert LinkExtractor(fetcher=StubFetcher()).discover_community_pages('https://x.edu/gone') == []

    def test_limit(self, link_extractor):
        pages = link_extractor.discover_community_pages('https://x.edu/housing', html=HUB_HTML, limit=1)
        assert len(pages) == 1


class TestLocationLinks:
    """Test the one-hop location sub-page discovery."""

    def test_location_links(self, link_extractor):
        html = """
        <a href="/housing/communities/smith-hall">Smith Hall</a>
        <a href="/housing/communities/apartments/oak">Oak</a>
        <a href="/housing/faq">FAQ</a>
        """
        links = link_extractor.discover_location_links(html, 'https://x.edu/housing/communities/')
        assert links == [
            'https://x.edu/housing/communities/smith-hall',
            'https://x.edu/housing/communities/apartments/oak',
        ]
