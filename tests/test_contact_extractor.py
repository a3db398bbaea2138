"""
Unit tests for contact_extractor module.

Tests the validity predicates, each extraction strategy and page scraping
with a stubbed fetcher.
"""

import threading

import pytest

from config.keywords import DEFAULT_TABLES
from housing_contacts.contact_extractor import (
    ContactExtractor,
    filter_emails,
    is_valid_email,
    is_valid_name,
    is_valid_title,
    location_context,
    text_lines,
)
from housing_contacts.exceptions import FetchError
from housing_contacts.models import CONTACT_FORM_EMAIL, CONTACT_FORM_TITLE
from housing_contacts.url_tracker import URLTracker
from bs4 import BeautifulSoup

from conftest import StubFetcher


DENY = DEFAULT_TABLES.compiled_name_deny_patterns()


@pytest.fixture
def extractor():
    return ContactExtractor(contact_page_delay=0)


class TestEmailFilter:
    """Test the email filter applied before extraction."""

    def test_accepts_ordinary_address(self):
        assert is_valid_email('jdoe@stanford.edu') is True

    def test_rejects_automated_mailboxes(self):
        """Automated mailboxes are never contacts."""
        assert is_valid_email('webmaster@stanford.edu') is False
        assert is_valid_email('noreply@stanford.edu') is False
        assert is_valid_email('postmaster@stanford.edu') is False

    def test_rejects_file_names(self):
        assert is_valid_email('logo@2x.png') is False
        assert is_valid_email('brochure@x.edu.pdf') is False

    def test_extension_inside_address_is_kept(self):
        """Only a trailing extension marks a file name."""
        assert is_valid_email('mary.gifford@stanford.edu') is True
        assert is_valid_email('j.docherty@stanford.edu') is True
        assert is_valid_email('a.zipkin@stanford.edu') is True

    def test_length_bounds(self):
        assert is_valid_email('a@b') is False
        assert is_valid_email('x' * 95 + '@b.edu') is False

    def test_filter_emails_keeps_order(self):
        text = "Write to b@x.edu or webmaster@x.edu, then a@x.edu or b@x.edu"
        assert filter_emails(text) == ['b@x.edu', 'a@x.edu']


class TestNameAndTitlePredicates:
    """Test name and title validity."""

    def test_valid_names(self):
        assert is_valid_name('Jane Doe', DENY) is True
        assert is_valid_name("Mary O'Brien-Smith", DENY) is True

    def test_invalid_names(self):
        assert is_valid_name('J', DENY) is False
        assert is_valid_name('12345', DENY) is False
        assert is_valid_name('HOUSING OFFICE', DENY) is False
        assert is_valid_name('Contact Us', DENY) is False
        assert is_valid_name('Phone 555', DENY) is False

    def test_titles(self):
        assert is_valid_title('Director of Residential Life') is True
        assert is_valid_title('Area Coordinator') is True
        assert is_valid_title('Jane Doe') is False


class TestLocationContext:
    """Test location labels derived from URL paths."""

    def test_known_patterns(self):
        assert location_context('https://x.edu/housing/graduate/staff') == 'Graduate Housing'
        assert location_context('https://x.edu/north-campus/team') == 'North Campus'

    def test_building_names(self):
        assert location_context('https://x.edu/housing/smith-hall/') == 'Smith Hall'

    def test_no_context(self):
        assert location_context('https://x.edu/housing/staff') is None


class TestTextLines:
    """Test flattening sections to visible lines."""

    def test_inline_markup_stays_on_one_line(self):
        soup = BeautifulSoup('<div><p>Jane <b>Doe</b></p><p>Director</p></div>', 'html.parser')
        assert text_lines(soup.div) == ['Jane Doe', 'Director']

    def test_scripts_are_ignored(self):
        soup = BeautifulSoup('<div><script>var a = 1;</script><p>Hi</p></div>', 'html.parser')
        assert text_lines(soup.div) == ['Hi']


class TestTableExtraction:
    """Test one-contact-per-row table extraction."""

    def test_one_contact_per_row(self, extractor, staff_table_html):
        """A three-row staff table yields exactly three contacts."""
        contacts = extractor.extract('https://housing.stanford.edu/staff', staff_table_html)

        assert len(contacts) == 3
        assert [c.name for c in contacts] == ['Jane Doe', 'John Smith', 'Maria Garcia']
        assert contacts[0].title == 'Director of Housing'
        assert contacts[0].email == 'jdoe@stanford.edu'
        assert contacts[0].phone == '(650) 555-1234'
        assert all(c.method == 'table_rows' for c in contacts)
        assert all(c.department == 'Housing' for c in contacts)

    def test_row_with_extension_like_local_part(self, extractor):
        html = ("<table><tr><td>Mary Gifford</td><td>Director of Housing</td>"
                "<td>mary.gifford@stanford.edu</td></tr></table>")
        contacts = extractor.extract('https://housing.stanford.edu/staff', html)
        assert [c.email for c in contacts] == ['mary.gifford@stanford.edu']

    def test_row_without_name_is_skipped(self, extractor):
        html = "<table><tr><td>Main Office</td><td>office@x.edu</td></tr></table>"
        assert extractor.extract('https://x.edu/housing', html) == []


class TestProximityExtraction:
    """Test free-text proximity heuristics."""

    def test_name_title_and_phone_near_email(self, extractor):
        html = """
        <div class="staff-card">
          <h3>Jane Doe</h3>
          <p>Director of Residential Life</p>
          <p><a href="mailto:jdoe@x.edu">jdoe@x.edu</a></p>
          <p>Phone: 555-123-4567</p>
        </div>
        """
        contacts = extractor.extract('https://x.edu/housing/staff', html)

        assert len(contacts) == 1
        contact = contacts[0]
        assert contact.name == 'Jane Doe'
        assert contact.title == 'Director of Residential Life'
        assert contact.phone == '555-123-4567'
        assert contact.method == 'proximity'

    def test_location_suffix_on_title(self, extractor):
        html = """
        <div class="staff-card">
          <h3>Sam Lee</h3>
          <p>Community Director</p>
          <p>slee@x.edu</p>
        </div>
        """
        contacts = extractor.extract('https://x.edu/housing/graduate/staff', html)
        assert contacts[0].title == 'Community Director - Graduate Housing'
        assert contacts[0].department == 'Graduate Housing'

    def test_contact_form_placeholder(self, extractor):
        """A form section with no named person yields one placeholder."""
        html = """
        <section class="contact-section">
          <p>Questions about housing? Use our contact form or email housing@x.edu.</p>
          <form><input type="text" name="q"><button type="submit">Submit</button></form>
        </section>
        """
        contacts = extractor.extract('https://x.edu/housing/contact', html)

        forms = [c for c in contacts if c.is_contact_form]
        assert len(forms) == 1
        assert forms[0].email == CONTACT_FORM_EMAIL
        assert forms[0].title == CONTACT_FORM_TITLE
        assert forms[0].name == ''

    def test_webmaster_never_extracted(self, extractor):
        html = """
        <div class="staff-card">
          <h3>Jane Doe</h3><p>Housing Director</p>
          <p>jdoe@x.edu</p>
          <p>Site issues: webmaster@x.edu</p>
        </div>
        """
        emails = [c.email for c in extractor.extract('https://x.edu/housing', html)]
        assert 'webmaster@x.edu' not in emails
        assert 'jdoe@x.edu' in emails


class TestStructuredData:
    """Test microdata and data-attribute extraction."""

    def test_microdata_person(self, extractor):
        html = """
        <div itemscope itemtype="https://schema.org/Person">
          <span itemprop="name">Alex Kim</span>
          <span itemprop="jobTitle">Assistant Director</span>
          <a itemprop="email" href="mailto:akim@x.edu">akim@x.edu</a>
        </div>
        """
        contacts = extractor.extract('https://x.edu/housing', html)
        assert len(contacts) == 1
        assert contacts[0].name == 'Alex Kim'
        assert contacts[0].title == 'Assistant Director'
        assert contacts[0].method == 'structured_data'

    def test_data_attribute_block(self, extractor):
        html = '<div data-staff data-name="Pat Jones" data-email="pjones@x.edu" data-title="Area Coordinator"></div>'
        contacts = extractor.extract('https://x.edu/housing', html)
        assert [(c.name, c.email, c.title) for c in contacts] == [
            ('Pat Jones', 'pjones@x.edu', 'Area Coordinator')
        ]


class TestLabeledRoles:
    """Test 'Role: name email' extraction."""

    def test_labeled_role(self, extractor):
        html = "<body><p>Hall Director: Chris Park cpark@x.edu</p></body>"
        contacts = extractor.extract('https://x.edu/housing/smith-hall', html)
        assert len(contacts) == 1
        assert contacts[0].name == 'Chris Park'
        assert contacts[0].email == 'cpark@x.edu'
        assert contacts[0].title == 'Hall Director - Smith Hall'


class TestObfuscatedEmails:
    """Test that de-obfuscated addresses reach the strategies."""

    def test_at_dot_spelling(self, extractor):
        html = "<table><tr><td>Jane Doe</td><td>jdoe [at] x [dot] edu</td></tr></table>"
        contacts = extractor.extract('https://x.edu/housing', html)
        assert [c.email for c in contacts] == ['jdoe@x.edu']


class TestScrapePage:
    """Test the blocking page worker."""

    def test_skips_already_scraped(self, extractor):
        tracker = URLTracker()
        tracker.mark_as_scraped('https://x.edu/housing/')
        fetcher = StubFetcher()

        result = extractor.scrape_page('https://x.edu/housing', tracker, fetcher)

        assert result.skipped is True
        assert fetcher.requested == []

    def test_follows_contact_links(self, extractor, staff_table_html):
        hub = '<html><body><a href="/housing/staff">Meet the Staff</a></body></html>'
        fetcher = StubFetcher(pages={
            'https://stanford.edu/housing': hub,
            'https://stanford.edu/housing/staff': staff_table_html,
        })

        result = extractor.scrape_page('https://stanford.edu/housing', URLTracker(), fetcher)

        assert result.visited_urls == ['https://stanford.edu/housing', 'https://stanford.edu/housing/staff']
        assert len(result.contacts) == 3
        assert result.html == hub

    def test_does_not_mutate_tracker(self, extractor, staff_table_html):
        tracker = URLTracker()
        fetcher = StubFetcher(default_html=staff_table_html)
        extractor.scrape_page('https://x.edu/housing', tracker, fetcher)
        assert tracker.scraped_count == 0
        assert tracker.email_count == 0

    def test_main_page_failure_raises(self, extractor):
        with pytest.raises(FetchError):
            extractor.scrape_page('https://x.edu/missing', URLTracker(), StubFetcher())

    def test_cancelled_worker_stops_following_links(self, extractor):
        hub = '<a href="/staff">Staff</a><a href="/contact">Contact</a>'
        fetcher = StubFetcher(default_html=hub)
        cancel = threading.Event()
        cancel.set()

        result = extractor.scrape_page('https://x.edu/housing', URLTracker(), fetcher, cancel)

        assert fetcher.requested == ['https://x.edu/housing']
        assert result.visited_urls == ['https://x.edu/housing']
