"""
Shared fixtures and network-free stubs.
"""

import time

import pytest

from housing_contacts.exceptions import FetchError


STAFF_TABLE_HTML = """
<html><body>
<h1>Housing Staff Directory</h1>
<table>
  <tr><th>Name</th><th>Title</th><th>Email</th><th>Phone</th></tr>
  <tr><td>Jane Doe</td><td>Director of Housing</td><td>jdoe@stanford.edu</td><td>(650) 555-1234</td></tr>
  <tr><td>John Smith</td><td>Assistant Director</td><td>jsmith@stanford.edu</td><td>(650) 555-2345</td></tr>
  <tr><td>Maria Garcia</td><td>Residence Coordinator</td><td>mgarcia@stanford.edu</td><td>(650) 555-3456</td></tr>
</table>
</body></html>
"""


class StubFetcher:
    """
    PageFetcher stand-in serving canned HTML.

    Args:
        pages: url -> html; unknown URLs raise FetchError
        delay: Seconds slept before every get()
        head_status: url -> status code for head(); default 404
    """

    def __init__(self, pages=None, delay=0.0, head_status=None, default_html=None):
        self.pages = pages or {}
        self.delay = delay
        self.head_status = head_status or {}
        self.default_html = default_html
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        if self.delay:
            time.sleep(self.delay)
        if url in self.pages:
            return self.pages[url]
        if self.default_html is not None:
            return self.default_html
        raise FetchError(url, "HTTP 404", status_code=404)

    def head(self, url, timeout=None):
        status = self.head_status.get(url, 404)
        if isinstance(status, Exception):
            raise status
        return status

    def is_reachable(self, url, timeout=None):
        return self.head_status.get(url) == 200


class StubSearchClient:
    """SearchClient stand-in: query -> list of SearchResult."""

    def __init__(self, results=None):
        self.results = results or {}
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        return list(self.results.get(query, []))


@pytest.fixture
def staff_table_html():
    return STAFF_TABLE_HTML


@pytest.fixture
def stub_search():
    return StubSearchClient()
