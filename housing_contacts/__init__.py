"""
Housing Contact Discovery

Finds housing and residential-life staff contacts for a named institution.
"""

from housing_contacts.orchestrator import ContactDiscoveryEngine, run_discovery
from housing_contacts.service import ScrapeResponse, scrape_university

__version__ = '1.0.0'

__all__ = ['ContactDiscoveryEngine', 'run_discovery', 'ScrapeResponse', 'scrape_university']
