#!/usr/bin/env python3
"""
Housing Contact Scraper - Main CLI Interface

Discovers housing staff contacts for one or more institutions and stores
them in a local JSON store.

Usage:
    python main.py "Stanford University" "UC Berkeley"
    python main.py "Ohio State" --no-store --page-timeout 60 --json
"""

import argparse
import json
import sys
from typing import List, Optional

import pandas as pd
from loguru import logger
from tqdm import tqdm

from config.settings import (
    PAGE_TIMEOUT_SECONDS,
    SCRAPING_TIMEOUT_SECONDS,
    STORE_PATH,
    validate_config,
)
from housing_contacts.orchestrator import ContactDiscoveryEngine
from housing_contacts.persistence import InMemoryInstitutionStore, JsonFileInstitutionStore
from housing_contacts.service import ScrapeResponse, scrape_university
from housing_contacts.statistics import calculate_run_statistics, contacts_to_dataframe
from housing_contacts.utils import setup_logger


def print_banner():
    """Print application banner."""
    print("=" * 70)
    print(" " * 20 + "HOUSING CONTACT SCRAPER")
    print(" " * 14 + "Domain Resolution + Page Discovery + Extraction")
    print("=" * 70)
    print()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Discover housing staff contacts for institutions')
    parser.add_argument('names', nargs='+', help='Institution names (quote multi-word names)')
    parser.add_argument('--store', default=str(STORE_PATH), help='JSON store path')
    parser.add_argument('--no-store', action='store_true', help='Keep results in memory only')
    parser.add_argument('--run-timeout', type=float, default=SCRAPING_TIMEOUT_SECONDS,
                        help='Global extraction budget in seconds')
    parser.add_argument('--page-timeout', type=float, default=PAGE_TIMEOUT_SECONDS,
                        help='Per-page budget in seconds')
    parser.add_argument('--json', action='store_true', help='Print responses as JSON')
    return parser.parse_args(argv)


def print_response(name: str, response: ScrapeResponse):
    """Print one service response as a short report."""
    print("\n" + "=" * 70)
    print(f"RESULTS: {name}")
    print("=" * 70)
    print(response.message)
    if response.suggestion:
        print(f"Suggestion: {response.suggestion}")

    result = response.run_result
    if result is None:
        return

    stats = calculate_run_statistics(result)
    print()
    print(f"Domain: {stats['resolved_domain'] or 'not resolved'}")
    print(f"Pages: {stats['pages_succeeded']}/{stats['pages_processed']} scraped "
          f"({stats['pages_timed_out']} timed out, {stats['pages_discovered']} discovered)")
    print(f"Elapsed: {stats['elapsed_seconds']}s")

    if stats['total_contacts']:
        dist = stats['score_distribution']
        print(f"Scores: high {dist['high']}, medium {dist['medium']}, low {dist['low']}")
        print()
        contacts = contacts_to_dataframe(result.contacts)
        with pd.option_context('display.max_colwidth', 40, 'display.width', 200):
            print(contacts[['name', 'title', 'email', 'relevance_score']].to_string(index=False))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the scraper."""
    args = parse_args(argv)

    setup_logger("main")

    if not args.json:
        print_banner()

    logger.info("Validating configuration...")
    validate_config()

    try:
        if args.no_store:
            store = InMemoryInstitutionStore()
        else:
            store = JsonFileInstitutionStore(args.store)

        engine = ContactDiscoveryEngine(run_timeout=args.run_timeout, page_timeout=args.page_timeout)

        responses = {}
        for name in tqdm(args.names, desc="Institutions", unit="inst", disable=args.json):
            responses[name] = scrape_university(name, store, engine)

    except KeyboardInterrupt:
        logger.warning("Operation cancelled by user")
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1

    if args.json:
        print(json.dumps({name: r.to_dict() for name, r in responses.items()}, indent=2))
    else:
        for name, response in responses.items():
            print_response(name, response)
        print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
