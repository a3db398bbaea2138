"""
Configuration settings for Housing Contact Scraper.

Loads environment variables and provides configuration constants
with sensible defaults and validation.
"""

import os
from pathlib import Path
from dotenv import load_dotenv
from loguru import logger

# Load environment variables from .env file
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_FILE = BASE_DIR / '.env'

if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
    logger.info(f"Loaded configuration from {ENV_FILE}")
else:
    logger.debug(f".env file not found at {ENV_FILE}. Using defaults.")

# =============================================================================
# Directory Paths
# =============================================================================

PACKAGE_DIR = BASE_DIR / 'housing_contacts'
CONFIG_DIR = BASE_DIR / 'config'
OUTPUT_DIR = Path(os.getenv('OUTPUT_DIR', BASE_DIR / 'output'))
LOGS_DIR = Path(os.getenv('LOGS_DIR', BASE_DIR / 'logs'))
TESTS_DIR = BASE_DIR / 'tests'

# Create directories if they don't exist
for directory in [OUTPUT_DIR, LOGS_DIR]:
    directory.mkdir(parents=True, exist_ok=True)

# =============================================================================
# Helpers
# =============================================================================

def _get_float(key: str, default: float) -> float:
    """Get float value from environment variable."""
    try:
        return float(os.getenv(key, default))
    except ValueError:
        logger.warning(f"Invalid value for {key}, using default: {default}")
        return default

def _get_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    try:
        return int(os.getenv(key, default))
    except ValueError:
        logger.warning(f"Invalid value for {key}, using default: {default}")
        return default

def _get_bool(key: str, default: bool) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on')

# =============================================================================
# Search Provider
# =============================================================================

SEARCH_URL = os.getenv('SEARCH_URL', 'https://html.duckduckgo.com/html/').strip()

# Delay between consecutive search queries (seconds)
SEARCH_DELAY = _get_float('SEARCH_DELAY', 1.5)

# =============================================================================
# Fetching Configuration
# =============================================================================

# User agent rotation
USE_RANDOM_USER_AGENT = _get_bool('USE_RANDOM_USER_AGENT', True)

# Timeouts (seconds)
REQUEST_TIMEOUT = _get_int('REQUEST_TIMEOUT', 30)
DOMAIN_PROBE_TIMEOUT = _get_int('DOMAIN_PROBE_TIMEOUT', 8)
SUBDOMAIN_PROBE_TIMEOUT = _get_int('SUBDOMAIN_PROBE_TIMEOUT', 8)
PATH_PROBE_TIMEOUT = _get_int('PATH_PROBE_TIMEOUT', 6)

MAX_REDIRECTS = _get_int('MAX_REDIRECTS', 3)

# Probe batching
PROBE_BATCH_SIZE = _get_int('PROBE_BATCH_SIZE', 5)
PROBE_BATCH_DELAY = _get_float('PROBE_BATCH_DELAY', 1.0)

# Delay between in-page contact links of one page (seconds)
CONTACT_PAGE_DELAY = _get_float('CONTACT_PAGE_DELAY', 0.8)

# =============================================================================
# Run Budgets
# =============================================================================

SCRAPING_TIMEOUT_SECONDS = _get_float('SCRAPING_TIMEOUT_SECONDS', 600.0)  # 10 minutes
PAGE_TIMEOUT_SECONDS = _get_float('PAGE_TIMEOUT_SECONDS', 120.0)          # 2 minutes per page

# =============================================================================
# Discovery & Extraction Limits
# =============================================================================

MAX_CONTACT_LINKS = _get_int('MAX_CONTACT_LINKS', 8)
MAX_CONTACT_PAGES = _get_int('MAX_CONTACT_PAGES', 5)
MAX_COMMUNITY_PAGES = _get_int('MAX_COMMUNITY_PAGES', 10)
MAX_COMMUNITY_PAGES_SCRAPED = _get_int('MAX_COMMUNITY_PAGES_SCRAPED', 3)
MAX_CONTACT_FORMS = _get_int('MAX_CONTACT_FORMS', 3)

# =============================================================================
# Scoring
# =============================================================================

MIN_RELEVANCE_SCORE = _get_int('MIN_RELEVANCE_SCORE', -20)
CONTACT_FORM_SCORE = _get_int('CONTACT_FORM_SCORE', 8)

# =============================================================================
# Persistence
# =============================================================================

STORE_PATH = Path(os.getenv('STORE_PATH', OUTPUT_DIR / 'institutions.json'))
FUZZY_MATCH_THRESHOLD = _get_int('FUZZY_MATCH_THRESHOLD', 95)  # partial_ratio for name lookup

# =============================================================================
# Logging Configuration
# =============================================================================

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_MAX_SIZE = _get_int('LOG_MAX_SIZE', 10) * 1024 * 1024  # Convert MB to bytes
LOG_BACKUP_COUNT = _get_int('LOG_BACKUP_COUNT', 5)

# =============================================================================
# Validation & Reporting
# =============================================================================

def validate_config():
    """Validate configuration and log status."""
    logger.info("=" * 70)
    logger.info("Housing Contact Scraper - Configuration Status")
    logger.info("=" * 70)

    logger.info("Search:")
    logger.info(f"  Endpoint:          {SEARCH_URL}")
    logger.info(f"  Query Delay:       {SEARCH_DELAY}s")

    logger.info(f"\nFetching:")
    logger.info(f"  Random User Agent: {USE_RANDOM_USER_AGENT}")
    logger.info(f"  Request Timeout:   {REQUEST_TIMEOUT}s")
    logger.info(f"  Probe Batch:       {PROBE_BATCH_SIZE} (delay {PROBE_BATCH_DELAY}s)")
    logger.info(f"  Max Redirects:     {MAX_REDIRECTS}")

    logger.info(f"\nBudgets:")
    logger.info(f"  Run Budget:        {SCRAPING_TIMEOUT_SECONDS:.0f}s")
    logger.info(f"  Page Budget:       {PAGE_TIMEOUT_SECONDS:.0f}s")

    logger.info(f"\nDirectories:")
    logger.info(f"  Output: {OUTPUT_DIR}")
    logger.info(f"  Logs:   {LOGS_DIR}")

    logger.info("=" * 70)

    if PAGE_TIMEOUT_SECONDS > SCRAPING_TIMEOUT_SECONDS:
        logger.warning("Page budget exceeds run budget; a single page can consume the whole run.")

    return True

# =============================================================================
# Export configuration
# =============================================================================

__all__ = [
    'BASE_DIR',
    'OUTPUT_DIR',
    'LOGS_DIR',
    'SEARCH_URL',
    'SEARCH_DELAY',
    'USE_RANDOM_USER_AGENT',
    'REQUEST_TIMEOUT',
    'DOMAIN_PROBE_TIMEOUT',
    'SUBDOMAIN_PROBE_TIMEOUT',
    'PATH_PROBE_TIMEOUT',
    'MAX_REDIRECTS',
    'PROBE_BATCH_SIZE',
    'PROBE_BATCH_DELAY',
    'CONTACT_PAGE_DELAY',
    'SCRAPING_TIMEOUT_SECONDS',
    'PAGE_TIMEOUT_SECONDS',
    'MAX_CONTACT_LINKS',
    'MAX_CONTACT_PAGES',
    'MAX_COMMUNITY_PAGES',
    'MAX_COMMUNITY_PAGES_SCRAPED',
    'MAX_CONTACT_FORMS',
    'MIN_RELEVANCE_SCORE',
    'CONTACT_FORM_SCORE',
    'STORE_PATH',
    'FUZZY_MATCH_THRESHOLD',
    'LOG_LEVEL',
    'LOG_MAX_SIZE',
    'LOG_BACKUP_COUNT',
    'validate_config',
]
