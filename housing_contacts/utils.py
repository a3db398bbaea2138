"""
Utility functions for Housing Contact Scraper.

Provides logging setup, URL helpers and text/email/phone extraction helpers.
"""

import re
import sys
from datetime import datetime
from typing import List, Optional
from urllib.parse import urlparse, parse_qs

from loguru import logger

from config.settings import (
    LOGS_DIR,
    LOG_LEVEL,
    LOG_MAX_SIZE,
    LOG_BACKUP_COUNT,
)


EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')

PHONE_PATTERNS = (
    re.compile(r'\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}'),
    re.compile(r'\d{3}-\d{3}-\d{4}'),
    re.compile(r'\(\d{3}\)\s?\d{3}-\d{4}'),
    re.compile(r'\d{3}\.\d{3}\.\d{4}'),
)

_logger_configured = False


# =============================================================================
# Logging Setup
# =============================================================================

def setup_logger(name: str = "scraper", log_file: Optional[str] = None):
    """
    Configure the shared loguru logger once per process and return it.

    Args:
        name: Logger name (logged on first configuration)
        log_file: Optional custom log file name (default: scraper_YYYYMMDD.log)

    Returns:
        Configured logger instance
    """
    global _logger_configured

    if _logger_configured:
        return logger

    logger.remove()

    # Colorize only for interactive terminals so piped output stays clean
    is_tty = sys.stdout.isatty()

    logger.add(
        sink=sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=LOG_LEVEL,
        colorize=is_tty,
    )

    if log_file is None:
        log_file = f"scraper_{datetime.now().strftime('%Y%m%d')}.log"

    log_path = LOGS_DIR / log_file

    logger.add(
        sink=log_path,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
        level=LOG_LEVEL,
        rotation=LOG_MAX_SIZE,
        retention=LOG_BACKUP_COUNT,
        compression="zip",
    )

    _logger_configured = True
    logger.debug(f"Logger initialized: {name} (file: {log_path}, level: {LOG_LEVEL})")

    return logger


# =============================================================================
# URL Utilities
# =============================================================================

def validate_url(url: str) -> bool:
    """
    Validate that a URL is well-formed.

    Args:
        url: URL to validate

    Returns:
        True if valid, False otherwise
    """
    try:
        result = urlparse(url)
        return all([result.scheme in ('http', 'https'), result.netloc])
    except ValueError:
        return False


def unwrap_redirect(url: str) -> Optional[str]:
    """
    Decode a search-provider redirect link to its real destination.

    Links of the form ``//duckduckgo.com/l/?uddg=<encoded>&rut=...`` carry the
    destination URL percent-encoded in the ``uddg`` query parameter.

    Args:
        url: Raw href from a search result page

    Returns:
        Absolute destination URL, or None if it cannot be decoded
    """
    if not url:
        return None

    url = url.strip()

    if 'duckduckgo.com/l/' in url:
        query = urlparse(url if '://' in url else 'https:' + url).query
        targets = parse_qs(query).get('uddg')
        if not targets:
            return None
        url = targets[0]

    if url.startswith('//'):
        url = 'https:' + url
    elif not url.startswith(('http://', 'https://')):
        url = 'https://' + url

    return url if validate_url(url) else None


def extract_hostname(url: str) -> Optional[str]:
    """
    Extract the hostname of a (possibly redirect-wrapped) URL.

    Args:
        url: URL to inspect

    Returns:
        Lowercased hostname (e.g., 'housing.berkeley.edu') or None
    """
    target = unwrap_redirect(url)
    if not target:
        return None

    try:
        hostname = urlparse(target).hostname
    except ValueError:
        return None

    return hostname.lower() if hostname else None


def is_edu_hostname(hostname: Optional[str]) -> bool:
    """True for structurally valid hostnames ending in .edu."""
    if not hostname or not hostname.endswith('.edu'):
        return False
    labels = hostname.split('.')
    return len(labels) >= 2 and all(
        label and re.fullmatch(r'[a-z0-9-]+', label) for label in labels
    )


# =============================================================================
# Text Processing
# =============================================================================

def clean_text(text: str) -> str:
    """
    Clean and normalize text.

    Args:
        text: Text to clean

    Returns:
        Cleaned text
    """
    if not text:
        return ''

    text = text.replace('\xa0', ' ')
    text = text.replace('\u200b', '')  # Zero-width space

    return ' '.join(text.split()).strip()


def find_emails(text: str) -> List[str]:
    """
    Find every email-shaped string in text, in order of first appearance.

    Args:
        text: Text to search

    Returns:
        Unique email strings (unfiltered)
    """
    if not text:
        return []
    return list(dict.fromkeys(EMAIL_PATTERN.findall(text)))


def extract_phones(text: str) -> List[str]:
    """
    Extract phone numbers from text.

    Args:
        text: Text containing potential phone numbers

    Returns:
        Unique phone strings in order of appearance
    """
    if not text:
        return []

    phones = []
    for pattern in PHONE_PATTERNS:
        phones.extend(pattern.findall(text))

    return list(dict.fromkeys(phones))


def get_timestamp() -> str:
    """Get current timestamp string for filenames."""
    return datetime.now().strftime('%Y%m%d_%H%M%S')


# =============================================================================
# Export public API
# =============================================================================

__all__ = [
    'setup_logger',
    'validate_url',
    'unwrap_redirect',
    'extract_hostname',
    'is_edu_hostname',
    'clean_text',
    'find_emails',
    'extract_phones',
    'get_timestamp',
]
