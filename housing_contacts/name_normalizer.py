"""
Institution name normalization and variant generation.

Pure functions over the alias tables in config.keywords. Variants feed the
persistence lookup and search-query construction; callers deduplicate.
"""

import re
from typing import Optional, Set

from loguru import logger

from config.keywords import DEFAULT_TABLES, KeywordTables
from housing_contacts.models import InstitutionQuery


_PUNCTUATION = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize(name: str) -> str:
    """
    Canonical form of an institution name.

    Lowercase, punctuation stripped, whitespace collapsed. Idempotent.

    Example:
        >>> normalize("  University of California, Berkeley ")
        'university of california berkeley'
    """
    if not name:
        return ''
    text = _PUNCTUATION.sub('', name.lower())
    return _WHITESPACE.sub(' ', text).strip()


def normalize_for_database(name: str) -> str:
    """
    Stricter form used when storing and looking up institutions.

    Removes commas, dashes and periods and the word "the".
    """
    if not name:
        return ''
    text = re.sub(r'[,\-.]', '', name.lower())
    text = re.sub(r'\bthe\b', '', text)
    return _WHITESPACE.sub(' ', text).strip()


def _add_alias_group(found: Set[str], full_name: str, abbreviations) -> None:
    found.add(full_name)
    for abbrev in abbreviations:
        found.add(abbrev)
        found.add(abbrev.upper())


def _registry_variants(canonical: str, tables: KeywordTables) -> Set[str]:
    """Alias registry expansion, exact matches first, then partial matches."""
    found: Set[str] = set()
    aliases = tables.institution_aliases

    for full_name, abbreviations in aliases.items():
        if canonical == full_name or canonical in abbreviations:
            _add_alias_group(found, full_name, abbreviations)
            return found

    prefix = tables.multi_campus_prefix
    system_abbrev = 'uc '
    for full_name, abbreviations in aliases.items():
        if full_name.startswith(prefix + ' '):
            campus = full_name[len(prefix) + 1:]
            if ((prefix in canonical and campus in canonical)
                    or (system_abbrev in canonical and campus in canonical)
                    or canonical == campus):
                _add_alias_group(found, full_name, abbreviations)
                return found
        else:
            keywords = [word for word in full_name.split() if word not in tables.alias_noise_words]
            if any(len(keyword) > 3 and keyword in canonical for keyword in keywords):
                _add_alias_group(found, full_name, abbreviations)
                return found

    return found


def variants(name: str, tables: Optional[KeywordTables] = None) -> Set[str]:
    """
    Every equivalent spelling of an institution name.

    Includes the raw and canonical forms, the stop-word-stripped form, an
    acronym, alias registry expansions (both directions), multi-campus
    expansions and generic system abbreviations.

    Args:
        name: Free-text institution name
        tables: Keyword tables (default tables when None)

    Returns:
        Set of variant strings (may contain near-duplicates differing in case)
    """
    tables = tables or DEFAULT_TABLES
    canonical = normalize(name)
    if not canonical:
        return set()

    found = {name.strip(), canonical}

    found |= _registry_variants(canonical, tables)

    for full, abbreviations in tables.system_abbreviations.items():
        if full in canonical:
            for abbrev in abbreviations:
                found.add(canonical.replace(full, abbrev))

    words = canonical.split(' ')
    stripped = ' '.join(word for word in words if word not in tables.stop_words)
    if stripped and stripped != canonical:
        found.add(stripped)

    long_words = [word for word in words if len(word) > 2]
    if len(long_words) > 1:
        acronym = ''.join(word[0] for word in long_words)
        if len(acronym) >= 2:
            found.add(acronym)

    logger.debug(f"Generated {len(found)} name variants for '{name}'")
    return found


def build_query(name: str, tables: Optional[KeywordTables] = None) -> InstitutionQuery:
    """Bundle a raw name with its canonical form and variants."""
    return InstitutionQuery(
        raw_name=name,
        canonical=normalize(name),
        variants=frozenset(variants(name, tables)),
    )


__all__ = ['normalize', 'normalize_for_database', 'variants', 'build_query']
