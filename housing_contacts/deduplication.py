"""
Deduplication Module

Collapses repeated contacts within one run and drops contacts the
persistence collaborator already holds.

Identity keys (hierarchical):
    1. Lowercased email - primary identifier
    2. Email + normalized name - catches re-extraction with cosmetic name changes
    3. contact-form-<source page> - one placeholder per page, capped per run
"""

from typing import Iterable, List

from loguru import logger

from config.settings import MAX_CONTACT_FORMS
from housing_contacts.models import CONTACT_FORM_EMAIL, ScoredContact, StoredContact
from housing_contacts.name_normalizer import normalize


def normalize_email(email: str) -> str:
    """Lowercase, surrounding whitespace stripped."""
    return (email or '').strip().lower()


def normalize_name(name: str) -> str:
    """Lowercase, punctuation stripped, whitespace collapsed."""
    return normalize(name or '')


def identity_key(contact: ScoredContact) -> str:
    """Final identity key of a contact (see module docstring)."""
    if contact.email == CONTACT_FORM_EMAIL:
        return f"{CONTACT_FORM_EMAIL}-{contact.contact.source_url}"
    return normalize_email(contact.email)


def deduplicate_contacts(
    contacts: Iterable[ScoredContact],
    max_contact_forms: int = MAX_CONTACT_FORMS,
) -> List[ScoredContact]:
    """
    Remove duplicates, keeping the first (highest ranked) occurrence.

    Args:
        contacts: Ranked scored contacts
        max_contact_forms: Placeholders kept per run

    Returns:
        Contacts with pairwise distinct identity keys, identity_key set
    """
    contacts = list(contacts)
    seen = set()
    kept: List[ScoredContact] = []
    contact_forms = 0

    for contact in contacts:
        email_key = normalize_email(contact.email)
        combined_key = f"{email_key}-{normalize_name(contact.name)}"

        if contact.email == CONTACT_FORM_EMAIL:
            form_key = identity_key(contact)
            if form_key in seen or contact_forms >= max_contact_forms:
                continue
            seen.add(form_key)
            contact_forms += 1
            contact.identity_key = form_key
            kept.append(contact)
            continue

        if email_key in seen or combined_key in seen:
            logger.debug(f"Removing duplicate: {contact.name} ({contact.email})")
            continue

        seen.add(email_key)
        seen.add(combined_key)
        contact.identity_key = email_key
        kept.append(contact)

    logger.info(f"Removed {len(contacts) - len(kept)} duplicates, kept {len(kept)}")
    return kept


def filter_existing_contacts(
    contacts: Iterable[ScoredContact],
    existing: Iterable[StoredContact],
) -> List[ScoredContact]:
    """
    Drop contacts whose email or normalized name is already stored.

    Contact-form placeholders are matched on their source page instead of
    the shared sentinel email.
    """
    existing = list(existing)
    existing_emails = {
        normalize_email(item.email) for item in existing if item.email != CONTACT_FORM_EMAIL
    }
    existing_names = {
        normalize_name(item.name) for item in existing if item.email != CONTACT_FORM_EMAIL
    }
    existing_forms = {
        item.source_url for item in existing if item.email == CONTACT_FORM_EMAIL
    }

    contacts = list(contacts)
    new_contacts = []
    for contact in contacts:
        if contact.email == CONTACT_FORM_EMAIL:
            is_known = contact.contact.source_url in existing_forms
        else:
            is_known = (normalize_email(contact.email) in existing_emails
                        or (bool(contact.name) and normalize_name(contact.name) in existing_names))
        if is_known:
            logger.debug(f"Skipping existing: {contact.name} ({contact.email})")
            continue
        new_contacts.append(contact)

    logger.info(f"Filtered {len(contacts) - len(new_contacts)} existing, {len(new_contacts)} new")
    return new_contacts


__all__ = [
    'normalize_email',
    'normalize_name',
    'identity_key',
    'deduplicate_contacts',
    'filter_existing_contacts',
]
