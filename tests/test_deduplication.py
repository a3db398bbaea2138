"""
Unit tests for deduplication module.

Tests identity keys, in-run deduplication and filtering against stored
contacts.
"""

import pytest

from housing_contacts.deduplication import (
    deduplicate_contacts,
    filter_existing_contacts,
    identity_key,
    normalize_email,
    normalize_name,
)
from housing_contacts.models import (
    CONTACT_FORM_EMAIL,
    CONTACT_FORM_TITLE,
    RawContact,
    ScoredContact,
    StoredContact,
)


def scored(name, email, score=50, source_url='https://x.edu/housing'):
    return ScoredContact(
        contact=RawContact(name=name, title='Director', email=email, source_url=source_url),
        relevance_score=score,
    )


def form(source_url):
    return ScoredContact(
        contact=RawContact(name='', title=CONTACT_FORM_TITLE, email=CONTACT_FORM_EMAIL,
                           source_url=source_url),
        relevance_score=8,
    )


class TestNormalizeFunctions:
    """Test normalization utility functions."""

    def test_normalize_name(self):
        assert normalize_name("John Doe") == "john doe"
        assert normalize_name("  JOHN   DOE  ") == "john doe"
        assert normalize_name("") == ""
        assert normalize_name(None) == ""

    def test_normalize_email(self):
        assert normalize_email("JOHN@EXAMPLE.EDU") == "john@example.edu"
        assert normalize_email("  john@example.edu  ") == "john@example.edu"
        assert normalize_email(None) == ""

    def test_identity_key(self):
        assert identity_key(scored('Jane Doe', 'Jane@X.edu')) == 'jane@x.edu'
        assert identity_key(form('https://x.edu/a')) == 'contact-form-https://x.edu/a'


class TestDeduplicateContacts:
    """Test in-run deduplication."""

    def test_case_variants_collapse(self):
        """Emails differing only in case are one contact."""
        contacts = [scored('Jane Doe', 'Jane.Doe@X.edu'), scored('Jane Doe', 'jane.doe@x.edu')]

        result = deduplicate_contacts(contacts)

        assert len(result) == 1
        assert result[0].email == 'Jane.Doe@X.edu'
        assert result[0].identity_key == 'jane.doe@x.edu'

    def test_no_duplicate_lowercased_emails(self):
        contacts = [
            scored('Jane Doe', 'jane@x.edu', 90),
            scored('Janet Doe', 'JANE@x.edu', 80),
            scored('Bob Smith', 'bob@x.edu', 70),
            scored('Bob Smith', 'Bob@X.EDU', 60),
        ]

        result = deduplicate_contacts(contacts)

        emails = [c.email.lower() for c in result]
        assert len(emails) == len(set(emails))
        assert [c.name for c in result] == ['Jane Doe', 'Bob Smith']

    def test_one_placeholder_per_page(self):
        contacts = [form('https://x.edu/a'), form('https://x.edu/a'), form('https://x.edu/b')]
        result = deduplicate_contacts(contacts)
        assert [c.identity_key for c in result] == [
            'contact-form-https://x.edu/a',
            'contact-form-https://x.edu/b',
        ]

    def test_placeholder_cap(self):
        contacts = [form(f'https://x.edu/{i}') for i in range(5)]
        assert len(deduplicate_contacts(contacts, max_contact_forms=3)) == 3

    def test_empty(self):
        assert deduplicate_contacts([]) == []


class TestFilterExistingContacts:
    """Test filtering against the persistence collaborator's contacts."""

    def test_drops_known_email_and_name(self):
        existing = [
            StoredContact(institution_id='1', name='Jane Doe', role='Director', email='jane@x.edu'),
            StoredContact(institution_id='1', name='Bob Smith', role='Manager', email='old@x.edu'),
        ]
        contacts = [
            scored('Jane Doe', 'JANE@x.edu'),
            scored('Bob Smith', 'bob.smith@x.edu'),
            scored('Ann Lee', 'ann@x.edu'),
        ]

        result = filter_existing_contacts(contacts, existing)

        assert [c.name for c in result] == ['Ann Lee']

    def test_placeholders_matched_by_source_page(self):
        existing = [
            StoredContact(institution_id='1', name='Contact Form', role=CONTACT_FORM_TITLE,
                          email=CONTACT_FORM_EMAIL, source_url='https://x.edu/a'),
        ]
        result = filter_existing_contacts([form('https://x.edu/a'), form('https://x.edu/b')], existing)
        assert [c.contact.source_url for c in result] == ['https://x.edu/b']
