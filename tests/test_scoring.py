"""
Tests for relevance scoring.
"""

from housing_contacts.models import CONTACT_FORM_EMAIL, CONTACT_FORM_TITLE, RawContact
from housing_contacts.scoring import score_and_filter, score_contact


def contact(name='Jane Doe', title='Director of Housing', email='jdoe@stanford.edu'):
    return RawContact(name=name, title=title, email=email, source_url='https://stanford.edu/housing')


class TestScoreContact:
    """Test individual score signals."""

    def test_senior_housing_title(self):
        # .edu 15, director 25, housing 30, multi-word name 20 + 10
        assert score_contact(contact()) == 100

    def test_housing_mailbox(self):
        assert score_contact(contact(email='housing@stanford.edu')) == 125

    def test_junk_email_penalty(self):
        assert score_contact(contact(email='noreply@stanford.edu')) == score_contact(contact()) - 100

    def test_boilerplate_name_penalty(self):
        assert score_contact(contact(name='Copyright Stanford')) == score_contact(contact()) - 100

    def test_numeric_name_penalty(self):
        # no name bonuses, -100 for a numeric name
        assert score_contact(contact(name='12345')) == 15 + 55 - 100

    def test_contact_form_fixed_score(self):
        placeholder = contact(name='', title=CONTACT_FORM_TITLE, email=CONTACT_FORM_EMAIL)
        assert score_contact(placeholder) == 8


class TestScoreAndFilter:
    """Test filtering and ranking."""

    def test_low_scores_dropped(self):
        contacts = [contact(), contact(name='Bob Smith', email='noreply@x.edu', title='Web')]
        result = score_and_filter(contacts)
        assert [c.name for c in result] == ['Jane Doe']

    def test_sorted_descending(self):
        contacts = [
            contact(name='Ann Lee', title='Web Editor', email='ann@x.edu'),
            contact(),
        ]
        result = score_and_filter(contacts)
        assert [c.name for c in result] == ['Jane Doe', 'Ann Lee']
        assert result[0].relevance_score >= result[1].relevance_score

    def test_ties_keep_discovery_order(self):
        first = contact(name='Ann Lee', email='ann@stanford.edu')
        second = contact(name='Bob Day', email='bob@stanford.edu')
        result = score_and_filter([first, second])
        assert [c.name for c in result] == ['Ann Lee', 'Bob Day']
