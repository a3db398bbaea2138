"""
Relevance scoring.

Additive integer score from independent email, title and name signals.
Contact-form placeholders get a fixed score instead of keyword scoring.
"""

import re
from typing import Iterable, List

from loguru import logger

from config.settings import CONTACT_FORM_SCORE, MIN_RELEVANCE_SCORE
from housing_contacts.models import CONTACT_FORM_EMAIL, RawContact, ScoredContact


# (keywords, points) pairs; each pair counts at most once
EMAIL_SIGNALS = (
    (('.edu',), 15),
    (('housing', 'residential', 'hdh'), 25),
    (('residence', 'dorm'), 20),
    (('staff', 'admin', 'office'), 15),
)

TITLE_SIGNALS = (
    (('director', 'coordinator', 'manager', 'administrator'), 25),
    (('assistant director', 'associate director', 'deputy'), 22),
    (('assistant', 'associate', 'specialist', 'advisor'), 15),
    (('housing', 'residential', 'residence'), 30),
    (('dean', 'vice'), 20),
    (('community', 'program'), 10),
)

JUNK_EMAIL_MARKERS = ('png', 'jpg', 'noreply', 'signup', 'unsubscribe')
BOILERPLATE_NAME_MARKERS = ('copyright', 'equal housing')

NUMERIC = re.compile(r'^\d+$')


def _any_in(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def score_contact(contact: RawContact) -> int:
    """
    Relevance score for one contact.

    Positive signals: .edu and housing words in the email, seniority and
    housing words in the title, a realistic multi-word name. Penalties:
    out-of-range name length (-25), numeric names, junk emails and
    boilerplate text taken for a name (-100 each).
    """
    email = contact.email.lower()
    if email == CONTACT_FORM_EMAIL:
        return CONTACT_FORM_SCORE

    name = contact.name.lower()
    title = contact.title.lower()
    score = 0

    for keywords, points in EMAIL_SIGNALS:
        if _any_in(email, keywords):
            score += points

    for keywords, points in TITLE_SIGNALS:
        if _any_in(title, keywords):
            score += points
    if 'student' in title and _any_in(title, ('life', 'services')):
        score += 15

    if ' ' in name and 'contact' not in name and 'form' not in name:
        score += 20
    if 2 <= len(name.split()) <= 4:
        score += 10

    if len(name) < 3 or len(name) > 60:
        score -= 25
    if NUMERIC.match(name):
        score -= 100
    if _any_in(email, JUNK_EMAIL_MARKERS):
        score -= 100
    if _any_in(name, BOILERPLATE_NAME_MARKERS):
        score -= 100

    return score


def score_and_filter(
    contacts: Iterable[RawContact],
    min_score: int = MIN_RELEVANCE_SCORE,
) -> List[ScoredContact]:
    """
    Score contacts, drop those at or below min_score, rank by score.

    The sort is stable, so equal scores keep discovery order.
    """
    contacts = list(contacts)
    scored = [
        ScoredContact(contact=contact, relevance_score=score_contact(contact))
        for contact in contacts
    ]

    kept = [item for item in scored if item.relevance_score > min_score]
    kept.sort(key=lambda item: item.relevance_score, reverse=True)

    logger.info(f"Scored {len(contacts)} contacts, kept {len(kept)} above {min_score}")
    for item in kept[:10]:
        logger.debug(f"  {item.name or '(form)'} ({item.email}) - score {item.relevance_score}")

    return kept


__all__ = ['score_contact', 'score_and_filter']
