"""
Statistics Module for Housing Contact Discovery
Summarizes one discovery run for reports and the CLI.

Functions:
    - contacts_to_dataframe: Tabular view of scored contacts
    - get_page_summary: Discovered/succeeded/failed/timed-out page counts
    - get_department_breakdown: Contact counts by location context
    - get_score_distribution: High/medium/low relevance buckets
    - calculate_run_statistics: Main entry point combining all of the above
"""

from typing import Any, Dict, Iterable

import pandas as pd
from loguru import logger

from housing_contacts.models import CONTACT_FORM_EMAIL, RunResult, ScoredContact


CONTACT_COLUMNS = [
    'name', 'title', 'email', 'phone', 'department',
    'relevance_score', 'method', 'source_url',
]


def contacts_to_dataframe(contacts: Iterable[ScoredContact]) -> pd.DataFrame:
    """
    Build a DataFrame with one row per contact, in ranking order.

    Args:
        contacts: Scored contacts

    Returns:
        DataFrame with CONTACT_COLUMNS (empty frame with those columns if none)
    """
    records = [contact.to_dict() for contact in contacts]
    if not records:
        return pd.DataFrame(columns=CONTACT_COLUMNS)
    return pd.DataFrame(records)[CONTACT_COLUMNS]


def get_page_summary(result: RunResult) -> Dict[str, Any]:
    """
    Page ledger counts.

    Returns:
        Example: {'pages_discovered': 6, 'pages_processed': 5,
                  'pages_succeeded': 4, 'pages_failed': 1,
                  'pages_timed_out': 1, 'success_rate': 80.0}
    """
    outcomes = pd.DataFrame(
        [outcome.to_dict() for outcome in result.page_outcomes],
        columns=['url', 'success', 'count', 'error'],
    )
    processed = len(outcomes)
    succeeded = int(outcomes['success'].sum()) if processed else 0
    timed_out = sum(1 for outcome in result.page_outcomes if outcome.timed_out)

    return {
        'pages_discovered': len(result.discovered_pages),
        'pages_processed': processed,
        'pages_succeeded': succeeded,
        'pages_failed': processed - succeeded,
        'pages_timed_out': timed_out,
        'success_rate': round(succeeded / processed * 100, 1) if processed else 0.0,
    }


def get_department_breakdown(contacts_df: pd.DataFrame) -> Dict[str, int]:
    """
    Contact counts by department (location context), largest first.

    Example: {'Housing': 7, 'North Campus': 3}
    """
    if contacts_df.empty:
        return {}

    counts = contacts_df['department'].fillna('Housing').value_counts().to_dict()
    return dict(sorted(counts.items(), key=lambda x: x[1], reverse=True))


def get_score_distribution(contacts_df: pd.DataFrame) -> Dict[str, int]:
    """
    Bucket relevance scores: high (>= 50), medium (20-49), low (< 20).
    """
    if contacts_df.empty:
        return {'high': 0, 'medium': 0, 'low': 0}

    scores = contacts_df['relevance_score']
    return {
        'high': int((scores >= 50).sum()),
        'medium': int(((scores >= 20) & (scores < 50)).sum()),
        'low': int((scores < 20).sum()),
    }


def calculate_run_statistics(result: RunResult) -> Dict[str, Any]:
    """
    Calculate summary statistics for one run.

    Args:
        result: Finished RunResult

    Returns:
        Dictionary with page counts, contact counts and breakdowns
    """
    logger.info(f"Calculating statistics for {result.institution_name}...")

    contacts_df = contacts_to_dataframe(result.contacts)

    stats: Dict[str, Any] = {
        'institution': result.institution_name,
        'resolved_domain': result.resolved_domain,
        'status': result.status.value,
        'timed_out': result.timed_out,
        'elapsed_seconds': round(result.elapsed_seconds, 1),
    }
    stats.update(get_page_summary(result))

    if contacts_df.empty:
        stats.update({
            'total_contacts': 0,
            'with_phone': 0,
            'contact_forms': 0,
            'by_department': {},
            'score_distribution': get_score_distribution(contacts_df),
            'average_score': 0.0,
        })
        return stats

    stats.update({
        'total_contacts': len(contacts_df),
        'with_phone': int(contacts_df['phone'].notna().sum()),
        'contact_forms': int((contacts_df['email'] == CONTACT_FORM_EMAIL).sum()),
        'by_department': get_department_breakdown(contacts_df),
        'score_distribution': get_score_distribution(contacts_df),
        'average_score': round(float(contacts_df['relevance_score'].mean()), 1),
    })

    logger.info(f"Statistics: {stats['total_contacts']} contacts from "
                f"{stats['pages_succeeded']}/{stats['pages_processed']} pages")
    return stats


__all__ = [
    'contacts_to_dataframe',
    'get_page_summary',
    'get_department_breakdown',
    'get_score_distribution',
    'calculate_run_statistics',
]
