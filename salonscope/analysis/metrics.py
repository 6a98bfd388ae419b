"""Metrics Extractor: raw behavioral metrics for one client.

Recency, tenure, visit frequency and money spent, all relative to an
injected reference instant. Missing fields degrade to documented defaults
instead of raising.
"""

import math
from datetime import datetime

from salonscope.analysis.models import ClientRecord, RawMetrics
from salonscope.etl.config import FALLBACK_TENURE_MONTHS

SECONDS_PER_DAY = 24 * 60 * 60


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 up (round() would go to even). digits=0 returns an int."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5)
    return rounded if digits == 0 else rounded / factor


def days_between(start: datetime, end: datetime) -> int:
    """Whole days between two instants, order-independent."""
    return math.floor(abs((end - start).total_seconds()) / SECONDS_PER_DAY)


def days_since(moment: datetime, now: datetime) -> int:
    """Whole days elapsed from moment to now (negative if moment is ahead)."""
    return math.floor((now - moment).total_seconds() / SECONDS_PER_DAY)


def calendar_months(start: datetime, end: datetime) -> int:
    """Month boundaries crossed between start and end; day of month is ignored."""
    return (end.year - start.year) * 12 + end.month - start.month


def total_spent(client: ClientRecord) -> float:
    spent = client.spent if client.spent is not None else client.sold_amount
    return max(0.0, float(spent or 0))


def extract_metrics(
    client: ClientRecord,
    now: datetime,
    fallback_tenure_months: int = FALLBACK_TENURE_MONTHS,
) -> RawMetrics:
    """Derive RawMetrics for one client.

    Args:
        client: Snapshot client record.
        now: Reference instant every duration is measured against.
        fallback_tenure_months: Tenure assumed when the client has visits
            but no first_visit_date.

    Returns:
        RawMetrics. days_since_last_visit is None when the client has no
        last visit on record; months_as_client and visits_per_month are None
        when tenure cannot be determined.
    """
    days_since_last_visit = None
    if client.last_visit_date is not None:
        days_since_last_visit = days_between(client.last_visit_date, now)

    visit_count = client.visit_count or 0
    months_as_client = None
    if client.first_visit_date is not None:
        months_as_client = max(1, calendar_months(client.first_visit_date, now))
    elif visit_count > 0:
        months_as_client = fallback_tenure_months

    visits_per_month = None
    if months_as_client is not None:
        visits_per_month = visit_count / months_as_client

    return RawMetrics(
        days_since_last_visit=days_since_last_visit,
        months_as_client=months_as_client,
        visits_per_month=visits_per_month,
        total_spent=total_spent(client),
    )
