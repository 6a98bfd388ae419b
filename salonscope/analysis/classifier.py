"""Status/Risk Classifier: lifecycle status, churn risk, and advice per client.

Consumes an IVKResult only. Recency drives most of the decisions; the
composite score and tier refine them.
"""

from salonscope.analysis.models import (
    ClientStatus, IVKResult, RiskAssessment, RiskLevel, Tier,
)
from salonscope.etl.config import (
    FREQUENCY_ADVICE_MIN_MONTHS, LOST_DAYS, PROBLEM_MAX_SCORE,
    RISK_CRITICAL_MIN_SCORE, RISK_HIGH_DAYS, RISK_MEDIUM_DAYS, VIP_MAX_DAYS,
)

WEAK_COMPONENT_PCT = 50

RECOMMEND_URGENT_RECALL = (
    "Urgent: no visit for more than 60 days. Call or send a personal offer."
)
RECOMMEND_REMINDER = (
    "Remind them about you: more than 30 days since the last visit."
)
RECOMMEND_SUBSCRIPTION = (
    "Offer a regular care programme or a subscription."
)
RECOMMEND_UPSELL = (
    "Tell them about additional services or combined treatments."
)
RECOMMEND_VIP = (
    "VIP client: make sure of a personal approach and priority service."
)
RECOMMEND_NEW = (
    "New client: make an excellent first impression!"
)


def risk_level(ivk: IVKResult) -> RiskLevel:
    """Churn risk from recency, escalated for valuable clients."""
    days = ivk.metrics.days_since_last_visit
    if days is None:
        return RiskLevel.LOW

    if ivk.score > RISK_CRITICAL_MIN_SCORE and days > RISK_HIGH_DAYS:
        return RiskLevel.CRITICAL
    if days > RISK_HIGH_DAYS:
        return RiskLevel.HIGH
    if days > RISK_MEDIUM_DAYS:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def client_status(ivk: IVKResult) -> ClientStatus:
    """Lifecycle status. LOST wins over everything else."""
    days = ivk.metrics.days_since_last_visit

    if days is not None and days > LOST_DAYS:
        return ClientStatus.LOST

    if ivk.tier in (Tier.PLATINUM, Tier.GOLD) and (days is None or days <= VIP_MAX_DAYS):
        return ClientStatus.VIP

    if ivk.score < PROBLEM_MAX_SCORE or (days is not None and days > RISK_HIGH_DAYS):
        return ClientStatus.PROBLEM

    return ClientStatus.REGULAR


def recommendations(ivk: IVKResult) -> list[str]:
    """Ordered advice: recency, frequency, monetary, VIP tier, new client."""
    advice: list[str] = []
    pct = ivk.percentages
    metrics = ivk.metrics
    days = metrics.days_since_last_visit

    if pct.recency < WEAK_COMPONENT_PCT and days is not None:
        if days > RISK_HIGH_DAYS:
            advice.append(RECOMMEND_URGENT_RECALL)
        elif days > RISK_MEDIUM_DAYS:
            advice.append(RECOMMEND_REMINDER)

    if (pct.frequency < WEAK_COMPONENT_PCT
            and metrics.months_as_client is not None
            and metrics.months_as_client > FREQUENCY_ADVICE_MIN_MONTHS):
        advice.append(RECOMMEND_SUBSCRIPTION)

    if pct.monetary < WEAK_COMPONENT_PCT and metrics.total_spent > 0:
        advice.append(RECOMMEND_UPSELL)

    if ivk.tier in (Tier.PLATINUM, Tier.GOLD):
        advice.append(RECOMMEND_VIP)

    if ivk.tier == Tier.NEW:
        advice.append(RECOMMEND_NEW)

    return advice


def assess(ivk: IVKResult) -> RiskAssessment:
    return RiskAssessment(
        status=client_status(ivk),
        risk_level=risk_level(ivk),
        recommendations=tuple(recommendations(ivk)),
    )
