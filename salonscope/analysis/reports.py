"""Reports: caller-side views over engine output.

The engines score and explain; this module filters, pages and summarizes
their results for the API and the CLI. Nothing here feeds back into scoring.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

import pandas as pd

from salonscope.analysis.classifier import assess
from salonscope.analysis.ivk import IVKScorer
from salonscope.analysis.metrics import round_half_up
from salonscope.analysis.models import (
    ClientRecord, HistoricalRateTable, IVKResult, NoShowPrediction,
    RiskAssessment, RiskLevel, Tier,
)
from salonscope.analysis.noshow import find_patterns
from salonscope.etl.config import DEFAULT_DAYS_AHEAD, DEFAULT_LIMIT

TIER_ORDER = [t.value for t in (Tier.PLATINUM, Tier.GOLD, Tier.SILVER, Tier.BRONZE, Tier.NEW)]


@dataclass(frozen=True)
class ScoredClient:
    client: ClientRecord
    ivk: IVKResult
    assessment: RiskAssessment


@dataclass(frozen=True)
class ClientListing:
    items: list[ScoredClient]
    total: int
    skip: int
    limit: int


def score_snapshot(
    clients: Sequence[ClientRecord], now: datetime, scorer: IVKScorer | None = None
) -> list[ScoredClient]:
    scorer = scorer or IVKScorer()
    scored = []
    for client in clients:
        ivk = scorer.score_client(client, now)
        scored.append(ScoredClient(client, ivk, assess(ivk)))
    return scored


def client_listing(
    scored: Sequence[ScoredClient],
    search: str | None = None,
    client_status: str | None = None,
    risk_level: str | None = None,
    min_score: int | None = None,
    min_visits: int | None = None,
    days_inactive: int | None = None,
    skip: int = 0,
    limit: int = 20,
) -> ClientListing:
    """Filter scored clients, sort by score (best first), then page.

    client_status "ALL" disables the status filter.
    """
    items = list(scored)

    if search:
        needle = search.lower()
        items = [
            s for s in items
            if needle in (s.client.name or "").lower()
            or needle in (s.client.phone or "")
            or needle in (s.client.email or "").lower()
        ]
    if client_status and client_status != "ALL":
        items = [s for s in items if s.assessment.status.value == client_status]
    if risk_level:
        items = [s for s in items if s.assessment.risk_level.value == risk_level]
    if min_score is not None:
        items = [s for s in items if s.ivk.score >= min_score]
    if min_visits is not None:
        items = [s for s in items if (s.client.visit_count or 0) >= min_visits]
    if days_inactive is not None:
        items = [
            s for s in items
            if s.ivk.metrics.days_since_last_visit is not None
            and s.ivk.metrics.days_since_last_visit >= days_inactive
        ]

    items.sort(key=lambda s: s.ivk.score, reverse=True)
    return ClientListing(items=items[skip:skip + limit], total=len(items), skip=skip, limit=limit)


def tier_summary(results: Sequence[IVKResult]) -> pd.DataFrame:
    """Aggregated stats per tier.

    Returns:
        DataFrame with columns: tier, client_count, avg_score, avg_recency,
        avg_frequency, avg_monetary, avg_loyalty. Empty tiers are omitted.
    """
    columns = ["tier", "client_count", "avg_score", "avg_recency",
               "avg_frequency", "avg_monetary", "avg_loyalty"]
    if not results:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([
        {
            "tier": r.tier.value,
            "score": r.score,
            "recency": r.components.recency,
            "frequency": r.components.frequency,
            "monetary": r.components.monetary,
            "loyalty": r.components.loyalty,
        }
        for r in results
    ])

    summary = df.groupby("tier").agg(
        client_count=("score", "count"),
        avg_score=("score", "mean"),
        avg_recency=("recency", "mean"),
        avg_frequency=("frequency", "mean"),
        avg_monetary=("monetary", "mean"),
        avg_loyalty=("loyalty", "mean"),
    ).round(2)

    summary = summary.reindex([t for t in TIER_ORDER if t in summary.index])
    return summary.reset_index()[columns]


def noshow_report(
    predictions: Sequence[NoShowPrediction],
    table: HistoricalRateTable,
    days_ahead: int = DEFAULT_DAYS_AHEAD,
    risk_level: str | None = None,
    limit: int = DEFAULT_LIMIT,
) -> dict:
    """Filter and cap predictions, then add summary counts, patterns, insights.

    Counts in the summary cover every prediction; potential loss covers the
    HIGH/CRITICAL predictions that survive the level filter.
    """
    filtered = list(predictions)
    if risk_level:
        filtered = [p for p in filtered if p.risk_level.value == risk_level]
    filtered.sort(key=lambda p: p.risk_score, reverse=True)

    counts = {level: 0 for level in RiskLevel}
    for p in predictions:
        counts[p.risk_level] += 1

    potential_loss = sum(
        p.expected_revenue for p in filtered
        if p.risk_level in (RiskLevel.HIGH, RiskLevel.CRITICAL)
    )

    patterns = find_patterns(table)
    critical = counts[RiskLevel.CRITICAL]
    high = counts[RiskLevel.HIGH]

    insights = []
    if critical > 0:
        insights.append(f"{critical} appointments with critical no-show risk")
    if high > 3:
        insights.append(f"{high} appointments need a confirmation call")
    worst_day_rate = max(
        (counter.rate for counter in table.by_day.values() if counter.total > 0), default=0.0
    )
    if worst_day_rate > table.average_rate * 1.5:
        insights.append(
            f"{patterns.worst_day} is the riskiest day ({patterns.worst_day_rate}% no-shows)"
        )
    if patterns.high_risk_clients > 5:
        insights.append(f"{patterns.high_risk_clients} clients with a no-show history")

    return {
        "upcoming": filtered[:limit],
        "patterns": patterns,
        "summary": {
            "total_upcoming": len(predictions),
            "critical_risk_count": critical,
            "high_risk_count": high,
            "medium_count": counts[RiskLevel.MEDIUM],
            "low_count": counts[RiskLevel.LOW],
            "potential_loss": round_half_up(potential_loss),
            "days_analyzed": days_ahead,
        },
        "insights": insights,
    }
