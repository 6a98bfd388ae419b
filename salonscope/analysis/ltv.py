"""LTV Analyzer: projected lifetime value per client.

    LTV = avg_check × visits_per_month × 12 × predicted_years

predicted_years shrinks with a recency-based churn risk. Clients are then
banded by their LTV percentile (diamond / gold / silver / bronze), and a
Pareto view shows how much current revenue the top 20% bring in.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from salonscope.analysis.metrics import days_since, round_half_up, total_spent
from salonscope.analysis.models import ClientRecord
from salonscope.etl.config import (
    LTV_CHURN_STEPS, LTV_HIGH_CHURN_RISK, LTV_MAX_YEARS, LTV_MIN_YEARS,
    LTV_SEGMENT_PERCENTILES, LTV_UNKNOWN_CHURN_RISK, PARETO_SHARE,
)

LTV_SEGMENTS = ("diamond", "gold", "silver", "bronze")


@dataclass(frozen=True)
class ClientLTV:
    client: ClientRecord
    current_value: float
    ltv: int
    visits_per_month: float
    months_as_client: int
    churn_risk: int
    segment: str = "bronze"
    percentile: float = 0.0


def churn_risk(client: ClientRecord, now: datetime) -> int:
    """0-90 churn risk from days since the last visit."""
    if client.last_visit_date is None:
        return LTV_UNKNOWN_CHURN_RISK
    days = days_since(client.last_visit_date, now)
    for threshold, risk in LTV_CHURN_STEPS:
        if days > threshold:
            return risk
    return 0


def ltv_segment(percentile: float) -> str:
    if percentile >= LTV_SEGMENT_PERCENTILES["diamond"]:
        return "diamond"
    if percentile >= LTV_SEGMENT_PERCENTILES["gold"]:
        return "gold"
    if percentile >= LTV_SEGMENT_PERCENTILES["silver"]:
        return "silver"
    return "bronze"


def calculate_ltv(client: ClientRecord, now: datetime) -> ClientLTV:
    """LTV for one client, before percentile banding."""
    months = 1
    if client.first_visit_date is not None:
        months = max(1, math.floor(days_since(client.first_visit_date, now) / 30))

    visits_per_month = (client.visit_count or 0) / months
    risk = churn_risk(client, now)
    predicted_years = max(LTV_MIN_YEARS, (100 - risk) / 100 * LTV_MAX_YEARS)
    ltv = (client.avg_sum or 0) * visits_per_month * 12 * predicted_years

    return ClientLTV(
        client=client,
        current_value=total_spent(client),
        ltv=round_half_up(ltv),
        visits_per_month=round_half_up(visits_per_month, 2),
        months_as_client=months,
        churn_risk=risk,
    )


class LTVAnalyzer:
    """LTV for a whole snapshot, with percentile segments and Pareto stats."""

    def analyze(self, clients: Sequence[ClientRecord], now: datetime,
                min_visits: int = 0) -> list[ClientLTV]:
        """Compute LTV and segment for every client with at least min_visits.

        Returns:
            ClientLTV list in snapshot order.
        """
        base = [
            calculate_ltv(c, now) for c in clients
            if (c.visit_count or 0) >= min_visits
        ]
        ranked = sorted(range(len(base)), key=lambda i: base[i].ltv, reverse=True)
        rank_of = {index: rank for rank, index in enumerate(ranked)}

        results = []
        for i, item in enumerate(base):
            percentile = 100 - rank_of[i] / len(base) * 100
            results.append(ClientLTV(
                client=item.client,
                current_value=item.current_value,
                ltv=item.ltv,
                visits_per_month=item.visits_per_month,
                months_as_client=item.months_as_client,
                churn_risk=item.churn_risk,
                segment=ltv_segment(percentile),
                percentile=percentile,
            ))
        return results

    def segment_stats(self, results: Sequence[ClientLTV]) -> dict[str, dict]:
        total_value = sum(r.current_value for r in results)
        stats = {}
        for segment in LTV_SEGMENTS:
            members = [r for r in results if r.segment == segment]
            value = sum(r.current_value for r in members)
            n = len(members)
            stats[segment] = {
                "count": n,
                "total_value": round_half_up(value),
                "revenue_percent": round_half_up(value / total_value * 100) if total_value > 0 else 0,
                "avg_ltv": round_half_up(sum(r.ltv for r in members) / n) if n else 0,
                "avg_check": round_half_up(sum(r.client.avg_sum or 0 for r in members) / n) if n else 0,
            }
        return stats

    def pareto(self, results: Sequence[ClientLTV]) -> dict:
        """Share of current revenue held by the top 20% by LTV."""
        total_value = sum(r.current_value for r in results)
        top_count = math.ceil(len(results) * PARETO_SHARE)
        top = sorted(results, key=lambda r: r.ltv, reverse=True)[:top_count]
        top_revenue = sum(r.current_value for r in top)
        top_percent = round_half_up(top_revenue / total_value * 100) if total_value > 0 else 0
        return {
            "top_20_percent_count": top_count,
            "their_revenue": round_half_up(top_revenue),
            "their_revenue_percent": top_percent,
            "insight": f"{top_count} clients (20%) bring {top_percent}% of revenue",
        }

    def summary(self, results: Sequence[ClientLTV]) -> dict:
        n = len(results)
        total_ltv = sum(r.ltv for r in results)
        return {
            "total_current_value": round_half_up(sum(r.current_value for r in results)),
            "total_ltv": round_half_up(total_ltv),
            "avg_ltv": round_half_up(total_ltv / n) if n else 0,
            "avg_churn_risk": round_half_up(sum(r.churn_risk for r in results) / n) if n else 0,
            "high_churn_risk_count": sum(1 for r in results if r.churn_risk >= LTV_HIGH_CHURN_RISK),
        }
