"""IVK (Client Importance Index): RFM-style composite score per client.

Four components, each worth up to 25 points:
    Recency:   days since the last visit (fewer is better)
    Frequency: visits per month of tenure
    Monetary:  total spent
    Loyalty:   months as a client

Each raw metric is mapped to a 0-100 percentage by linear interpolation
over a four-point ladder (poor / medium / good / excellent), then weighted.
The score is the plain sum of the weighted components.

Usage:
    scorer = IVKScorer()
    result = scorer.score_client(client, now)
"""

import logging
import math
from datetime import datetime
from typing import Iterable

from salonscope.analysis.metrics import extract_metrics, round_half_up
from salonscope.analysis.models import (
    ClientRecord, ComponentBreakdown, IVKMetrics, IVKResult, RawMetrics, Tier,
)
from salonscope.etl.config import ScoringConfig, ThresholdLadder

logger = logging.getLogger(__name__)


def _interpolate(value: float, low: float, high: float, start: float, end: float) -> float:
    """Position of value within [low, high] mapped onto [start, end]."""
    return start + (value - low) / (high - low) * (end - start)


def component_percentage(value: float | None, ladder: ThresholdLadder) -> float:
    """Map one raw metric onto 0-100 using the ladder.

    Non-finite, negative, or missing values score 0.
    """
    if value is None or not math.isfinite(value) or value < 0:
        return 0.0

    if ladder.lower_is_better:
        if value <= ladder.excellent:
            return 100.0
        if value <= ladder.good:
            return _interpolate(value, ladder.excellent, ladder.good, 100, 75)
        if value <= ladder.medium:
            return _interpolate(value, ladder.good, ladder.medium, 75, 50)
        if value <= ladder.poor:
            return _interpolate(value, ladder.medium, ladder.poor, 50, 25)
        # Decays past poor, reaching 0 at twice the poor threshold
        over_poor = value - ladder.poor
        return max(0.0, 25 - over_poor / ladder.poor * 25)

    if value >= ladder.excellent:
        return 100.0
    if value >= ladder.good:
        return _interpolate(value, ladder.good, ladder.excellent, 75, 100)
    if value >= ladder.medium:
        return _interpolate(value, ladder.medium, ladder.good, 50, 75)
    if value >= ladder.poor:
        return _interpolate(value, ladder.poor, ladder.medium, 25, 50)
    return value / ladder.poor * 25


def weighted_component(percentage: float, weight: int) -> int:
    """Percentage scaled to the component weight, rounded; NaN counts as 0."""
    points = percentage / 100 * weight
    if not math.isfinite(points):
        return 0
    return round_half_up(points)


def determine_tier(
    score: int, months_as_client: int | None, config: ScoringConfig | None = None
) -> Tier:
    """Band a score into a tier. A client younger than a month is always NEW."""
    config = config or ScoringConfig()
    if months_as_client is not None and months_as_client < config.new_client_months:
        return Tier.NEW
    if score >= config.platinum_score:
        return Tier.PLATINUM
    if score >= config.gold_score:
        return Tier.GOLD
    if score >= config.silver_score:
        return Tier.SILVER
    return Tier.BRONZE


class IVKScorer:
    """Computes IVK results from client records or pre-extracted metrics."""

    def __init__(self, config: ScoringConfig | None = None):
        self._config = config or ScoringConfig()

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def score_client(self, client: ClientRecord, now: datetime) -> IVKResult:
        """Score one client as of `now`."""
        metrics = extract_metrics(client, now, self._config.fallback_tenure_months)
        return self.score_metrics(metrics, avg_check=client.avg_sum or 0.0)

    def score_metrics(self, metrics: RawMetrics, avg_check: float = 0.0) -> IVKResult:
        """Score already-extracted metrics.

        Args:
            metrics: RawMetrics for one client.
            avg_check: Average ticket, carried through to the result.

        Returns:
            IVKResult whose score is exactly the sum of its components.
        """
        cfg = self._config
        raw = {
            "recency": component_percentage(metrics.days_since_last_visit, cfg.recency),
            "frequency": component_percentage(metrics.visits_per_month, cfg.frequency),
            "monetary": component_percentage(metrics.total_spent, cfg.monetary),
            "loyalty": component_percentage(metrics.months_as_client, cfg.loyalty),
        }

        components = ComponentBreakdown(
            **{name: weighted_component(pct, getattr(cfg.weights, name)) for name, pct in raw.items()}
        )
        percentages = ComponentBreakdown(
            **{name: round_half_up(pct) for name, pct in raw.items()}
        )
        score = min(100, max(0, components.total))

        visits_per_month = metrics.visits_per_month
        if visits_per_month is not None:
            visits_per_month = round_half_up(visits_per_month, 2)

        return IVKResult(
            score=score,
            components=components,
            percentages=percentages,
            metrics=IVKMetrics(
                days_since_last_visit=metrics.days_since_last_visit,
                months_as_client=metrics.months_as_client,
                visits_per_month=visits_per_month,
                total_spent=metrics.total_spent,
                avg_check=avg_check or 0.0,
            ),
            tier=determine_tier(score, metrics.months_as_client, cfg),
        )

    def score_clients(self, clients: Iterable[ClientRecord], now: datetime) -> dict[int, IVKResult]:
        """Score every client in a snapshot, keyed by client id."""
        results = {client.id: self.score_client(client, now) for client in clients}
        logger.debug("Scored %d clients", len(results))
        return results


def calculate_ivk(client: ClientRecord, now: datetime, config: ScoringConfig | None = None) -> IVKResult:
    """Convenience wrapper: score a single client with the given (or default) config."""
    return IVKScorer(config).score_client(client, now)
