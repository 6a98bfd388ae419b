"""Tests for the IVK scorer: component ladders, tiers and composite score."""

import math
from dataclasses import replace
from datetime import datetime

import pytest

from conftest import NOW, days_ago, make_client
from salonscope.analysis.ivk import (
    IVKScorer, calculate_ivk, component_percentage, determine_tier, weighted_component,
)
from salonscope.analysis.models import RawMetrics, Tier
from salonscope.etl.config import ScoringConfig, ThresholdLadder

RECENCY = ScoringConfig().recency
FREQUENCY = ScoringConfig().frequency
MONETARY = ScoringConfig().monetary
LOYALTY = ScoringConfig().loyalty


class TestComponentPercentage:
    @pytest.mark.parametrize("days, expected", [
        (0, 100),
        (14, 100),
        (22, 87.5),
        (30, 75),
        (60, 50),
        (90, 25),
        (135, 12.5),
        (180, 0),
        (500, 0),
    ])
    def test_recency_ladder(self, days, expected):
        assert component_percentage(days, RECENCY) == pytest.approx(expected)

    @pytest.mark.parametrize("visits_per_month, expected", [
        (3.0, 100),
        (2.0, 100),
        (1.5, 87.5),
        (1.0, 75),
        (0.5, 50),
        (0.25, 25),
        (0.125, 12.5),
        (0.0, 0),
    ])
    def test_frequency_ladder(self, visits_per_month, expected):
        assert component_percentage(visits_per_month, FREQUENCY) == pytest.approx(expected)

    @pytest.mark.parametrize("spent, expected", [
        (120000, 100),
        (50000, 75),
        (20000, 50),
        (5000, 25),
        (2500, 12.5),
    ])
    def test_monetary_ladder(self, spent, expected):
        assert component_percentage(spent, MONETARY) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [None, -1, math.nan, math.inf])
    def test_invalid_values_score_zero(self, value):
        assert component_percentage(value, RECENCY) == 0
        assert component_percentage(value, LOYALTY) == 0

    def test_recency_never_increases_with_days(self):
        values = [component_percentage(d, RECENCY) for d in range(0, 400)]
        assert all(a >= b for a, b in zip(values, values[1:]))
        assert all(v >= 0 for v in values)

    def test_monetary_never_decreases_with_spend(self):
        values = [component_percentage(s, MONETARY) for s in range(0, 150000, 500)]
        assert all(a <= b for a, b in zip(values, values[1:]))
        assert all(v <= 100 for v in values)


class TestWeightedComponent:
    def test_rounds_half_up(self):
        assert weighted_component(50, 25) == 13
        assert weighted_component(41.6667, 25) == 10

    def test_nan_is_zero(self):
        assert weighted_component(math.nan, 25) == 0


class TestDetermineTier:
    @pytest.mark.parametrize("score, tier", [
        (100, Tier.PLATINUM),
        (85, Tier.PLATINUM),
        (84, Tier.GOLD),
        (70, Tier.GOLD),
        (69, Tier.SILVER),
        (50, Tier.SILVER),
        (49, Tier.BRONZE),
        (0, Tier.BRONZE),
    ])
    def test_bands(self, score, tier):
        assert determine_tier(score, 12) == tier

    def test_new_client_overrides_score(self):
        assert determine_tier(95, 0) == Tier.NEW

    def test_unknown_tenure_is_not_new(self):
        assert determine_tier(90, None) == Tier.PLATINUM


class TestIVKScorer:
    def test_loyal_client(self, loyal_client):
        result = IVKScorer().score_client(loyal_client, NOW)

        assert result.components.recency == 25
        assert result.components.frequency == 10
        assert result.components.monetary == 25
        assert result.components.loyalty == 25
        assert result.percentages.frequency == 42
        assert result.score == 85
        assert result.tier == Tier.PLATINUM
        assert result.metrics.visits_per_month == 0.42
        assert result.metrics.avg_check == 12000

    def test_empty_client(self):
        result = IVKScorer().score_client(make_client(7), NOW)
        assert result.score == 0
        assert result.tier == Tier.BRONZE
        assert result.metrics.days_since_last_visit is None
        assert result.metrics.total_spent == 0

    def test_score_is_sum_of_components(self):
        scorer = IVKScorer()
        for days in (0, 20, 45, 75, 120, 200):
            for visits in (0, 1, 4, 12, 40):
                client = make_client(
                    first_visit_date=datetime(2025, 3, 1),
                    last_visit_date=days_ago(days),
                    visit_count=visits,
                    spent=visits * 1750,
                )
                result = scorer.score_client(client, NOW)
                assert result.score == result.components.total
                assert 0 <= result.score <= 100

    def test_new_tier_from_metrics(self):
        metrics = RawMetrics(
            days_since_last_visit=3, months_as_client=0,
            visits_per_month=3.0, total_spent=200000,
        )
        result = IVKScorer().score_metrics(metrics)
        assert result.score == 75
        assert result.tier == Tier.NEW

    def test_idempotent(self, loyal_client):
        scorer = IVKScorer()
        assert scorer.score_client(loyal_client, NOW) == scorer.score_client(loyal_client, NOW)

    def test_custom_ladder(self, loyal_client):
        relaxed = replace(
            ScoringConfig(),
            recency=ThresholdLadder(180, 120, 60, 30, lower_is_better=True),
        )
        client = replace(loyal_client, last_visit_date=days_ago(60))

        default = IVKScorer().score_client(client, NOW)
        custom = IVKScorer(relaxed).score_client(client, NOW)
        assert default.percentages.recency == 50
        assert custom.percentages.recency == 75

    def test_score_clients_keyed_by_id(self, loyal_client):
        results = IVKScorer().score_clients([loyal_client, make_client(2)], NOW)
        assert set(results) == {1, 2}
        assert results[1].score == 85

    def test_calculate_ivk_wrapper(self, loyal_client):
        assert calculate_ivk(loyal_client, NOW) == IVKScorer().score_client(loyal_client, NOW)
