"""Tests for no-show history aggregation and appointment risk scoring."""

from datetime import datetime, timedelta

import pytest

from conftest import NOW, make_record
from salonscope.analysis.models import RiskLevel, ServiceLine
from salonscope.analysis.noshow import (
    NoShowPredictor, build_history, find_patterns, partition_records,
)
from salonscope.etl.config import ATTENDANCE_ATTENDED, ATTENDANCE_NO_SHOW, NoShowConfig

NEXT_MONDAY_MORNING = datetime(2026, 10, 26, 10, 30)


def weekly(start: datetime, count: int, client_id: int, no_shows: int = 0, first_id: int = 1):
    """`count` weekly past appointments at the same time, the first `no_shows` missed."""
    return [
        make_record(
            first_id + i,
            start - timedelta(weeks=i),
            client_id=client_id,
            attendance=ATTENDANCE_NO_SHOW if i < no_shows else ATTENDANCE_ATTENDED,
        )
        for i in range(count)
    ]


@pytest.fixture
def risky_history():
    """Client 7 missed 2 of 4 Monday 10:00 visits; client 8 never missed a Tuesday 15:00."""
    return (
        weekly(datetime(2026, 10, 12, 10, 0), 4, client_id=7, no_shows=2, first_id=1)
        + weekly(datetime(2026, 10, 13, 15, 0), 16, client_id=8, first_id=100)
    )


class TestPartition:
    def test_splits_past_and_window(self):
        records = [
            make_record(1, NOW - timedelta(days=3)),
            make_record(2, NOW + timedelta(days=1)),
            make_record(3, NOW + timedelta(days=7)),
            make_record(4, NOW + timedelta(days=8)),
            make_record(5, NOW + timedelta(days=2), deleted=True),
            make_record(6, NOW - timedelta(days=1), deleted=True),
            make_record(7, NOW + timedelta(hours=2), attendance=ATTENDANCE_NO_SHOW),
        ]
        past, upcoming = partition_records(records, NOW, days_ahead=7)
        assert [r.id for r in past] == [1]
        assert [r.id for r in upcoming] == [2, 3]


class TestBuildHistory:
    def test_empty_history_uses_default_rate(self):
        table = build_history([], NOW)
        assert table.total == 0
        assert table.average_rate == 5.0

    def test_counts_and_rates(self, risky_history):
        table = build_history(risky_history, NOW)
        assert table.total == 20
        assert table.no_shows == 2
        assert table.average_rate == pytest.approx(10.0)
        assert table.by_client[7].rate == pytest.approx(50.0)
        assert table.by_day[0].total == 4
        assert table.by_slot[2].total == 16

    def test_skips_deleted_future_and_anonymous_client(self):
        records = [
            make_record(1, NOW - timedelta(days=2), client_id=0, attendance=ATTENDANCE_NO_SHOW),
            make_record(2, NOW - timedelta(days=2), client_id=3, deleted=True),
            make_record(3, NOW + timedelta(days=1), client_id=3),
        ]
        table = build_history(records, NOW)
        assert table.total == 1
        assert table.by_client == {}
        assert table.average_rate == 100.0


class TestScoring:
    def test_new_unconfirmed_client_without_history(self):
        predictor = NoShowPredictor()
        record = make_record(50, NOW + timedelta(days=1), client_id=42, confirmed=0)

        [prediction] = predictor.predict([], [record], NOW)

        assert prediction.risk_score == 25
        assert prediction.risk_level == RiskLevel.MEDIUM
        assert prediction.risk_factors == (
            "New client, no visit history",
            "Appointment is not confirmed",
        )
        assert prediction.recommendations == ("Send a reminder the day before",)

    def test_everything_against_the_client(self, risky_history):
        record = make_record(
            60, NEXT_MONDAY_MORNING, client_id=7, confirmed=0,
            services=(ServiceLine(1, "Colouring", 4000), ServiceLine(2, "Styling", 1500)),
        )
        [prediction] = NoShowPredictor().predict(risky_history, [record], NOW)

        assert prediction.risk_score == 100
        assert prediction.risk_level == RiskLevel.CRITICAL
        assert prediction.risk_factors == (
            "Client missed 2 of 4 visits (50%)",
            "Monday: high no-show rate (50%)",
            "Time slot 09:00-11:00: high no-show rate (50%)",
            "Appointment is not confirmed",
        )
        assert prediction.expected_revenue == 5500
        assert prediction.service_name == "Colouring, Styling"
        assert prediction.recommendations[0] == "Require prepayment"

    def test_score_is_capped(self, risky_history):
        predictor = NoShowPredictor(NoShowConfig(unconfirmed_points=50))
        record = make_record(60, NEXT_MONDAY_MORNING, client_id=7, confirmed=0)
        [prediction] = predictor.predict(risky_history, [record], NOW)
        assert prediction.risk_score == 100

    def test_patterns_at_average_add_nothing(self):
        history = [
            make_record(1, datetime(2026, 10, 12, 10, 0), client_id=1,
                        attendance=ATTENDANCE_NO_SHOW),
            make_record(2, datetime(2026, 10, 5, 10, 0), client_id=1),
        ]
        record = make_record(9, NEXT_MONDAY_MORNING, client_id=2, confirmed=0)
        [prediction] = NoShowPredictor().predict(history, [record], NOW)
        assert prediction.risk_score == 25

    def test_low_client_rate_adds_points_silently(self):
        history = weekly(datetime(2026, 10, 12, 10, 0), 10, client_id=5, no_shows=1)
        record = make_record(99, NEXT_MONDAY_MORNING, client_id=5, confirmed=1)
        [prediction] = NoShowPredictor().predict(history, [record], NOW)

        assert prediction.risk_score == 10
        assert prediction.risk_level == RiskLevel.LOW
        assert prediction.risk_factors == ("Low risk",)
        assert prediction.recommendations == ()

    def test_medium_client_rate(self):
        history = weekly(datetime(2026, 10, 12, 10, 0), 5, client_id=5, no_shows=1)
        record = make_record(99, NEXT_MONDAY_MORNING, client_id=5, confirmed=1)
        [prediction] = NoShowPredictor().predict(history, [record], NOW)

        assert prediction.risk_score == 25
        assert prediction.risk_factors == ("Client no-show history: 20%",)

    def test_slightly_elevated_day_adds_points_without_factor(self):
        # Mondays 12% against a 10% average, every visit in the same slot
        history = (
            weekly(datetime(2026, 10, 12, 10, 0), 25, client_id=0, no_shows=3, first_id=1)
            + weekly(datetime(2026, 10, 13, 10, 0), 25, client_id=0, no_shows=2, first_id=100)
        )
        record = make_record(200, NEXT_MONDAY_MORNING, client_id=5, confirmed=1)
        [prediction] = NoShowPredictor().predict(history, [record], NOW)

        assert prediction.risk_score == 15
        assert prediction.risk_factors == ("New client, no visit history",)

    def test_sorted_by_risk(self, risky_history):
        upcoming = [
            make_record(61, NOW + timedelta(days=1), client_id=8, confirmed=1),
            make_record(62, NEXT_MONDAY_MORNING, client_id=7, confirmed=0),
            make_record(63, NOW + timedelta(days=2), client_id=99, confirmed=0),
        ]
        predictions = NoShowPredictor().predict(risky_history, upcoming, NOW)
        scores = [p.risk_score for p in predictions]
        assert scores == sorted(scores, reverse=True)
        assert predictions[0].record_id == 62

    def test_shared_table_is_reused(self, risky_history):
        table = build_history(risky_history, NOW)
        record = make_record(62, NEXT_MONDAY_MORNING, client_id=7, confirmed=0)
        [prediction] = NoShowPredictor().predict([], [record], NOW, table=table)
        assert prediction.risk_score == 100

    @pytest.mark.parametrize("score, level", [
        (0, RiskLevel.LOW),
        (24, RiskLevel.LOW),
        (25, RiskLevel.MEDIUM),
        (50, RiskLevel.HIGH),
        (74, RiskLevel.HIGH),
        (75, RiskLevel.CRITICAL),
    ])
    def test_risk_level_bands(self, score, level):
        assert NoShowPredictor().risk_level(score) == level


class TestPatterns:
    def test_worst_buckets(self, risky_history):
        patterns = find_patterns(build_history(risky_history, NOW))
        assert patterns.worst_day == "Monday"
        assert patterns.worst_day_rate == 50
        assert patterns.worst_time == "09:00-11:00"
        assert patterns.worst_time_rate == 50
        assert patterns.high_risk_clients == 1
        assert patterns.overall_no_show_rate == 10.0

    def test_empty_history(self):
        patterns = find_patterns(build_history([], NOW))
        assert patterns.worst_day == "Monday"
        assert patterns.worst_day_rate == 0
        assert patterns.high_risk_clients == 0
        assert patterns.overall_no_show_rate == 5.0
