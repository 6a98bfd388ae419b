"""No-show Prediction: risk score and explanation per upcoming appointment.

Two steps per run:
1. build_history() aggregates past appointments into one HistoricalRateTable
   (per client, per weekday, per time slot, plus the global rate).
2. NoShowPredictor scores each upcoming appointment against that shared
   table. Factors are additive and the total is capped.

The predictor only scores and explains. Filtering by level and paging are
left to the caller (see reports.noshow_report).

Usage:
    past, upcoming = partition_records(records, now, days_ahead=7)
    predictions = NoShowPredictor().predict(past, upcoming, now)
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable

from salonscope.analysis.metrics import round_half_up
from salonscope.analysis.models import (
    AppointmentRecord, ClientId, HistoricalRateTable, NoShowPatterns,
    NoShowPrediction, RateCounter, RiskLevel,
)
from salonscope.analysis.timeslots import (
    day_name, day_of_week, slot_label, time_slot,
)
from salonscope.etl.config import (
    DEFAULT_DAYS_AHEAD, DEFAULT_NO_SHOW_RATE, HIGH_RISK_CLIENT_RATE, NoShowConfig,
)

logger = logging.getLogger(__name__)


def partition_records(
    records: Iterable[AppointmentRecord],
    now: datetime,
    days_ahead: int = DEFAULT_DAYS_AHEAD,
) -> tuple[list[AppointmentRecord], list[AppointmentRecord]]:
    """Split a snapshot into past history and the upcoming window.

    Returns:
        (past, upcoming). Past: not deleted, before now. Upcoming: not
        deleted, not already marked as a no-show, within
        [now, now + days_ahead].
    """
    horizon = now + timedelta(days=days_ahead)
    past: list[AppointmentRecord] = []
    upcoming: list[AppointmentRecord] = []
    for record in records:
        if record.deleted:
            continue
        if record.datetime < now:
            past.append(record)
        elif record.datetime <= horizon and not record.is_no_show:
            upcoming.append(record)
    return past, upcoming


def build_history(
    past: Iterable[AppointmentRecord],
    now: datetime,
    default_rate: float = DEFAULT_NO_SHOW_RATE,
) -> HistoricalRateTable:
    """Aggregate past appointments into no-show rate tables.

    Deleted records and anything at or after `now` are ignored. Records with
    no client (id 0) still count toward the weekday and slot tables.
    """
    table = HistoricalRateTable()
    for record in past:
        if record.deleted or record.datetime >= now:
            continue
        no_show = record.is_no_show

        if record.client_id:
            table.by_client.setdefault(ClientId(record.client_id), RateCounter()).add(no_show)
        table.by_day.setdefault(day_of_week(record.datetime), RateCounter()).add(no_show)
        table.by_slot.setdefault(time_slot(record.datetime), RateCounter()).add(no_show)

        table.total += 1
        if no_show:
            table.no_shows += 1

    table.average_rate = (
        table.no_shows / table.total * 100 if table.total > 0 else default_rate
    )
    logger.debug(
        "History: %d past appointments, %d no-shows, %d clients, avg rate %.1f%%",
        table.total, table.no_shows, len(table.by_client), table.average_rate,
    )
    return table


def find_patterns(table: HistoricalRateTable) -> NoShowPatterns:
    """Worst weekday, worst slot, and repeat offenders in the history."""
    worst_day, worst_day_rate = 0, 0.0
    for day, counter in table.by_day.items():
        if counter.total > 0 and counter.rate > worst_day_rate:
            worst_day, worst_day_rate = day, counter.rate

    worst_slot, worst_slot_rate = 0, 0.0
    for slot, counter in table.by_slot.items():
        if counter.total > 0 and counter.rate > worst_slot_rate:
            worst_slot, worst_slot_rate = slot, counter.rate

    high_risk_clients = sum(
        1 for counter in table.by_client.values()
        if counter.total > 0 and counter.no_shows / counter.total > HIGH_RISK_CLIENT_RATE
    )

    return NoShowPatterns(
        worst_day=day_name(worst_day),
        worst_day_rate=round_half_up(worst_day_rate),
        worst_time=slot_label(worst_slot),
        worst_time_rate=round_half_up(worst_slot_rate),
        high_risk_clients=high_risk_clients,
        overall_no_show_rate=round_half_up(table.average_rate, 1),
    )


class NoShowPredictor:
    """Scores upcoming appointments against a shared HistoricalRateTable."""

    def __init__(self, config: NoShowConfig | None = None):
        self._config = config or NoShowConfig()

    def predict(
        self,
        past: Iterable[AppointmentRecord],
        upcoming: Iterable[AppointmentRecord],
        now: datetime,
        table: HistoricalRateTable | None = None,
    ) -> list[NoShowPrediction]:
        """Build the history once, score every upcoming appointment.

        Args:
            past: Past appointments for the history table.
            upcoming: Appointments to score.
            now: Reference instant.
            table: Prebuilt history; when given, `past` is not re-read.

        Returns:
            Predictions sorted by risk_score, highest first.
        """
        if table is None:
            table = build_history(past, now, self._config.default_rate)
        predictions = [
            self.score_appointment(record, table)
            for record in upcoming
            if not record.deleted and not record.is_no_show
        ]
        predictions.sort(key=lambda p: p.risk_score, reverse=True)
        logger.info("Scored %d upcoming appointments", len(predictions))
        return predictions

    def score_appointment(
        self, record: AppointmentRecord, table: HistoricalRateTable
    ) -> NoShowPrediction:
        cfg = self._config
        factors: list[str] = []
        score = 0

        # 1. Client history
        history = table.by_client.get(ClientId(record.client_id)) if record.client_id else None
        if history is not None and history.total > 0:
            rate = history.rate
            if rate > cfg.client_rate_high:
                score += cfg.client_high_points
                factors.append(
                    f"Client missed {history.no_shows} of {history.total} visits "
                    f"({round_half_up(rate)}%)"
                )
            elif rate > cfg.client_rate_medium:
                score += cfg.client_medium_points
                factors.append(f"Client no-show history: {round_half_up(rate)}%")
            elif rate > 0:
                score += cfg.client_low_points
        else:
            score += cfg.new_client_points
            factors.append("New client, no visit history")

        # 2. Weekday
        day = day_of_week(record.datetime)
        points, rate, elevated = self._pattern_points(table.by_day.get(day), table.average_rate)
        score += points
        if elevated:
            factors.append(f"{day_name(day)}: high no-show rate ({round_half_up(rate)}%)")

        # 3. Time slot
        slot = time_slot(record.datetime)
        points, rate, elevated = self._pattern_points(table.by_slot.get(slot), table.average_rate)
        score += points
        if elevated:
            factors.append(
                f"Time slot {slot_label(slot)}: high no-show rate ({round_half_up(rate)}%)"
            )

        # 4. Confirmation
        if record.confirmed != 1:
            score += cfg.unconfirmed_points
            factors.append("Appointment is not confirmed")

        score = min(cfg.max_score, score)
        level = self.risk_level(score)

        return NoShowPrediction(
            record_id=record.id,
            client_id=record.client_id,
            client_name=record.client_name or "Unknown client",
            client_phone=record.client_phone or "",
            datetime=record.datetime,
            service_name=record.service_name,
            staff_id=record.staff_id,
            expected_revenue=record.total_cost,
            risk_score=score,
            risk_level=level,
            risk_factors=tuple(factors) if factors else ("Low risk",),
            recommendations=tuple(cfg.recommendations.get(level.value, ())),
        )

    def risk_level(self, score: int) -> RiskLevel:
        cfg = self._config
        if score >= cfg.critical_score:
            return RiskLevel.CRITICAL
        if score >= cfg.high_score:
            return RiskLevel.HIGH
        if score >= cfg.medium_score:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def _pattern_points(self, counter: RateCounter | None, average_rate: float) -> tuple[int, float, bool]:
        """Points for a weekday/slot bucket compared with the global rate.

        The flag is set when the bucket is well above average and earns a
        risk factor line.
        """
        if counter is None or counter.total == 0:
            return 0, 0.0, False
        rate = counter.rate
        if rate > average_rate * self._config.pattern_multiplier:
            return self._config.pattern_high_points, rate, True
        if rate > average_rate:
            return self._config.pattern_low_points, rate, False
        return 0, rate, False
