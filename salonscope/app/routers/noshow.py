"""No-show endpoints: risk prediction for upcoming appointments."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from salonscope.analysis.noshow import NoShowPredictor, build_history, partition_records
from salonscope.analysis.reports import noshow_report
from salonscope.analysis.timeslots import start_of_day
from salonscope.app.dependencies import get_engine_config, get_now
from salonscope.app.schemas import (
    NoShowPatternsOut, NoShowResponse, NoShowSummary, RiskyAppointment, Snapshot,
)
from salonscope.app.snapshot import snapshot_records
from salonscope.etl.config import EngineConfig

router = APIRouter(prefix="/analytics", tags=["No-show"])


@router.post("/noshow-prediction", response_model=NoShowResponse)
def get_noshow_prediction(
    snapshot: Snapshot,
    days_ahead: int | None = Query(None, ge=0, le=90),
    risk_level: str | None = Query(None, pattern="^(LOW|MEDIUM|HIGH|CRITICAL)$"),
    limit: int | None = Query(None, ge=1, le=500),
    now: datetime = Depends(get_now),
    config: EngineConfig = Depends(get_engine_config),
):
    days_ahead = config.days_ahead if days_ahead is None else days_ahead
    limit = limit or config.limit

    # The window starts at midnight so earlier appointments today stay upcoming
    day_start = start_of_day(now)
    past, upcoming = partition_records(snapshot_records(snapshot), day_start, days_ahead)
    table = build_history(past, day_start, config.noshow.default_rate)
    predictions = NoShowPredictor(config.noshow).predict(past, upcoming, day_start, table=table)
    report = noshow_report(predictions, table, days_ahead, risk_level=risk_level, limit=limit)

    patterns = report["patterns"]
    return NoShowResponse(
        upcoming=[
            RiskyAppointment(
                record_id=p.record_id, client_id=p.client_id,
                client_name=p.client_name, client_phone=p.client_phone,
                datetime=p.datetime, date=p.datetime.strftime("%Y-%m-%d"),
                time=p.datetime.strftime("%H:%M"), service_name=p.service_name,
                staff_id=p.staff_id, risk_score=p.risk_score, risk_level=p.risk_level,
                risk_factors=list(p.risk_factors), recommendations=list(p.recommendations),
            )
            for p in report["upcoming"]
        ],
        patterns=NoShowPatternsOut(
            worst_day=patterns.worst_day, worst_day_rate=patterns.worst_day_rate,
            worst_time=patterns.worst_time, worst_time_rate=patterns.worst_time_rate,
            high_risk_clients=patterns.high_risk_clients,
            overall_no_show_rate=patterns.overall_no_show_rate,
        ),
        summary=NoShowSummary(**report["summary"]),
        insights=report["insights"],
    )
