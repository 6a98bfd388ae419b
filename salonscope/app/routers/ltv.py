"""LTV endpoints: projected lifetime value, LTV segments, Pareto view."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from salonscope.analysis.ltv import LTVAnalyzer
from salonscope.analysis.metrics import round_half_up
from salonscope.app.dependencies import get_now
from salonscope.app.schemas import (
    LTVClient, LTVResponse, LTVSegmentStats, LTVSummary, ParetoStats, Snapshot,
)
from salonscope.app.snapshot import snapshot_clients

router = APIRouter(prefix="/analytics", tags=["LTV"])

SORT_KEYS = {
    "ltv": lambda r: r.ltv,
    "current_value": lambda r: r.current_value,
    "churn_risk": lambda r: r.churn_risk,
}


@router.post("/ltv", response_model=LTVResponse)
def get_ltv(
    snapshot: Snapshot,
    segment: str | None = Query(None, pattern="^(diamond|gold|silver|bronze)$"),
    min_visits: int = Query(0, ge=0),
    sort_by: str = Query("ltv", pattern="^(ltv|current_value|churn_risk)$"),
    limit: int = Query(100, ge=1, le=1000),
    now: datetime = Depends(get_now),
):
    analyzer = LTVAnalyzer()
    results = analyzer.analyze(snapshot_clients(snapshot), now, min_visits=min_visits)

    filtered = [r for r in results if segment is None or r.segment == segment]
    filtered.sort(key=SORT_KEYS[sort_by], reverse=True)

    return LTVResponse(
        clients=[
            LTVClient(
                id=r.client.id, name=r.client.name, phone=r.client.phone or "",
                email=r.client.email or "", current_value=round_half_up(r.current_value),
                ltv=r.ltv, avg_check=round_half_up(r.client.avg_sum or 0),
                visit_count=r.client.visit_count or 0, visits_per_month=r.visits_per_month,
                months_as_client=r.months_as_client, churn_risk=r.churn_risk,
                segment=r.segment, last_visit_date=r.client.last_visit_date,
                first_visit_date=r.client.first_visit_date,
            )
            for r in filtered[:limit]
        ],
        total_clients=len(results),
        segments={k: LTVSegmentStats(**v) for k, v in analyzer.segment_stats(results).items()},
        pareto=ParetoStats(**analyzer.pareto(results)),
        summary=LTVSummary(**analyzer.summary(results)),
    )
