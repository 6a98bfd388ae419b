"""Client endpoints: IVK scores, status and churn risk per client."""

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from salonscope.analysis.ivk import IVKScorer
from salonscope.analysis.metrics import total_spent
from salonscope.analysis.reports import ScoredClient, client_listing, score_snapshot, tier_summary
from salonscope.app.dependencies import get_engine_config, get_now
from salonscope.app.schemas import (
    ClientScore, ClientScoreDetail, Components, IVKDetails, IVKMetricsOut,
    PaginatedClientScores, Snapshot, TierSummaryRow,
)
from salonscope.app.snapshot import snapshot_clients
from salonscope.etl.config import EngineConfig

router = APIRouter(prefix="/clients", tags=["Clients"])


def _client_score(s: ScoredClient) -> dict:
    c = s.client
    return dict(
        id=c.id, name=c.name or "Unnamed", phone=c.phone or "", email=c.email or None,
        visits_count=c.visit_count or 0, total_spent=total_spent(c),
        last_visit_at=c.last_visit_date, score=s.ivk.score, tier=s.ivk.tier,
        client_status=s.assessment.status, risk_level=s.assessment.risk_level,
        days_since_last_visit=s.ivk.metrics.days_since_last_visit,
    )


@router.post("/scores", response_model=PaginatedClientScores)
def get_client_scores(
    snapshot: Snapshot,
    search: str | None = None,
    client_status: str | None = Query(None, pattern="^(ALL|VIP|REGULAR|PROBLEM|LOST)$"),
    risk_level: str | None = Query(None, pattern="^(LOW|MEDIUM|HIGH|CRITICAL)$"),
    min_score: int | None = Query(None, ge=0, le=100),
    min_visits: int | None = Query(None, ge=0),
    days_inactive: int | None = Query(None, ge=0),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=200),
    now: datetime = Depends(get_now),
    config: EngineConfig = Depends(get_engine_config),
):
    scored = score_snapshot(snapshot_clients(snapshot), now, IVKScorer(config.scoring))
    listing = client_listing(
        scored, search=search, client_status=client_status, risk_level=risk_level,
        min_score=min_score, min_visits=min_visits, days_inactive=days_inactive,
        skip=skip, limit=limit,
    )
    return PaginatedClientScores(
        items=[ClientScore(**_client_score(s)) for s in listing.items],
        total=listing.total, skip=listing.skip, limit=listing.limit,
    )


@router.post("/tiers", response_model=list[TierSummaryRow])
def get_tier_summary(
    snapshot: Snapshot,
    now: datetime = Depends(get_now),
    config: EngineConfig = Depends(get_engine_config),
):
    scorer = IVKScorer(config.scoring)
    df = tier_summary([scorer.score_client(c, now) for c in snapshot_clients(snapshot)])
    return [
        TierSummaryRow(
            tier=row["tier"], client_count=int(row["client_count"]),
            avg_score=float(row["avg_score"]), avg_recency=float(row["avg_recency"]),
            avg_frequency=float(row["avg_frequency"]), avg_monetary=float(row["avg_monetary"]),
            avg_loyalty=float(row["avg_loyalty"]),
        )
        for _, row in df.iterrows()
    ]


@router.post("/{client_id}/score", response_model=ClientScoreDetail)
def get_client_score(
    client_id: int,
    snapshot: Snapshot,
    now: datetime = Depends(get_now),
    config: EngineConfig = Depends(get_engine_config),
):
    clients = [c for c in snapshot_clients(snapshot) if c.id == client_id]
    if not clients:
        raise HTTPException(status_code=404, detail=f"Client {client_id} not found in snapshot")

    s = score_snapshot(clients, now, IVKScorer(config.scoring))[0]
    ivk = s.ivk
    return ClientScoreDetail(
        **_client_score(s),
        ivk_details=IVKDetails(
            components=Components(**asdict(ivk.components)),
            percentages=Components(**asdict(ivk.percentages)),
            metrics=IVKMetricsOut(**asdict(ivk.metrics)),
            tier=ivk.tier,
            recommendations=list(s.assessment.recommendations),
        ),
    )
