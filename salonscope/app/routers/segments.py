"""Segment endpoints: smart outreach segments and broadcast suggestions."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from salonscope.analysis.segments import SmartSegmenter, average_check, summarize_segments
from salonscope.app.dependencies import get_engine_config, get_now
from salonscope.app.schemas import (
    BroadcastSuggestion, SegmentClientOut, SegmentsSummary, SmartSegment,
    SmartSegmentsResponse, Snapshot,
)
from salonscope.app.snapshot import snapshot_clients
from salonscope.etl.config import EngineConfig

router = APIRouter(prefix="/analytics", tags=["Segments"])


@router.post("/smart-segments", response_model=SmartSegmentsResponse)
def get_smart_segments(
    snapshot: Snapshot,
    include_clients: bool = False,
    limit: int | None = Query(None, ge=1, le=1000),
    now: datetime = Depends(get_now),
    config: EngineConfig = Depends(get_engine_config),
):
    clients = snapshot_clients(snapshot)
    segments = SmartSegmenter(config.segmentation).build_segments(
        clients, now, limit=limit or config.limit, include_clients=include_clients,
    )
    summary = summarize_segments(segments, average_check(clients))
    suggestions = summary.pop("broadcast_suggestions")

    return SmartSegmentsResponse(
        segments=[
            SmartSegment(
                id=s.id, name=s.name, description=s.description, criteria=s.criteria,
                count=s.count, potential_revenue=s.potential_revenue, priority=s.priority,
                recommended_action=s.recommended_action,
                recommended_channel=s.recommended_channel,
                message_template=s.message_template,
                clients=[
                    SegmentClientOut(
                        id=c.id, name=c.name, phone=c.phone, email=c.email,
                        last_visit_date=c.last_visit_date, days_since_visit=c.days_since_visit,
                        visit_count=c.visit_count, avg_sum=c.avg_sum, total_spent=c.total_spent,
                    )
                    for c in s.clients
                ],
            )
            for s in segments
        ],
        summary=SegmentsSummary(**summary),
        broadcast_suggestions=[BroadcastSuggestion(**b) for b in suggestions],
    )
