"""Pydantic request and response models. These define the exact JSON shape
the admin frontend sends and receives. Frontend TypeScript types mirror these."""

from datetime import datetime

from pydantic import BaseModel

from salonscope.analysis.models import ClientStatus, RiskLevel, SegmentPriority, Tier


# ── Snapshot (request body) ───────────────────────────────────

class ServiceIn(BaseModel):
    id: int = 0
    title: str = ""
    cost: float | None = 0


class RecordClientIn(BaseModel):
    id: int
    name: str | None = None
    phone: str | None = None
    email: str | None = None


class ClientIn(BaseModel):
    id: int
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    first_visit_date: datetime | None = None
    last_visit_date: datetime | None = None
    visit_count: int | None = 0
    spent: float | None = None
    sold_amount: float | None = None
    avg_sum: float | None = 0


class RecordIn(BaseModel):
    id: int
    datetime: datetime
    client: RecordClientIn | None = None
    client_id: int | None = None
    staff_id: int | None = 0
    attendance: int | None = 0
    confirmed: int | None = 0
    deleted: bool = False
    services: list[ServiceIn] = []


class Snapshot(BaseModel):
    clients: list[ClientIn] = []
    records: list[RecordIn] = []


# ── Clients / IVK ─────────────────────────────────────────────

class ClientScore(BaseModel):
    id: int
    name: str
    phone: str
    email: str | None = None
    visits_count: int
    total_spent: float
    last_visit_at: datetime | None = None
    score: int
    tier: Tier
    client_status: ClientStatus
    risk_level: RiskLevel
    days_since_last_visit: int | None = None


class PaginatedClientScores(BaseModel):
    items: list[ClientScore]
    total: int
    skip: int
    limit: int


class Components(BaseModel):
    recency: int
    frequency: int
    monetary: int
    loyalty: int


class IVKMetricsOut(BaseModel):
    days_since_last_visit: int | None = None
    months_as_client: int | None = None
    visits_per_month: float | None = None
    total_spent: float
    avg_check: float


class IVKDetails(BaseModel):
    components: Components
    percentages: Components
    metrics: IVKMetricsOut
    tier: Tier
    recommendations: list[str]


class ClientScoreDetail(ClientScore):
    ivk_details: IVKDetails


class TierSummaryRow(BaseModel):
    tier: Tier
    client_count: int
    avg_score: float
    avg_recency: float
    avg_frequency: float
    avg_monetary: float
    avg_loyalty: float


# ── No-show prediction ────────────────────────────────────────

class RiskyAppointment(BaseModel):
    record_id: int
    client_id: int
    client_name: str
    client_phone: str
    datetime: datetime
    date: str
    time: str
    service_name: str
    staff_id: int
    risk_score: int
    risk_level: RiskLevel
    risk_factors: list[str]
    recommendations: list[str]


class NoShowPatternsOut(BaseModel):
    worst_day: str
    worst_day_rate: int
    worst_time: str
    worst_time_rate: int
    high_risk_clients: int
    overall_no_show_rate: float


class NoShowSummary(BaseModel):
    total_upcoming: int
    critical_risk_count: int
    high_risk_count: int
    medium_count: int
    low_count: int
    potential_loss: int
    days_analyzed: int


class NoShowResponse(BaseModel):
    upcoming: list[RiskyAppointment]
    patterns: NoShowPatternsOut
    summary: NoShowSummary
    insights: list[str]


# ── Segments ──────────────────────────────────────────────────

class SegmentClientOut(BaseModel):
    id: int
    name: str
    phone: str
    email: str
    last_visit_date: datetime | None = None
    days_since_visit: int
    visit_count: int
    avg_sum: float
    total_spent: float


class SmartSegment(BaseModel):
    id: str
    name: str
    description: str
    criteria: str
    count: int
    potential_revenue: float
    priority: SegmentPriority
    recommended_action: str
    recommended_channel: str
    message_template: str
    clients: list[SegmentClientOut]


class BroadcastSuggestion(BaseModel):
    segment_id: str
    segment_name: str
    client_count: int
    template: str
    channel: str
    best_send_time: str
    expected_response_rate: int


class SegmentsSummary(BaseModel):
    total_segments: int
    total_clients_in_segments: int
    total_potential_revenue: int
    high_priority_clients: int
    avg_check: int


class SmartSegmentsResponse(BaseModel):
    segments: list[SmartSegment]
    summary: SegmentsSummary
    broadcast_suggestions: list[BroadcastSuggestion]


# ── LTV ───────────────────────────────────────────────────────

class LTVClient(BaseModel):
    id: int
    name: str
    phone: str
    email: str
    current_value: int
    ltv: int
    avg_check: int
    visit_count: int
    visits_per_month: float
    months_as_client: int
    churn_risk: int
    segment: str
    last_visit_date: datetime | None = None
    first_visit_date: datetime | None = None


class LTVSegmentStats(BaseModel):
    count: int
    total_value: int
    revenue_percent: int
    avg_ltv: int
    avg_check: int


class ParetoStats(BaseModel):
    top_20_percent_count: int
    their_revenue: int
    their_revenue_percent: int
    insight: str


class LTVSummary(BaseModel):
    total_current_value: int
    total_ltv: int
    avg_ltv: int
    avg_churn_risk: int
    high_churn_risk_count: int


class LTVResponse(BaseModel):
    clients: list[LTVClient]
    total_clients: int
    segments: dict[str, LTVSegmentStats]
    pareto: ParetoStats
    summary: LTVSummary
