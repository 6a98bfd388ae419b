"""Value objects shared by the scoring engines.

Inputs (ClientRecord, AppointmentRecord) come from the cleaned CRM snapshot
and are never mutated. Everything else is derived per call and discarded.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NewType

from salonscope.etl.config import ATTENDANCE_NO_SHOW

ClientId = NewType("ClientId", int)
DayOfWeek = NewType("DayOfWeek", int)
TimeSlot = NewType("TimeSlot", int)


class Tier(str, Enum):
    NEW = "NEW"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"


class ClientStatus(str, Enum):
    VIP = "VIP"
    REGULAR = "REGULAR"
    PROBLEM = "PROBLEM"
    LOST = "LOST"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class SegmentPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# ── Snapshot inputs ────────────────────────────────────────────

@dataclass(frozen=True)
class ClientRecord:
    id: int
    name: str = ""
    phone: str = ""
    email: str = ""
    first_visit_date: datetime | None = None
    last_visit_date: datetime | None = None
    visit_count: int = 0
    spent: float | None = None
    sold_amount: float | None = None
    avg_sum: float = 0.0


@dataclass(frozen=True)
class ServiceLine:
    id: int = 0
    title: str = ""
    cost: float = 0.0


@dataclass(frozen=True)
class AppointmentRecord:
    id: int
    datetime: datetime
    client_id: int = 0
    client_name: str = ""
    client_phone: str = ""
    attendance: int = 0
    confirmed: int = 0
    deleted: bool = False
    staff_id: int = 0
    services: tuple[ServiceLine, ...] = ()

    @property
    def is_no_show(self) -> bool:
        return self.attendance == ATTENDANCE_NO_SHOW

    @property
    def total_cost(self) -> float:
        return sum(s.cost or 0 for s in self.services)

    @property
    def service_name(self) -> str:
        titles = [s.title for s in self.services if s.title]
        return ", ".join(titles) if titles else "Service"


# ── IVK ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RawMetrics:
    days_since_last_visit: int | None
    months_as_client: int | None
    visits_per_month: float | None
    total_spent: float


@dataclass(frozen=True)
class ComponentBreakdown:
    recency: int
    frequency: int
    monetary: int
    loyalty: int

    @property
    def total(self) -> int:
        return self.recency + self.frequency + self.monetary + self.loyalty


@dataclass(frozen=True)
class IVKMetrics:
    days_since_last_visit: int | None
    months_as_client: int | None
    visits_per_month: float | None
    total_spent: float
    avg_check: float


@dataclass(frozen=True)
class IVKResult:
    score: int
    components: ComponentBreakdown
    percentages: ComponentBreakdown
    metrics: IVKMetrics
    tier: Tier


@dataclass(frozen=True)
class RiskAssessment:
    status: ClientStatus
    risk_level: RiskLevel
    recommendations: tuple[str, ...] = ()


# ── No-show ────────────────────────────────────────────────────

@dataclass
class RateCounter:
    """Appointments seen and no-shows among them."""
    total: int = 0
    no_shows: int = 0

    def add(self, is_no_show: bool) -> None:
        self.total += 1
        if is_no_show:
            self.no_shows += 1

    @property
    def rate(self) -> float:
        """No-show rate in percent (0 when empty)."""
        return self.no_shows / self.total * 100 if self.total else 0.0


@dataclass
class HistoricalRateTable:
    by_client: dict[ClientId, RateCounter] = field(default_factory=dict)
    by_day: dict[DayOfWeek, RateCounter] = field(default_factory=dict)
    by_slot: dict[TimeSlot, RateCounter] = field(default_factory=dict)
    total: int = 0
    no_shows: int = 0
    average_rate: float = 0.0


@dataclass(frozen=True)
class NoShowPrediction:
    record_id: int
    client_id: int
    client_name: str
    client_phone: str
    datetime: datetime
    service_name: str
    staff_id: int
    expected_revenue: float
    risk_score: int
    risk_level: RiskLevel
    risk_factors: tuple[str, ...]
    recommendations: tuple[str, ...]


@dataclass(frozen=True)
class NoShowPatterns:
    worst_day: str
    worst_day_rate: int
    worst_time: str
    worst_time_rate: int
    high_risk_clients: int
    overall_no_show_rate: float


# ── Segments ───────────────────────────────────────────────────

@dataclass(frozen=True)
class ClientSegmentMetrics:
    client: ClientRecord
    days_since_visit: int
    days_since_first_visit: int

    @property
    def visit_count(self) -> int:
        return self.client.visit_count or 0

    @property
    def avg_sum(self) -> float:
        return self.client.avg_sum or 0.0


@dataclass(frozen=True)
class SegmentClient:
    id: int
    name: str
    phone: str
    email: str
    last_visit_date: datetime | None
    days_since_visit: int
    visit_count: int
    avg_sum: float
    total_spent: float


@dataclass(frozen=True)
class Segment:
    id: str
    name: str
    description: str
    criteria: str
    priority: SegmentPriority
    recommended_action: str
    recommended_channel: str
    message_template: str
    count: int
    potential_revenue: float
    clients: tuple[SegmentClient, ...] = ()
