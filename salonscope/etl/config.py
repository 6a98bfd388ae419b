"""Central configuration for the SalonScope scoring engine.

Every weight, threshold, and default used by the engine lives here.
No other module hardcodes these values; they import from this config.
"""

from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv
import os

load_dotenv()

# ── Project paths ──────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent  # salonscope repo root
DATA_DIR = PROJECT_ROOT / "data"
SNAPSHOT_DIR = Path(os.getenv("SNAPSHOT_DIR", str(DATA_DIR / "snapshot")))

# ── Snapshot files (CRM export shape) ──────────────────────────

CLIENTS_FILENAME = "clients.json"
RECORDS_FILENAME = "records.json"

CLIENT_COLUMNS = ["id", "name", "first_visit_date", "last_visit_date"]
RECORD_COLUMNS = ["id", "datetime"]

# ── Attendance codes ───────────────────────────────────────────

ATTENDANCE_NO_SHOW = -1
ATTENDANCE_UNKNOWN = 0
ATTENDANCE_ATTENDED = 1
ATTENDANCE_AWAITING = 2

# ── IVK component ladders ──────────────────────────────────────
# (poor, medium, good, excellent). Recency is in days and lower is better;
# the rest are higher-is-better.

RECENCY_THRESHOLDS = (90, 60, 30, 14)
FREQUENCY_THRESHOLDS = (0.25, 0.5, 1.0, 2.0)     # visits per month
MONETARY_THRESHOLDS = (5000, 20000, 50000, 100000)
LOYALTY_THRESHOLDS = (3, 6, 12, 24)              # months as client

COMPONENT_WEIGHT = 25                            # four components, sum = 100

# ── IVK tiers ──────────────────────────────────────────────────

TIER_THRESHOLDS = {
    "PLATINUM": 85,
    "GOLD": 70,
    "SILVER": 50,
}
NEW_CLIENT_MONTHS = 1                            # tenure below this = NEW
FALLBACK_TENURE_MONTHS = 6                       # visits but no first_visit_date

# ── Churn risk / status (days since last visit) ────────────────

RISK_MEDIUM_DAYS = 30
RISK_HIGH_DAYS = 60
RISK_CRITICAL_MIN_SCORE = 50
LOST_DAYS = 90
VIP_MAX_DAYS = 45
PROBLEM_MAX_SCORE = 25
FREQUENCY_ADVICE_MIN_MONTHS = 3

# ── No-show prediction ─────────────────────────────────────────

DEFAULT_DAYS_AHEAD = int(os.getenv("DEFAULT_DAYS_AHEAD", "7"))
DEFAULT_LIMIT = int(os.getenv("DEFAULT_LIMIT", "50"))
DEFAULT_NO_SHOW_RATE = 5.0                       # % when there is no history

NO_SHOW_RISK_LEVELS = {
    "CRITICAL": 75,
    "HIGH": 50,
    "MEDIUM": 25,
}

HIGH_RISK_CLIENT_RATE = 0.2                      # patterns: clients above 20%

NO_SHOW_RECOMMENDATIONS = {
    "CRITICAL": (
        "Require prepayment",
        "Double-book this time slot",
        "Call the day before to confirm",
    ),
    "HIGH": (
        "Confirm by phone the day before",
        "Send an SMS reminder",
    ),
    "MEDIUM": (
        "Send a reminder the day before",
    ),
    "LOW": (),
}

# ── Segmentation ───────────────────────────────────────────────

UNKNOWN_DAYS_SINCE_VISIT = 999
VIP_CHECK_MULTIPLIER = 1.5

SEGMENT_RESPONSE_RATES = {
    "recoverable_7d": 25,
    "need_discount": 15,
}
DEFAULT_RESPONSE_RATE = 10
BEST_SEND_TIME = "Tue-Thu, 11:00-14:00"

# ── LTV ────────────────────────────────────────────────────────

LTV_MAX_YEARS = 3
LTV_MIN_YEARS = 0.5
LTV_UNKNOWN_CHURN_RISK = 50
LTV_CHURN_STEPS = (                              # (days greater than, risk)
    (90, 90),
    (60, 70),
    (45, 50),
    (30, 30),
    (14, 10),
)
LTV_SEGMENT_PERCENTILES = {
    "diamond": 95,
    "gold": 80,
    "silver": 50,
}
LTV_HIGH_CHURN_RISK = 50
PARETO_SHARE = 0.2


@dataclass(frozen=True)
class ThresholdLadder:
    """Four-point ladder for one IVK component."""
    poor: float
    medium: float
    good: float
    excellent: float
    lower_is_better: bool = False

    @classmethod
    def from_tuple(cls, values: tuple, lower_is_better: bool = False) -> "ThresholdLadder":
        poor, medium, good, excellent = values
        return cls(poor, medium, good, excellent, lower_is_better)


@dataclass(frozen=True)
class ComponentWeights:
    recency: int = COMPONENT_WEIGHT
    frequency: int = COMPONENT_WEIGHT
    monetary: int = COMPONENT_WEIGHT
    loyalty: int = COMPONENT_WEIGHT


@dataclass(frozen=True)
class ScoringConfig:
    """Bundled IVK config passed to IVKScorer.

    Exists so tests can swap thresholds without touching module-level constants.
    Production code uses the defaults; tests can pass modified instances.
    """
    recency: ThresholdLadder = ThresholdLadder.from_tuple(RECENCY_THRESHOLDS, lower_is_better=True)
    frequency: ThresholdLadder = ThresholdLadder.from_tuple(FREQUENCY_THRESHOLDS)
    monetary: ThresholdLadder = ThresholdLadder.from_tuple(MONETARY_THRESHOLDS)
    loyalty: ThresholdLadder = ThresholdLadder.from_tuple(LOYALTY_THRESHOLDS)
    weights: ComponentWeights = ComponentWeights()
    platinum_score: int = TIER_THRESHOLDS["PLATINUM"]
    gold_score: int = TIER_THRESHOLDS["GOLD"]
    silver_score: int = TIER_THRESHOLDS["SILVER"]
    new_client_months: int = NEW_CLIENT_MONTHS
    fallback_tenure_months: int = FALLBACK_TENURE_MONTHS


@dataclass(frozen=True)
class NoShowConfig:
    """Weights and thresholds for the no-show predictor."""
    default_rate: float = DEFAULT_NO_SHOW_RATE
    client_rate_high: float = 30.0
    client_rate_medium: float = 15.0
    client_high_points: int = 40
    client_medium_points: int = 25
    client_low_points: int = 10
    new_client_points: int = 5
    pattern_multiplier: float = 1.5
    pattern_high_points: int = 20
    pattern_low_points: int = 10
    unconfirmed_points: int = 20
    max_score: int = 100
    critical_score: int = NO_SHOW_RISK_LEVELS["CRITICAL"]
    high_score: int = NO_SHOW_RISK_LEVELS["HIGH"]
    medium_score: int = NO_SHOW_RISK_LEVELS["MEDIUM"]
    recommendations: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(NO_SHOW_RECOMMENDATIONS)
    )


@dataclass(frozen=True)
class SegmentationConfig:
    unknown_days_since_visit: int = UNKNOWN_DAYS_SINCE_VISIT
    vip_check_multiplier: float = VIP_CHECK_MULTIPLIER
    default_limit: int = DEFAULT_LIMIT


@dataclass(frozen=True)
class EngineConfig:
    """Everything the CLI pipeline and the API hand to the engines."""
    snapshot_dir: Path = SNAPSHOT_DIR
    days_ahead: int = DEFAULT_DAYS_AHEAD
    limit: int = DEFAULT_LIMIT
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    noshow: NoShowConfig = field(default_factory=NoShowConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
