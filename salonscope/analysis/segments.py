"""Smart Segmentation: rule-based outreach groups for broadcasts.

Six independent rules over per-client recency, tenure, visit count and
average ticket. A client can land in several segments; the rules are not a
partition. Segments come back ordered by priority (HIGH, MEDIUM, LOW), and
by rule order within a priority.

Usage:
    segmenter = SmartSegmenter()
    segments = segmenter.build_segments(clients, now, include_clients=True)
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Sequence

from salonscope.analysis.metrics import days_since, round_half_up, total_spent
from salonscope.analysis.models import (
    ClientRecord, ClientSegmentMetrics, Segment, SegmentClient, SegmentPriority,
)
from salonscope.etl.config import (
    BEST_SEND_TIME, DEFAULT_LIMIT, DEFAULT_RESPONSE_RATE, SEGMENT_RESPONSE_RATES,
    SegmentationConfig, UNKNOWN_DAYS_SINCE_VISIT,
)

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {
    SegmentPriority.HIGH: 0,
    SegmentPriority.MEDIUM: 1,
    SegmentPriority.LOW: 2,
}


@dataclass(frozen=True)
class SegmentRule:
    """Static description of one segment plus its eligibility predicate.

    The predicate receives the client metrics and the snapshot's average
    check; `criteria` may reference {vip_check} and {avg_check}.
    """
    id: str
    name: str
    description: str
    criteria: str
    priority: SegmentPriority
    revenue_multiplier: float
    recommended_action: str
    recommended_channel: str
    message_template: str
    predicate: Callable[[ClientSegmentMetrics, float, float], bool]


def _recoverable(c: ClientSegmentMetrics, avg_check: float, vip_check: float) -> bool:
    return 21 <= c.days_since_visit <= 35 and c.visit_count >= 3


def _need_discount(c: ClientSegmentMetrics, avg_check: float, vip_check: float) -> bool:
    return 36 <= c.days_since_visit <= 60


def _urgent_reactivation(c: ClientSegmentMetrics, avg_check: float, vip_check: float) -> bool:
    return 60 <= c.days_since_visit <= 90


def _vip_no_touch(c: ClientSegmentMetrics, avg_check: float, vip_check: float) -> bool:
    return c.avg_sum >= vip_check and c.visit_count >= 5 and c.days_since_visit <= 45


def _new_needs_attention(c: ClientSegmentMetrics, avg_check: float, vip_check: float) -> bool:
    return 0 < c.days_since_first_visit <= 30 and c.visit_count <= 2


def _potential_vip(c: ClientSegmentMetrics, avg_check: float, vip_check: float) -> bool:
    return (
        avg_check <= c.avg_sum < vip_check
        and c.visit_count >= 3
        and c.days_since_visit <= 60
    )


SEGMENT_RULES: tuple[SegmentRule, ...] = (
    SegmentRule(
        id="recoverable_7d",
        name="Recoverable within 7 days",
        description="Regular clients who have not been in for a while. "
                    "A gentle reminder is usually enough.",
        criteria="Last visit 21-35 days ago, visits >= 3",
        priority=SegmentPriority.HIGH,
        revenue_multiplier=1.0,
        recommended_action="Gentle booking reminder",
        recommended_channel="telegram",
        message_template="Hi! We have not seen you at the salon for a while. "
                         "Maybe it is time for a refresh? Book a convenient time!",
        predicate=_recoverable,
    ),
    SegmentRule(
        id="need_discount",
        name="Will not return without a discount",
        description="Clients are starting to forget you. They need an incentive: "
                    "a discount or a bonus.",
        criteria="Last visit 36-60 days ago",
        priority=SegmentPriority.HIGH,
        revenue_multiplier=0.85,
        recommended_action="Offer a 10-15% discount",
        recommended_channel="sms",
        message_template="We miss you! A 15% discount on any service, just for you. "
                         "Valid for 7 days. Book now!",
        predicate=_need_discount,
    ),
    SegmentRule(
        id="urgent_reactivation",
        name="Urgent reactivation",
        description="Clients on the verge of being lost. An aggressive offer is needed.",
        criteria="Last visit 60-90 days ago",
        priority=SegmentPriority.HIGH,
        revenue_multiplier=0.70,
        recommended_action="Aggressive offer with a 20%+ discount",
        recommended_channel="sms",
        message_template="Just for you: 20% off plus a bonus! We would love to see you. "
                         "Offer valid for 5 days!",
        predicate=_urgent_reactivation,
    ),
    SegmentRule(
        id="vip_no_touch",
        name="VIP: no promotions",
        description="Valuable clients with a high average check. "
                    "Discounts would cheapen the service for them.",
        criteria="Average check >= {vip_check}, visits >= 5, last visit <= 45 days ago",
        priority=SegmentPriority.LOW,
        revenue_multiplier=1.0,
        recommended_action="Premium service, personal bonuses",
        recommended_channel="telegram",
        message_template="A special invitation for you! A new treatment or stylist. "
                         "Be the first to book.",
        predicate=_vip_no_touch,
    ),
    SegmentRule(
        id="new_needs_attention",
        name="Newcomers: need attention",
        description="New clients. Make them regulars.",
        criteria="First visit less than 30 days ago, visits <= 2",
        priority=SegmentPriority.MEDIUM,
        revenue_multiplier=12.0,
        recommended_action="Follow-up: ask about their experience",
        recommended_channel="telegram",
        message_template="Thank you for choosing us! How was your visit? "
                         "We would be happy to see you again. A bonus awaits on your next visit!",
        predicate=_new_needs_attention,
    ),
    SegmentRule(
        id="potential_vip",
        name="Potential VIP",
        description="Clients with a good average check who could become VIP. Encourage upsell.",
        criteria="Average check {avg_check}-{vip_check}, visits >= 3",
        priority=SegmentPriority.MEDIUM,
        revenue_multiplier=1.2,
        recommended_action="Upsell: offer premium services",
        recommended_channel="telegram",
        message_template="Try our new premium treatment! A special price for regular clients.",
        predicate=_potential_vip,
    ),
)


def average_check(clients: Sequence[ClientRecord]) -> float:
    """Mean avg_sum over every client; an empty snapshot gives 0."""
    return sum(c.avg_sum or 0 for c in clients) / (len(clients) or 1)


def enrich_clients(
    clients: Iterable[ClientRecord],
    now: datetime,
    unknown_days: int = UNKNOWN_DAYS_SINCE_VISIT,
) -> list[ClientSegmentMetrics]:
    """Attach days-since-visit and days-since-first-visit to each client.

    A missing last visit counts as `unknown_days` ago; a missing first visit
    counts as 0 days ago, which keeps the client out of the newcomer rule.
    """
    enriched = []
    for client in clients:
        days_since_visit = (
            days_since(client.last_visit_date, now)
            if client.last_visit_date is not None else unknown_days
        )
        days_since_first_visit = (
            days_since(client.first_visit_date, now)
            if client.first_visit_date is not None else 0
        )
        enriched.append(ClientSegmentMetrics(client, days_since_visit, days_since_first_visit))
    return enriched


def to_segment_client(metrics: ClientSegmentMetrics) -> SegmentClient:
    client = metrics.client
    return SegmentClient(
        id=client.id,
        name=client.name,
        phone=client.phone or "",
        email=client.email or "",
        last_visit_date=client.last_visit_date,
        days_since_visit=metrics.days_since_visit,
        visit_count=metrics.visit_count,
        avg_sum=metrics.avg_sum,
        total_spent=total_spent(client),
    )


class SmartSegmenter:
    """Applies SEGMENT_RULES to a client snapshot."""

    def __init__(self, config: SegmentationConfig | None = None,
                 rules: Sequence[SegmentRule] = SEGMENT_RULES):
        self._config = config or SegmentationConfig()
        self._rules = tuple(rules)

    def build_segments(
        self,
        clients: Sequence[ClientRecord],
        now: datetime,
        limit: int = DEFAULT_LIMIT,
        include_clients: bool = False,
    ) -> list[Segment]:
        """Evaluate every rule and return the non-empty segments.

        Args:
            clients: Whole client snapshot (also used for the average check).
            now: Reference instant.
            limit: Maximum clients listed per segment.
            include_clients: When False, segments carry counts and revenue
                only; their client lists stay empty.

        Returns:
            Segments ordered by priority, then rule order.
        """
        avg_check = average_check(clients)
        vip_check = avg_check * self._config.vip_check_multiplier
        enriched = enrich_clients(clients, now, self._config.unknown_days_since_visit)

        segments: list[Segment] = []
        for rule in self._rules:
            members = [c for c in enriched if rule.predicate(c, avg_check, vip_check)]
            if not members:
                continue
            revenue = sum(m.avg_sum * rule.revenue_multiplier for m in members)
            segments.append(Segment(
                id=rule.id,
                name=rule.name,
                description=rule.description,
                criteria=rule.criteria.format(
                    avg_check=round_half_up(avg_check),
                    vip_check=round_half_up(vip_check),
                ),
                priority=rule.priority,
                recommended_action=rule.recommended_action,
                recommended_channel=rule.recommended_channel,
                message_template=rule.message_template,
                count=len(members),
                potential_revenue=round_half_up(revenue, 2),
                clients=(
                    tuple(to_segment_client(m) for m in members[:limit])
                    if include_clients else ()
                ),
            ))

        segments.sort(key=lambda s: PRIORITY_ORDER[s.priority])
        logger.debug("Built %d segments from %d clients", len(segments), len(enriched))
        return segments


def summarize_segments(segments: Sequence[Segment], avg_check: float) -> dict:
    """Totals and broadcast suggestions for the HIGH-priority segments."""
    return {
        "total_segments": len(segments),
        "total_clients_in_segments": sum(s.count for s in segments),
        "total_potential_revenue": round_half_up(sum(s.potential_revenue for s in segments)),
        "high_priority_clients": sum(
            s.count for s in segments if s.priority == SegmentPriority.HIGH
        ),
        "avg_check": round_half_up(avg_check),
        "broadcast_suggestions": [
            {
                "segment_id": s.id,
                "segment_name": s.name,
                "client_count": s.count,
                "template": s.message_template,
                "channel": s.recommended_channel,
                "best_send_time": BEST_SEND_TIME,
                "expected_response_rate": SEGMENT_RESPONSE_RATES.get(s.id, DEFAULT_RESPONSE_RATE),
            }
            for s in segments
            if s.priority == SegmentPriority.HIGH
        ],
    }
