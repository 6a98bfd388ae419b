"""Pipeline: runs every engine over one CRM snapshot.

Extract → Clean → Score (IVK + status/risk) → No-show prediction →
Segmentation → LTV, then prints a summary report. Nothing is written back;
re-running on the same snapshot and reference time gives the same output.

Usage:
    python -m salonscope.etl.pipeline [--snapshot-dir DIR] [--now 2026-10-19T12:00]
"""

import argparse
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import pandas as pd

from salonscope.analysis.ivk import IVKScorer
from salonscope.analysis.ltv import LTVAnalyzer, ClientLTV
from salonscope.analysis.models import AppointmentRecord, ClientRecord, NoShowPrediction, Segment
from salonscope.analysis.noshow import NoShowPredictor, build_history, partition_records
from salonscope.analysis.reports import ScoredClient, noshow_report, score_snapshot, tier_summary
from salonscope.analysis.segments import SmartSegmenter, average_check, summarize_segments
from salonscope.analysis.timeslots import start_of_day, wall_time
from salonscope.etl.clean import SnapshotCleaner
from salonscope.etl.config import EngineConfig
from salonscope.etl.extract import SnapshotExtractor

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one run produced."""
    now: datetime
    scored: list[ScoredClient] = field(default_factory=list)
    tiers: pd.DataFrame = field(default_factory=pd.DataFrame)
    predictions: list[NoShowPrediction] = field(default_factory=list)
    noshow: dict = field(default_factory=dict)
    segments: list[Segment] = field(default_factory=list)
    segment_summary: dict = field(default_factory=dict)
    ltv: list[ClientLTV] = field(default_factory=list)
    cleaning_report: dict = field(default_factory=dict)
    duration_seconds: float = 0.0


class Pipeline:
    """Orchestrates a full scoring run. Stateless between runs."""

    def __init__(self, config: EngineConfig | None = None):
        self._config = config or EngineConfig()
        self._extractor = SnapshotExtractor(self._config)
        self._scorer = IVKScorer(self._config.scoring)
        self._predictor = NoShowPredictor(self._config.noshow)
        self._segmenter = SmartSegmenter(self._config.segmentation)
        self._ltv = LTVAnalyzer()

    def run(self, now: datetime | None = None) -> PipelineResult:
        """Load the snapshot from disk and analyze it."""
        print("\n[1/2] Loading snapshot...")
        cleaner = SnapshotCleaner()
        clients = cleaner.clean_clients(self._extractor.extract_clients())
        records = cleaner.clean_records(self._extractor.extract_records())
        print(f"  → {len(clients):,} clients, {len(records):,} records")

        print("\n[2/2] Analyzing...")
        result = self.analyze(clients, records, now)
        result.cleaning_report = cleaner.get_cleaning_report()
        return result

    def analyze(
        self,
        clients: list[ClientRecord],
        records: list[AppointmentRecord],
        now: datetime | None = None,
    ) -> PipelineResult:
        """Run every engine over an in-memory snapshot.

        The no-show window starts at midnight of `now`, so appointments
        earlier today still count as upcoming.
        """
        start = time.time()
        now = wall_time(now or datetime.now())
        result = PipelineResult(now=now)

        result.scored = score_snapshot(clients, now, self._scorer)
        result.tiers = tier_summary([s.ivk for s in result.scored])

        day_start = start_of_day(now)
        past, upcoming = partition_records(records, day_start, self._config.days_ahead)
        table = build_history(past, day_start, self._config.noshow.default_rate)
        result.predictions = self._predictor.predict(past, upcoming, day_start, table=table)
        result.noshow = noshow_report(
            result.predictions, table, self._config.days_ahead, limit=self._config.limit
        )

        result.segments = self._segmenter.build_segments(
            clients, now, limit=self._config.limit, include_clients=True
        )
        result.segment_summary = summarize_segments(result.segments, average_check(clients))

        result.ltv = self._ltv.analyze(clients, now)

        result.duration_seconds = round(time.time() - start, 2)
        logger.info("Analyzed %d clients and %d records in %.2fs",
                    len(clients), len(records), result.duration_seconds)
        return result


# ── CLI entry point ────────────────────────────────────────────

def main(argv: list[str] | None = None) -> None:
    """Run the pipeline from command line."""
    parser = argparse.ArgumentParser(description="SalonScope scoring run")
    parser.add_argument("--snapshot-dir", type=Path, default=None)
    parser.add_argument("--now", type=datetime.fromisoformat, default=None)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = EngineConfig()
    if args.snapshot_dir is not None:
        config = EngineConfig(snapshot_dir=args.snapshot_dir)

    print("=" * 60)
    print("SalonScope Scoring Run")
    print("=" * 60)

    result = Pipeline(config).run(args.now)

    print("\nIVK by tier:")
    print(result.tiers.to_string(index=False) if not result.tiers.empty else "  (no clients)")

    statuses = pd.Series([s.assessment.status.value for s in result.scored], dtype="object")
    print("\nClient status:")
    for status, count in statuses.value_counts().items():
        print(f"  {status}: {count:,}")

    summary = result.noshow["summary"]
    patterns = result.noshow["patterns"]
    print(f"\nNo-show risk, next {summary['days_analyzed']} days:")
    print(f"  Upcoming: {summary['total_upcoming']:,} "
          f"(critical {summary['critical_risk_count']}, high {summary['high_risk_count']}, "
          f"medium {summary['medium_count']}, low {summary['low_count']})")
    print(f"  Overall no-show rate: {patterns.overall_no_show_rate}%")
    print(f"  Potential loss: {summary['potential_loss']:,}")
    for insight in result.noshow["insights"]:
        print(f"  • {insight}")

    print("\nSegments:")
    for seg in result.segments:
        print(f"  [{seg.priority.value}] {seg.id}: {seg.count:,} clients, "
              f"potential revenue {seg.potential_revenue:,.2f}")

    ltv_summary = LTVAnalyzer().summary(result.ltv)
    print(f"\nLTV: total {ltv_summary['total_ltv']:,}, average {ltv_summary['avg_ltv']:,}, "
          f"high churn risk {ltv_summary['high_churn_risk_count']:,}")

    print(f"\nDuration: {result.duration_seconds}s")


if __name__ == "__main__":
    main()
