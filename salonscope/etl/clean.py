"""Cleaner: turns raw snapshot DataFrames into engine records.

The CRM export is loose: numbers arrive as null, dates as strings with or
without an offset, the client of an appointment as a nested object. Each step
normalizes one of those, and the cleaning report keeps before/after counts so
a dropped row can always be explained.
"""

import logging
from datetime import datetime
from typing import Any

import numpy as np
import pandas as pd

from salonscope.analysis.models import AppointmentRecord, ClientRecord, ServiceLine

logger = logging.getLogger(__name__)

CLIENT_DEFAULTS = {
    "name": "",
    "phone": "",
    "email": "",
    "first_visit_date": None,
    "last_visit_date": None,
    "visit_count": 0,
    "spent": None,
    "sold_amount": None,
    "avg_sum": 0.0,
}

RECORD_DEFAULTS = {
    "client": None,
    "client_id": None,
    "attendance": 0,
    "confirmed": 0,
    "deleted": False,
    "staff_id": 0,
    "services": None,
}


def parse_datetime(value: Any) -> datetime | None:
    """Parse a CRM timestamp, keeping local wall-clock time.

    An explicit UTC offset is dropped rather than converted: the salon's
    schedule is expressed in its own local time.
    """
    if value is None or (isinstance(value, float) and np.isnan(value)) or value == "":
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.to_pydatetime()


def _value(value: Any, default: Any = None) -> Any:
    """Map pandas/numpy missing markers to a plain default."""
    if value is None:
        return default
    if not isinstance(value, (list, tuple, dict)) and pd.isna(value):
        return default
    return value


def _number(value: Any, default: float | None = 0.0) -> float | None:
    value = _value(value)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class SnapshotCleaner:
    """Normalizes raw client and record frames into dataclass records."""

    def __init__(self):
        self._report: dict = {}

    def clean_clients(self, df: pd.DataFrame) -> list[ClientRecord]:
        """Normalize clients.

        Rows without an id are dropped. Missing optional fields take the
        defaults in CLIENT_DEFAULTS.
        """
        self._report.setdefault("steps", [])
        df = self._with_defaults(df, CLIENT_DEFAULTS)

        before = len(df)
        df = df[df["id"].notna()] if "id" in df.columns else df.iloc[0:0]
        self._log_step("clients_drop_missing_id", before, len(df), "Client has no id")

        clients = []
        for row in df.to_dict("records"):
            clients.append(ClientRecord(
                id=int(row["id"]),
                name=str(_value(row["name"], "")),
                phone=str(_value(row["phone"], "")),
                email=str(_value(row["email"], "")),
                first_visit_date=parse_datetime(_value(row["first_visit_date"])),
                last_visit_date=parse_datetime(_value(row["last_visit_date"])),
                visit_count=int(_number(row["visit_count"], 0.0)),
                spent=_number(row["spent"], None),
                sold_amount=_number(row["sold_amount"], None),
                avg_sum=_number(row["avg_sum"], 0.0),
            ))

        self._report["clients"] = len(clients)
        return clients

    def clean_records(self, df: pd.DataFrame) -> list[AppointmentRecord]:
        """Normalize appointment records.

        Rows whose datetime cannot be parsed are dropped and counted; the
        client id comes from the nested `client` object when present,
        otherwise from a flat `client_id` column, otherwise 0.
        """
        self._report.setdefault("steps", [])
        df = self._with_defaults(df, RECORD_DEFAULTS)
        if "datetime" not in df.columns:
            df = df.assign(datetime=None)

        rows = df.to_dict("records")
        records = []
        for row in rows:
            when = parse_datetime(_value(row["datetime"]))
            if when is None:
                continue

            client = _value(row["client"]) or {}
            client_id = client.get("id") if isinstance(client, dict) else None
            if client_id is None:
                client_id = _value(row["client_id"], 0)

            records.append(AppointmentRecord(
                id=int(_number(row.get("id"), 0.0)),
                datetime=when,
                client_id=int(client_id or 0),
                client_name=str(client.get("name") or "") if isinstance(client, dict) else "",
                client_phone=str(client.get("phone") or "") if isinstance(client, dict) else "",
                attendance=int(_number(row["attendance"], 0.0)),
                confirmed=int(_number(row["confirmed"], 0.0)),
                deleted=bool(_value(row["deleted"], False)),
                staff_id=int(_number(row["staff_id"], 0.0)),
                services=self._services(row["services"]),
            ))

        self._log_step("records_drop_bad_datetime", len(rows), len(records), "Unparseable datetime")
        self._report["records"] = len(records)
        self._report["no_shows"] = sum(1 for r in records if r.is_no_show)
        return records

    def get_cleaning_report(self) -> dict:
        """Return cleaning statistics collected so far."""
        return self._report

    # ── Private helpers ────────────────────────────────────────────

    def _with_defaults(self, df: pd.DataFrame, defaults: dict) -> pd.DataFrame:
        """Add any missing optional column, filled with its default."""
        df = df.copy()
        for column, default in defaults.items():
            if column not in df.columns:
                df[column] = [default] * len(df)
        return df

    def _services(self, value: Any) -> tuple[ServiceLine, ...]:
        value = _value(value)
        if not isinstance(value, (list, tuple)):
            return ()
        lines = []
        for item in value:
            if not isinstance(item, dict):
                continue
            lines.append(ServiceLine(
                id=int(_number(item.get("id"), 0.0)),
                title=str(item.get("title") or ""),
                cost=_number(item.get("cost"), 0.0),
            ))
        return tuple(lines)

    def _log_step(self, step_name: str, before: int, after: int, reason: str) -> None:
        """Record a cleaning step for the report."""
        removed = before - after
        self._report["steps"].append({
            "step": step_name,
            "rows_before": before,
            "rows_after": after,
            "rows_removed": removed,
            "reason": reason,
        })
        logger.debug("%s: removed %d rows (%s)", step_name, removed, reason)
