"""Shared fixtures: a fixed reference time and small record factories."""

import json
from datetime import datetime, timedelta

import pytest

from salonscope.analysis.models import AppointmentRecord, ClientRecord

# A Monday, midday
NOW = datetime(2026, 10, 19, 12, 0)


def days_ago(days: float, now: datetime = NOW) -> datetime:
    return now - timedelta(days=days)


def make_client(id: int = 1, **kwargs) -> ClientRecord:
    kwargs.setdefault("name", f"Client {id}")
    return ClientRecord(id=id, **kwargs)


def make_record(id: int, when: datetime, client_id: int = 0, **kwargs) -> AppointmentRecord:
    return AppointmentRecord(id=id, datetime=when, client_id=client_id, **kwargs)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def loyal_client() -> ClientRecord:
    """10 visits over exactly 24 months, 120k spent, last seen 10 days ago."""
    return make_client(
        1,
        first_visit_date=datetime(2024, 10, 19, 12, 0),
        last_visit_date=days_ago(10),
        visit_count=10,
        spent=120000,
        avg_sum=12000,
    )


@pytest.fixture
def snapshot_dir(tmp_path):
    """A small CRM export on disk."""
    clients = [
        {
            "id": 1, "name": "Anna", "phone": "+10000000001", "email": "anna@example.com",
            "first_visit_date": "2024-10-19 12:00:00", "last_visit_date": "2026-10-09 12:00:00",
            "visit_count": 10, "spent": 120000, "sold_amount": 0, "avg_sum": 12000,
        },
        {
            "id": 2, "name": "Boris", "phone": None, "email": None,
            "first_visit_date": None, "last_visit_date": "2026-09-09 12:00:00",
            "visit_count": None, "spent": None, "sold_amount": 500, "avg_sum": None,
        },
    ]
    records = [
        {
            "id": 10, "datetime": "2026-10-20T10:00:00+03:00",
            "client": {"id": 1, "name": "Anna", "phone": "+10000000001"},
            "attendance": 0, "confirmed": 1, "deleted": False, "staff_id": 3,
            "services": [{"id": 5, "title": "Haircut", "cost": 1500}],
        },
        {
            "id": 11, "datetime": "not a date", "client": None,
            "attendance": 0, "confirmed": 0, "deleted": False, "staff_id": 3, "services": [],
        },
        {
            "id": 12, "datetime": "2026-10-05 18:00:00",
            "client": {"id": 2, "name": "Boris", "phone": None},
            "attendance": -1, "confirmed": 0, "deleted": False, "staff_id": 4, "services": [],
        },
    ]
    (tmp_path / "clients.json").write_text(json.dumps(clients))
    (tmp_path / "records.json").write_text(json.dumps(records))
    return tmp_path
