"""Posted snapshot → engine records, through the same cleaner the CLI uses."""

import pandas as pd

from salonscope.analysis.models import AppointmentRecord, ClientRecord
from salonscope.app.schemas import Snapshot
from salonscope.etl.clean import SnapshotCleaner


def snapshot_clients(snapshot: Snapshot) -> list[ClientRecord]:
    df = pd.DataFrame([c.model_dump() for c in snapshot.clients])
    return SnapshotCleaner().clean_clients(df)


def snapshot_records(snapshot: Snapshot) -> list[AppointmentRecord]:
    df = pd.DataFrame([r.model_dump() for r in snapshot.records])
    return SnapshotCleaner().clean_records(df)
