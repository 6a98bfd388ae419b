"""Extractor: reads a CRM snapshot from disk.

Single responsibility: read, nothing else.
The sync store dumps clients and appointment records as JSON arrays; if the
source changes (e.g., to a live CRM pull), only this module needs to change.
"""

import logging
from pathlib import Path

import pandas as pd

from salonscope.etl.config import (
    CLIENT_COLUMNS, CLIENTS_FILENAME, RECORD_COLUMNS, RECORDS_FILENAME, EngineConfig,
)

logger = logging.getLogger(__name__)


class SnapshotExtractor:
    """Reads snapshot files and returns raw DataFrames."""

    def __init__(self, config: EngineConfig | None = None):
        self._config = config or EngineConfig()

    @property
    def snapshot_dir(self) -> Path:
        return Path(self._config.snapshot_dir)

    def extract_clients(self) -> pd.DataFrame:
        """Read clients.json.

        Returns:
            One row per client, original CRM field names.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If required columns are missing.
        """
        df = self._read(self.snapshot_dir / CLIENTS_FILENAME)
        self._validate_columns(df, CLIENT_COLUMNS, CLIENTS_FILENAME)
        return df

    def extract_records(self) -> pd.DataFrame:
        """Read records.json (appointments, nested client and services kept as-is)."""
        df = self._read(self.snapshot_dir / RECORDS_FILENAME)
        self._validate_columns(df, RECORD_COLUMNS, RECORDS_FILENAME)
        return df

    def _read(self, path: Path) -> pd.DataFrame:
        if not path.exists():
            raise FileNotFoundError(
                f"Snapshot file not found: {path}\n"
                f"Export the sync store to {self.snapshot_dir} first."
            )
        # dtype=False keeps ids and date strings exactly as exported
        df = pd.read_json(path, orient="records", dtype=False, convert_dates=False)
        logger.info("Read %s: %d rows", path.name, len(df))
        return df

    def _validate_columns(self, df: pd.DataFrame, expected: list[str], source: str) -> None:
        """Verify required columns are present.

        An empty snapshot (no rows, no columns) is accepted as-is.

        Raises:
            ValueError: If expected columns are missing.
        """
        if df.empty and len(df.columns) == 0:
            return
        missing = set(expected) - set(df.columns)
        if missing:
            raise ValueError(
                f"Missing expected columns in {source}: {missing}\n"
                f"Found columns: {set(df.columns)}"
            )
