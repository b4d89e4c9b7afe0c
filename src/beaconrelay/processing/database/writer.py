# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Metrics writer: one relational row per metric per device reading.
"""

import logging
from typing import List, Tuple

from ..models import DeviceState
from .schema import quote_identifier
from .sqlite_client import SQLiteClient

logger = logging.getLogger(__name__)

# Metrics written for every reading, in order
METRIC_NAMES = ("temperature", "humidity", "pressure", "battery", "ping")


def metric_rows(state: DeviceState) -> List[Tuple[str, float]]:
    """
    Metric name/value pairs for a device state.

    Pressure is in hPa, battery in volts and ping in milliseconds.
    """
    return [
        ("temperature", float(state.temperature)),
        ("humidity", float(state.humidity)),
        ("pressure", float(state.pressure_hpa)),
        ("battery", float(state.battery_volts)),
        ("ping", float(state.ping_millis)),
    ]


class MetricsWriter:
    """Writes device metrics into the relational archive."""

    def __init__(self, client: SQLiteClient, table: str):
        """
        Initialize metrics writer.

        Args:
            client: SQLite client
            table: Metrics table name

        Raises:
            ValueError: If the table name is not a plain identifier
        """
        self.client = client
        self.table = table
        self._insert_sql = (
            f'INSERT INTO {quote_identifier(table)} ("time", "tagId", "metric", "value") '
            "VALUES (?, ?, ?, ?)"
        )

    def _insert_rows(self, rows: List[Tuple[str, str, str, float]]) -> None:
        with self.client.get_connection() as conn:
            with conn:
                conn.executemany(self._insert_sql, rows)

    def insert_metric_row(self, timestamp_iso: str, device_id: str, metric: str, value: float) -> None:
        """
        Insert a single metric row.

        Raises:
            sqlite3.Error: If the insert fails
        """
        self._insert_rows([(timestamp_iso, device_id, metric, float(value))])

    def insert_device(self, state: DeviceState) -> int:
        """
        Insert all metrics of a device reading in one transaction.

        Returns:
            Number of rows written

        Raises:
            sqlite3.Error: If the insert fails (nothing is written)
        """
        rows = [
            (state.timestamp_iso, state.id, metric, value)
            for metric, value in metric_rows(state)
        ]
        self._insert_rows(rows)

        logger.debug(f"Archived {len(rows)} metrics for {state.id} at {state.timestamp_iso}")
        return len(rows)
