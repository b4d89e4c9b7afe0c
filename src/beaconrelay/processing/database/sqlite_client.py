# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Thin SQLite client with connection management and recommended PRAGMAs.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence

logger = logging.getLogger(__name__)


class SQLiteClient:
    """
    SQLite connection helper.

    Connections are short-lived: each `get_connection()` opens one and closes
    it on exit, so the client can be shared between threads.
    """

    def __init__(self, db_path: str, timeout: float = 5.0):
        """
        Initialize SQLite client.

        Args:
            db_path: Path to database file
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path).expanduser()
        self.timeout = timeout

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Open a connection with row access by column name."""
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def initialize_database(self) -> None:
        """Create the database directory and apply PRAGMAs."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self.get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.commit()

        logger.info(f"SQLite database ready: {self.db_path}")

    def execute(self, sql: str, params: Sequence = ()) -> None:
        """Execute a single statement and commit."""
        with self.get_connection() as conn:
            conn.execute(sql, params)
            conn.commit()

    def exists(self) -> bool:
        """Check whether the database file exists."""
        return self.db_path.exists()
