# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Metrics table schema.

The table name comes from configuration, so it is validated and quoted as an
identifier. Values are always bound as statement parameters.
"""

import logging
import re

from .sqlite_client import SQLiteClient

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_identifier(name: str) -> str:
    """
    Quote a table name for use in SQL.

    Raises:
        ValueError: If the name is not a plain identifier
    """
    if not _IDENTIFIER_RE.match(name or ""):
        raise ValueError(f"Invalid table name: {name!r}")
    return f'"{name}"'


def create_schema(client: SQLiteClient, table: str) -> None:
    """
    Create the metrics table and its lookup index if missing.

    Args:
        client: SQLite client
        table: Metrics table name
    """
    quoted = quote_identifier(table)
    index = quote_identifier(f"idx_{table}_tag_time")

    with client.get_connection() as conn:
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {quoted} (
                "time" TEXT NOT NULL,
                "tagId" TEXT NOT NULL,
                "metric" TEXT NOT NULL,
                "value" REAL NOT NULL
            )
        """)
        conn.execute(f'CREATE INDEX IF NOT EXISTS {index} ON {quoted} ("tagId", "time")')
        conn.commit()

    logger.info(f"Metrics table ready: {table}")
