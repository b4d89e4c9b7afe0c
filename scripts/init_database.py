#!/usr/bin/env python3
# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Database initialization script for the beacon relay metrics archive.

Creates the SQLite database and the configured metrics table.
"""

import logging
import sqlite3
import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from beaconrelay.capture.shared.config import Config
from beaconrelay.processing.database.schema import create_schema
from beaconrelay.processing.database.sqlite_client import SQLiteClient

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Initialize database."""
    config = Config()

    logger.info(f"Initializing database: {config.metrics_db}")

    client = SQLiteClient(str(config.metrics_db))

    try:
        client.initialize_database()
        create_schema(client, config.metrics_table)
    except (sqlite3.Error, OSError, ValueError) as e:
        logger.error(f"Failed to initialize database: {e}")
        return 1

    if client.exists():
        logger.info("✅ Database initialized successfully")
        return 0

    logger.error("❌ Database file was not created")
    return 1


if __name__ == "__main__":
    sys.exit(main())
