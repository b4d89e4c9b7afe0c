# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Init-db command implementation.
"""

import sqlite3

import click
from rich.console import Console

from ...capture.shared.config import Config
from ...processing.database.schema import create_schema
from ...processing.database.sqlite_client import SQLiteClient

console = Console()


@click.command("init-db")
@click.pass_obj
def init_db(config: Config):
    """Create the metrics database and table."""
    client = SQLiteClient(str(config.metrics_db))

    try:
        client.initialize_database()
        create_schema(client, config.metrics_table)
    except (sqlite3.Error, OSError, ValueError) as e:
        console.print(f"[red]Failed to initialize database:[/red] {e}")
        raise click.Abort()

    console.print(
        f"[green]✓[/green] Metrics table [cyan]{config.metrics_table}[/cyan] ready in {config.metrics_db}"
    )
