# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Backfill command implementation.
"""

import click
from rich.console import Console
from rich.markup import escape

from ...capture.shared.config import Config
from ...processing.cache import DeviceCache
from ...processing.relay import RelaySink
from ...processing.server import build_scheduler, create_redis_client

console = Console()


@click.command()
@click.pass_obj
def backfill(config: Config):
    """
    Run a single reconciliation pass now.

    Reloads the device file and republishes every configured device's stored
    state as a time-stamped sample. Exits non-zero if the device file could
    not be loaded or any device failed.
    """
    relay = RelaySink(create_redis_client(config))
    scheduler = build_scheduler(config, DeviceCache(), relay)

    with console.status("Backfilling..."):
        report = scheduler.tick()

    if scheduler.last_load_error is not None:
        console.print(f"[red]Error:[/red] {escape(str(scheduler.last_load_error))}")

    for device_id in report.published:
        console.print(f"[green]✓[/green] {device_id}")
    for device_id in report.skipped:
        console.print(f"[yellow]-[/yellow] {device_id} (no stored state)")
    for device_id, error in report.failed.items():
        console.print(f"[red]✗[/red] {device_id}: {escape(str(error))}")

    console.print(
        f"{len(report.published)} published, {len(report.skipped)} skipped, {len(report.failed)} failed"
    )

    if not report.ok or scheduler.last_load_error is not None:
        raise SystemExit(1)
