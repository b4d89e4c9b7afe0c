# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Devices command implementation.
"""

from typing import List, Optional, Tuple

import click
import redis
from rich.console import Console
from rich.table import Table

from ...capture.shared.channels import DEVICE_CHANNEL_PREFIX, device_channel
from ...capture.shared.config import Config
from ...capture.shared.device_config import DeviceConfigError, load_device_config
from ...processing.models import DeviceState, current_millis, normalize_device_id
from ...processing.relay import RelayError, RelaySink
from ...processing.server import create_redis_client

console = Console()


def _collect_states(relay: RelaySink, keys: List[Tuple[str, str]]) -> List[Tuple[str, Optional[DeviceState]]]:
    """Fetch and decode the stored state for each (label, key) pair."""
    rows = []
    for label, key in keys:
        payload = relay.fetch(key)
        state = None
        if payload is not None:
            try:
                state = DeviceState.from_json(payload)
            except ValueError:
                console.print(f"[yellow]Undecodable state at {key}[/yellow]")
        rows.append((label, state))
    return rows


def render_devices(rows: List[Tuple[str, Optional[DeviceState]]], now_millis: int) -> Table:
    """Build the device table."""
    table = Table(title="Last Known Device State", show_header=True, header_style="bold magenta")
    table.add_column("Device", style="cyan", no_wrap=True)
    table.add_column("Id", style="dim")
    table.add_column("Seen", justify="right")
    table.add_column("Temp °C", justify="right")
    table.add_column("Humidity %", justify="right")
    table.add_column("Pressure hPa", justify="right")
    table.add_column("Battery V", justify="right")

    for label, state in rows:
        if state is None:
            table.add_row(label, "", "[yellow]no data[/yellow]", "", "", "", "")
            continue
        ago = max(0, now_millis - state.timestamp_millis) / 1000
        table.add_row(
            state.display_name or label,
            state.normalized_id,
            f"{ago:.1f}s ago",
            f"{state.temperature:.2f}",
            f"{state.humidity:.2f}",
            f"{state.pressure_hpa:.2f}",
            f"{state.battery_volts:.3f}",
        )
    return table


@click.command()
@click.option(
    "--all", "show_all",
    is_flag=True,
    help="Show every device stored in Redis, not only configured ones"
)
@click.pass_obj
def devices(config: Config, show_all: bool):
    """
    Show the last known state of each device.

    Examples:
        beacon-relay devices
        beacon-relay devices --all
    """
    relay = RelaySink(create_redis_client(config))

    try:
        if show_all:
            keys = []
            for key in relay.redis_client.scan_iter(match=f"{DEVICE_CHANNEL_PREFIX}*"):
                key = key.decode('utf-8') if isinstance(key, bytes) else key
                keys.append((key[len(DEVICE_CHANNEL_PREFIX):], key))
            keys.sort()
        else:
            entries = load_device_config(config.devices_file)
            keys = [
                (entry.display_name or entry.id, device_channel(normalize_device_id(entry.id)))
                for entry in entries
            ]

        with console.status("Fetching device state..."):
            rows = _collect_states(relay, keys)

    except (DeviceConfigError, RelayError, redis.RedisError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise click.Abort()

    console.print(render_devices(rows, current_millis()))
