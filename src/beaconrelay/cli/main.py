# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Main CLI entry point for the beacon relay.
"""

from typing import Optional

import click

from . import __version__
from .commands import backfill, devices, init_db, serve
from ..capture.shared.config import Config


@click.group()
@click.version_option(version=__version__, prog_name="beacon-relay")
@click.option(
    "--config", "config_path",
    envvar="BEACON_RELAY_CONFIG",
    type=click.Path(dir_okay=False),
    help="Path to config.yaml"
)
@click.pass_context
def cli(ctx, config_path: Optional[str]):
    """
    Beacon Relay - enrich beacon sensor readings and relay them to Redis.

    Examples:
        beacon-relay serve
        beacon-relay devices
        beacon-relay backfill
    """
    ctx.obj = Config(config_path=config_path)


cli.add_command(serve)
cli.add_command(devices)
cli.add_command(backfill)
cli.add_command(init_db)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
