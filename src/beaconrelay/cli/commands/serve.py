# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Serve command implementation.
"""

import asyncio

import click

from ...capture.shared.config import Config
from ...processing.server import serve as run_server, setup_logging


@click.command()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Override the configured log level"
)
@click.pass_obj
def serve(config: Config, log_level: str):
    """Run the relay server until interrupted."""
    setup_logging(log_level or config.log_level)

    if not config.validate():
        raise click.ClickException("Invalid configuration")

    try:
        asyncio.run(run_server(config))
    except RuntimeError as e:
        raise click.ClickException(str(e))
