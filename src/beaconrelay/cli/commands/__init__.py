# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
CLI commands for the beacon relay.
"""

from .serve import serve
from .devices import devices
from .backfill import backfill
from .init_db import init_db

__all__ = [
    'serve',
    'devices',
    'backfill',
    'init_db',
]
