# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Relational metrics archive.

Long-term metric rows (one per metric per reading) live in SQLite so they can
be queried independently of the Redis live state.
"""

from .sqlite_client import SQLiteClient
from .schema import create_schema, quote_identifier
from .writer import MetricsWriter, METRIC_NAMES

__all__ = [
    'SQLiteClient',
    'create_schema',
    'quote_identifier',
    'MetricsWriter',
    'METRIC_NAMES',
]
