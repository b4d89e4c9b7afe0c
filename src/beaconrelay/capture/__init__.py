# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Capture layer: raw beacon measurements and the sources that deliver them.
"""

from .measurements import RawMeasurement, QueueSource, RedisStreamSource

__all__ = [
    'RawMeasurement',
    'QueueSource',
    'RedisStreamSource',
]
