# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Redis Channel and Stream Name Constants.

Centralized definitions for every Redis key, channel and stream name used by
the relay. This avoids hardcoded string values scattered across modules.
"""

# =============================================================================
# DEVICE STATE CHANNELS
# =============================================================================

# Live device state, one key per device: device:<normalizedId>
#
# Producers:
#   - MeasurementEnricher: publishes + stores every enriched reading
#
# Consumers:
#   - Dashboards subscribed to the channel
#   - ReconciliationScheduler: reads the stored copy during backfill
DEVICE_CHANNEL_PREFIX = "device:"

# Time-stamped historical samples: insert:<epochMillis>:<normalizedId>
#
# Producers:
#   - ReconciliationScheduler: republishes last known state on every tick
#
# Consumers:
#   - MetricsArchiver: writes samples to the relational metrics table
INSERT_CHANNEL_PREFIX = "insert:"

# Pattern matching every backfill sample channel
INSERT_CHANNEL_PATTERN = f"{INSERT_CHANNEL_PREFIX}*"

# =============================================================================
# INGEST STREAMS
# =============================================================================

# Raw measurements written by the scanner bridge
MEASUREMENT_STREAM = "beacon:measurements"


def device_channel(normalized_id: str) -> str:
    """Live-state channel (and storage key) for a device."""
    return f"{DEVICE_CHANNEL_PREFIX}{normalized_id}"


def insert_channel(timestamp_millis: int, normalized_id: str) -> str:
    """Backfill sample channel (and storage key) for a device at a point in time."""
    return f"{INSERT_CHANNEL_PREFIX}{timestamp_millis}:{normalized_id}"


def parse_insert_channel(channel: str) -> tuple:
    """
    Split a backfill sample channel into its parts.

    Args:
        channel: Channel name such as "insert:1700000000000:aabbccddeeff"

    Returns:
        Tuple of (timestamp_millis, normalized_id)

    Raises:
        ValueError: If the channel is not a backfill sample channel
    """
    if not channel.startswith(INSERT_CHANNEL_PREFIX):
        raise ValueError(f"Not an insert channel: {channel}")
    timestamp, _, normalized_id = channel[len(INSERT_CHANNEL_PREFIX):].partition(":")
    if not normalized_id:
        raise ValueError(f"Insert channel missing device id: {channel}")
    return int(timestamp), normalized_id
