# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""Shared fixtures."""

from unittest.mock import Mock

import pytest

from beaconrelay.capture.measurements import RawMeasurement


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = 1000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def redis_client():
    """Redis client mock with an in-memory key space for get/set."""
    client = Mock()
    store = {}

    def _set(key, value, *args, **kwargs):
        store[key] = value.encode('utf-8') if isinstance(value, str) else value
        return True

    client.set.side_effect = _set
    client.get.side_effect = lambda key: store.get(key)
    client.publish.return_value = 1
    client.store = store
    return client


@pytest.fixture
def measurement():
    return RawMeasurement(
        device_id="AA:BB:CC:DD:EE:FF",
        format_version=5,
        temperature=21.5,
        humidity=40.0,
        pressure=101325,
        acceleration_x=0.004,
        acceleration_y=-0.02,
        acceleration_z=1.036,
        battery_millivolts=3000,
    )
