# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Measurement enricher.

Turns a raw beacon measurement into a full DeviceState: stamps it with the
processing time, computes the ping since the previous reading, attaches the
cached display name and relays the result on the device's live channel.
"""

import logging
from typing import Callable

from ..capture.measurements import RawMeasurement
from ..capture.shared.channels import device_channel
from .cache import DeviceCache
from .models import DeviceState, current_millis, format_timestamp, merge_device_state, normalize_device_id
from .relay import RelaySink

logger = logging.getLogger(__name__)


class MeasurementEnricher:
    """
    Enriches measurements against the device cache and relays them.

    Cache lookups never fail: a missing name is "" and a missing previous
    timestamp gives a ping of 0. Only the relay step can raise.
    """

    def __init__(
        self,
        cache: DeviceCache,
        relay: RelaySink,
        clock: Callable[[], int] = current_millis,
    ):
        """
        Initialize enricher.

        Args:
            cache: Shared device cache
            relay: Relay sink for the live device channel
            clock: Returns epoch milliseconds; arrival time is taken from
                here rather than from the sensor
        """
        self.cache = cache
        self.relay = relay
        self.clock = clock

    def enrich(self, measurement: RawMeasurement) -> DeviceState:
        """
        Build the enriched state for a measurement and update the cache.

        Args:
            measurement: Raw measurement from the scanner

        Returns:
            Merged device state
        """
        address = measurement.device_id
        timestamp = self.clock()

        ping = 0
        last_timestamp = self.cache.get_last_timestamp(address)
        if last_timestamp is not None:
            ping = max(0, timestamp - last_timestamp)

        name = self.cache.get_display_name(address)

        device = DeviceState(id=address, display_name=name)

        stub = DeviceState(
            temperature=measurement.temperature,
            humidity=measurement.humidity,
            pressure_hpa=measurement.pressure / 100,
            battery_volts=measurement.battery_millivolts / 1000,
            acceleration_x=measurement.acceleration_x,
            acceleration_y=measurement.acceleration_y,
            acceleration_z=measurement.acceleration_z,
            timestamp_millis=timestamp,
            timestamp_iso=format_timestamp(timestamp),
            ping_millis=ping,
            format_version=measurement.format_version,
        )

        merge_device_state(device, stub)

        # Keyed by raw id: that is what the next arrival looks up
        self.cache.set_last_record(address, device)
        self.cache.set_last_timestamp(address, timestamp)

        return device

    def handle(self, measurement: RawMeasurement) -> DeviceState:
        """
        Enrich a measurement and relay it on the device's live channel.

        Returns:
            The relayed device state

        Raises:
            RelayError: If publishing or storing the record fails
        """
        device = self.enrich(measurement)

        logger.info(
            f"{device.id}[v{device.format_version}] {device.display_name} : "
            f"{device.temperature:.2f} °c, {device.humidity:.2f} %H, "
            f"{device.pressure_hpa:.2f} hPa, {device.battery_volts:.3f} v, ping {device.ping_millis}ms"
        )

        self.relay.relay_state(device_channel(normalize_device_id(device.id)), device)
        return device
