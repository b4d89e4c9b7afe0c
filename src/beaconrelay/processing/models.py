# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Device state record and its wire encoding.

DeviceState is what gets cached, published and stored. It is encoded as a
field-named JSON object so any subscriber can decode it without knowing
field order.
"""

import json
import time
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict

# Python attribute -> wire field name
_WIRE_NAMES = {
    'id': 'id',
    'display_name': 'displayName',
    'temperature': 'temperature',
    'humidity': 'humidity',
    'pressure_hpa': 'pressureHpa',
    'battery_volts': 'batteryVolts',
    'acceleration_x': 'accelerationX',
    'acceleration_y': 'accelerationY',
    'acceleration_z': 'accelerationZ',
    'timestamp_millis': 'timestampMillis',
    'timestamp_iso': 'timestampISO',
    'ping_millis': 'pingMillis',
    'format_version': 'formatVersion',
}

_FLOAT_FIELDS = (
    'temperature', 'humidity', 'pressure_hpa', 'battery_volts',
    'acceleration_x', 'acceleration_y', 'acceleration_z',
)
_INT_FIELDS = ('timestamp_millis', 'ping_millis', 'format_version')


def normalize_device_id(device_id: str) -> str:
    """
    Canonical form of a device id: lowercase with ':' separators removed.

    Idempotent, so normalizing an already-normalized id is a no-op.
    """
    return device_id.replace(":", "").lower()


def current_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def format_timestamp(timestamp_millis: int) -> str:
    """RFC3339 UTC timestamp (second precision) for epoch milliseconds."""
    moment = datetime.fromtimestamp(timestamp_millis // 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class DeviceState:
    """Last known state of one beacon device."""

    id: str = ""
    display_name: str = ""
    temperature: float = 0.0
    humidity: float = 0.0
    pressure_hpa: float = 0.0
    battery_volts: float = 0.0
    acceleration_x: float = 0.0
    acceleration_y: float = 0.0
    acceleration_z: float = 0.0
    timestamp_millis: int = 0
    timestamp_iso: str = ""
    ping_millis: int = 0
    format_version: int = 0

    @property
    def normalized_id(self) -> str:
        """External-facing key, always derived from `id`."""
        return normalize_device_id(self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a wire-format dictionary."""
        data: Dict[str, Any] = {'id': self.id, 'normalizedId': self.normalized_id}
        for name, wire_name in _WIRE_NAMES.items():
            if name != 'id':
                data[wire_name] = getattr(self, name)
        return data

    def to_json(self) -> str:
        """Encode as a compact JSON object."""
        return json.dumps(self.to_dict(), separators=(',', ':'), allow_nan=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeviceState":
        """
        Build a DeviceState from a wire-format dictionary.

        Unknown keys are ignored and `normalizedId` is re-derived from `id`.

        Raises:
            ValueError: If a field has a value of the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Device state must be an object, got {type(data).__name__}")

        kwargs: Dict[str, Any] = {}
        for name, wire_name in _WIRE_NAMES.items():
            if wire_name not in data or data[wire_name] is None:
                continue
            value = data[wire_name]
            try:
                if name in _FLOAT_FIELDS:
                    kwargs[name] = float(value)
                elif name in _INT_FIELDS:
                    kwargs[name] = int(value)
                else:
                    kwargs[name] = str(value)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid value for {wire_name}: {value!r}") from e
        return cls(**kwargs)

    @classmethod
    def from_json(cls, payload) -> "DeviceState":
        """
        Decode a JSON payload (str or bytes).

        Raises:
            ValueError: If the payload is not a JSON object
        """
        if isinstance(payload, bytes):
            payload = payload.decode('utf-8')
        return cls.from_dict(json.loads(payload))


_NON_DEFAULT_SKIP = (None, "", 0, 0.0)


def merge_device_state(destination: DeviceState, stub: DeviceState) -> DeviceState:
    """
    Merge a stub record onto a destination record in place.

    Every field for which the stub carries a non-default value is copied to the
    destination. Default values in the stub (empty string, zero) never
    overwrite what the destination already holds, so a known display name is
    never blanked by a metric-only stub.

    Returns:
        The destination, for chaining
    """
    for f in fields(DeviceState):
        value = getattr(stub, f.name)
        if value in _NON_DEFAULT_SKIP:
            continue
        setattr(destination, f.name, value)
    return destination
