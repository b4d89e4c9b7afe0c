# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
In-process device cache.

Holds, per raw device id, the last known display name, the last enriched
record and the last-seen timestamp. Entries never expire and are never
evicted; the cache lives as long as the process.
"""

import copy
import threading
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .models import DeviceState


class CacheKind(Enum):
    """Namespaces for cached facts about a device."""

    DISPLAY_NAME = "name"
    LAST_RECORD = "device"
    LAST_TIMESTAMP = "lastTimestamp"


_VALUE_TYPES = {
    CacheKind.DISPLAY_NAME: str,
    CacheKind.LAST_RECORD: DeviceState,
    CacheKind.LAST_TIMESTAMP: int,
}


class DeviceCache:
    """
    Thread-safe, strongly typed device cache.

    The measurement consumer and the reconciliation timer both read and write
    the cache from different threads; every operation takes the internal lock.
    Records are deep-copied in and out so callers never share a mutable
    DeviceState with the cache.
    """

    def __init__(self):
        self._entries: Dict[Tuple[CacheKind, str], Any] = {}
        self._lock = threading.Lock()

    def get(self, kind: CacheKind, device_id: str) -> Tuple[Any, bool]:
        """
        Look up a cached value.

        Args:
            kind: Which fact to read
            device_id: Raw device id

        Returns:
            Tuple of (value, found); value is None when not found
        """
        with self._lock:
            key = (kind, device_id)
            if key not in self._entries:
                return None, False
            return copy.deepcopy(self._entries[key]), True

    def set(self, kind: CacheKind, device_id: str, value: Any) -> None:
        """
        Store a value, replacing any previous one.

        Raises:
            TypeError: If value is not the type stored under `kind`
        """
        expected = _VALUE_TYPES[kind]
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise TypeError(
                f"{kind.name} values must be {expected.__name__}, got {type(value).__name__}"
            )
        with self._lock:
            self._entries[(kind, device_id)] = copy.deepcopy(value)

    def device_ids(self, kind: CacheKind) -> List[str]:
        """Snapshot of the device ids that have a value under `kind`."""
        with self._lock:
            return [device_id for cached_kind, device_id in self._entries if cached_kind == kind]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # Typed helpers

    def get_display_name(self, device_id: str) -> str:
        """Cached display name, or an empty string if unknown."""
        value, found = self.get(CacheKind.DISPLAY_NAME, device_id)
        return value if found else ""

    def set_display_name(self, device_id: str, name: str) -> None:
        self.set(CacheKind.DISPLAY_NAME, device_id, name)

    def get_last_timestamp(self, device_id: str) -> Optional[int]:
        value, found = self.get(CacheKind.LAST_TIMESTAMP, device_id)
        return value if found else None

    def set_last_timestamp(self, device_id: str, timestamp_millis: int) -> None:
        self.set(CacheKind.LAST_TIMESTAMP, device_id, timestamp_millis)

    def get_last_record(self, device_id: str) -> Optional[DeviceState]:
        value, found = self.get(CacheKind.LAST_RECORD, device_id)
        return value if found else None

    def set_last_record(self, device_id: str, state: DeviceState) -> None:
        self.set(CacheKind.LAST_RECORD, device_id, state)
