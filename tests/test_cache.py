# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for DeviceCache.
"""

import threading

import pytest

from beaconrelay.processing.cache import CacheKind, DeviceCache
from beaconrelay.processing.models import DeviceState


class TestDeviceCacheBasics:
    """Test get/set semantics."""

    def test_miss(self):
        cache = DeviceCache()
        assert cache.get(CacheKind.DISPLAY_NAME, "AA") == (None, False)

    def test_hit(self):
        cache = DeviceCache()
        cache.set(CacheKind.DISPLAY_NAME, "AA", "Sauna")
        assert cache.get(CacheKind.DISPLAY_NAME, "AA") == ("Sauna", True)

    def test_kinds_do_not_collide(self):
        cache = DeviceCache()
        cache.set_display_name("AA", "Sauna")
        cache.set_last_timestamp("AA", 1000)
        cache.set_last_record("AA", DeviceState(id="AA", temperature=20.0))

        assert cache.get_display_name("AA") == "Sauna"
        assert cache.get_last_timestamp("AA") == 1000
        assert cache.get_last_record("AA").temperature == 20.0
        assert len(cache) == 3

    def test_defaults(self):
        cache = DeviceCache()
        assert cache.get_display_name("AA") == ""
        assert cache.get_last_timestamp("AA") is None
        assert cache.get_last_record("AA") is None

    def test_overwrite(self):
        cache = DeviceCache()
        cache.set_display_name("AA", "Old")
        cache.set_display_name("AA", "New")
        assert cache.get_display_name("AA") == "New"

    def test_device_ids_by_kind(self):
        cache = DeviceCache()
        cache.set_display_name("AA", "Sauna")
        cache.set_display_name("BB", "Garage")
        cache.set_last_timestamp("CC", 5)

        assert sorted(cache.device_ids(CacheKind.DISPLAY_NAME)) == ["AA", "BB"]
        assert cache.device_ids(CacheKind.LAST_TIMESTAMP) == ["CC"]


class TestDeviceCacheTyping:
    """Test that each kind only accepts its value type."""

    def test_rejects_wrong_name_type(self):
        with pytest.raises(TypeError):
            DeviceCache().set(CacheKind.DISPLAY_NAME, "AA", 42)

    def test_rejects_wrong_timestamp_type(self):
        with pytest.raises(TypeError):
            DeviceCache().set(CacheKind.LAST_TIMESTAMP, "AA", "1000")

    def test_rejects_bool_timestamp(self):
        with pytest.raises(TypeError):
            DeviceCache().set(CacheKind.LAST_TIMESTAMP, "AA", True)

    def test_rejects_wrong_record_type(self):
        with pytest.raises(TypeError):
            DeviceCache().set(CacheKind.LAST_RECORD, "AA", {"id": "AA"})


class TestDeviceCacheIsolation:
    """Test that cached records are not shared with callers."""

    def test_mutating_stored_record_does_not_change_cache(self):
        cache = DeviceCache()
        state = DeviceState(id="AA", temperature=20.0)
        cache.set_last_record("AA", state)

        state.temperature = 99.0

        assert cache.get_last_record("AA").temperature == 20.0

    def test_mutating_returned_record_does_not_change_cache(self):
        cache = DeviceCache()
        cache.set_last_record("AA", DeviceState(id="AA", temperature=20.0))

        cache.get_last_record("AA").temperature = 99.0

        assert cache.get_last_record("AA").temperature == 20.0


class TestDeviceCacheConcurrency:
    def test_concurrent_writers(self):
        cache = DeviceCache()

        def writer(prefix):
            for i in range(200):
                cache.set_last_timestamp(f"{prefix}-{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache.device_ids(CacheKind.LAST_TIMESTAMP)) == 800
