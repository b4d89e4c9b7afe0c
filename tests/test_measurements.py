# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for raw measurements and measurement sources.
"""

from unittest.mock import Mock

import pytest

from beaconrelay.capture.measurements import QueueSource, RawMeasurement, RedisStreamSource


class TestRawMeasurement:
    """Test stream entry decoding."""

    def test_from_byte_fields(self, measurement):
        fields = {key.encode(): value.encode() for key, value in measurement.to_fields().items()}
        assert RawMeasurement.from_fields(fields) == measurement

    def test_optional_fields_default(self):
        decoded = RawMeasurement.from_fields({
            'device_id': 'AA:BB',
            'temperature': '20.0',
            'humidity': '50',
            'pressure': '100000',
            'battery_millivolts': '2950',
        })
        assert decoded.format_version == 0
        assert decoded.acceleration_x == 0.0
        assert decoded.pressure == 100000

    def test_missing_field(self):
        with pytest.raises(ValueError, match="temperature"):
            RawMeasurement.from_fields({'device_id': 'AA'})

    def test_non_numeric_field(self):
        with pytest.raises(ValueError):
            RawMeasurement.from_fields({
                'device_id': 'AA',
                'temperature': 'warm',
                'humidity': '50',
                'pressure': '100000',
                'battery_millivolts': '2950',
            })

    def test_infinite_pressure_is_rejected(self, measurement):
        fields = dict(measurement.to_fields(), pressure="inf")
        with pytest.raises(ValueError):
            RawMeasurement.from_fields(fields)


class TestQueueSource:
    def test_empty_read_times_out(self):
        assert QueueSource().read(block_ms=1) == []

    def test_drains_up_to_count(self, measurement):
        source = QueueSource()
        for _ in range(5):
            source.put(measurement)

        assert len(source.read(count=3, block_ms=1)) == 3
        assert source.qsize() == 2


class TestRedisStreamSource:
    """Test reading from the measurement stream."""

    def test_reads_and_tracks_last_id(self, measurement):
        client = Mock()
        client.xread.return_value = [
            (b"beacon:measurements", [(b"1-0", measurement.to_fields()), (b"2-0", measurement.to_fields())]),
        ]
        source = RedisStreamSource(client)

        batch = source.read(count=10, block_ms=500)

        assert batch == [measurement, measurement]
        assert source.last_id == "2-0"
        client.xread.assert_called_once_with({"beacon:measurements": "$"}, count=10, block=500)

    def test_next_read_continues_from_last_id(self, measurement):
        client = Mock()
        client.xread.side_effect = [
            [(b"beacon:measurements", [(b"7-1", measurement.to_fields())])],
            None,
        ]
        source = RedisStreamSource(client)

        source.read()
        assert source.read() == []
        assert client.xread.call_args[0][0] == {"beacon:measurements": "7-1"}

    def test_skips_malformed_entries(self, measurement):
        client = Mock()
        client.xread.return_value = [
            (b"beacon:measurements", [(b"1-0", {b"device_id": b"AA"}), (b"2-0", measurement.to_fields())]),
        ]
        source = RedisStreamSource(client)

        assert source.read() == [measurement]
        assert source.malformed == 1

    def test_non_finite_entry_does_not_drop_batch(self, measurement):
        bad_pressure = dict(measurement.to_fields(), pressure="inf")
        bad_temperature = dict(measurement.to_fields(), temperature="nan")
        client = Mock()
        client.xread.return_value = [
            (b"beacon:measurements", [
                (b"1-0", measurement.to_fields()),
                (b"2-0", bad_pressure),
                (b"3-0", bad_temperature),
                (b"4-0", measurement.to_fields()),
            ]),
        ]
        source = RedisStreamSource(client)

        assert source.read() == [measurement, measurement]
        assert source.malformed == 2
        assert source.last_id == "4-0"
