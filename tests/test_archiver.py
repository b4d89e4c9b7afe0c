# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for MetricsArchiver.
"""

import sqlite3
from unittest.mock import Mock

from beaconrelay.processing.archiver import MetricsArchiver
from beaconrelay.processing.models import DeviceState


def sample_message(channel, state):
    return {
        'type': 'pmessage',
        'pattern': b'insert:*',
        'channel': channel.encode('utf-8'),
        'data': state.to_json().encode('utf-8'),
    }


class TestHandleMessage:
    """Test archiving of individual samples."""

    def test_archives_sample(self):
        writer = Mock()
        archiver = MetricsArchiver(Mock(), writer)
        state = DeviceState(id="AA:BB", temperature=20.0)

        assert archiver.handle_message(sample_message("insert:1000:aabb", state)) is True

        writer.insert_device.assert_called_once_with(state)
        assert archiver.stats == {'archived': 1, 'failed': 0}

    def test_ignores_non_data_messages(self):
        writer = Mock()
        archiver = MetricsArchiver(Mock(), writer)

        assert archiver.handle_message(None) is False
        assert archiver.handle_message({'type': 'psubscribe', 'channel': b'insert:*', 'data': 1}) is False
        writer.insert_device.assert_not_called()

    def test_skips_undecodable_payload(self):
        writer = Mock()
        archiver = MetricsArchiver(Mock(), writer)
        message = {'type': 'pmessage', 'channel': b'insert:1000:aabb', 'data': b'not json'}

        assert archiver.handle_message(message) is False
        assert archiver.stats['failed'] == 1
        writer.insert_device.assert_not_called()

    def test_skips_payload_for_other_device(self):
        writer = Mock()
        archiver = MetricsArchiver(Mock(), writer)

        message = sample_message("insert:1000:ccdd", DeviceState(id="AA:BB"))

        assert archiver.handle_message(message) is False
        writer.insert_device.assert_not_called()

    def test_database_error_is_counted(self):
        writer = Mock()
        writer.insert_device.side_effect = sqlite3.OperationalError("locked")
        archiver = MetricsArchiver(Mock(), writer)

        assert archiver.handle_message(sample_message("insert:1000:aabb", DeviceState(id="AA:BB"))) is False
        assert archiver.stats == {'archived': 0, 'failed': 1}
