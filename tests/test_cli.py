# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for the beacon-relay CLI.
"""

import sys
from unittest.mock import patch

import pytest
import redis
from click.testing import CliRunner

from beaconrelay.cli.main import cli
from beaconrelay.processing.models import DeviceState

BACKFILL_MODULE = sys.modules["beaconrelay.cli.commands.backfill"]
DEVICES_MODULE = sys.modules["beaconrelay.cli.commands.devices"]


@pytest.fixture
def config_file(tmp_path):
    devices = tmp_path / "devices.json"
    devices.write_text('[{"id": "AA:BB:CC:DD:EE:FF", "name": "Sauna"}, {"id": "11:22:33:44:55:66", "name": "Garage"}]')

    path = tmp_path / "config.yaml"
    path.write_text(f"""
reconcile:
  devices_file: {devices}
database:
  metrics_db: {tmp_path / "metrics.db"}
""")
    return path


class TestBackfillCommand:
    """Test the one-shot backfill."""

    def test_reports_published_and_skipped(self, config_file, redis_client):
        redis_client.store["device:aabbccddeeff"] = DeviceState(id="AA:BB:CC:DD:EE:FF").to_json().encode()

        with patch.object(BACKFILL_MODULE, "create_redis_client", return_value=redis_client):
            result = CliRunner().invoke(cli, ["--config", str(config_file), "backfill"])

        assert result.exit_code == 0, result.output
        assert "1 published, 1 skipped, 0 failed" in result.output
        redis_client.publish.assert_called_once()

    def test_exit_code_on_failure(self, config_file, redis_client):
        redis_client.store["device:aabbccddeeff"] = b'{"id":"AA:BB:CC:DD:EE:FF"}'
        redis_client.publish.side_effect = redis.ConnectionError("down")

        with patch.object(BACKFILL_MODULE, "create_redis_client", return_value=redis_client):
            result = CliRunner().invoke(cli, ["--config", str(config_file), "backfill"])

        assert result.exit_code == 1
        assert "1 failed" in result.output

    def test_exit_code_when_devices_file_missing(self, tmp_path, redis_client):
        path = tmp_path / "config.yaml"
        path.write_text(f"reconcile:\n  devices_file: {tmp_path / 'missing.json'}\n")

        with patch.object(BACKFILL_MODULE, "create_redis_client", return_value=redis_client):
            result = CliRunner().invoke(cli, ["--config", str(path), "backfill"])

        assert result.exit_code == 1
        assert "Error" in result.output
        redis_client.publish.assert_not_called()


class TestDevicesCommand:
    def test_lists_configured_devices(self, config_file, redis_client):
        state = DeviceState(id="AA:BB:CC:DD:EE:FF", display_name="Sauna", temperature=80.25)
        redis_client.store["device:aabbccddeeff"] = state.to_json().encode()

        with patch.object(DEVICES_MODULE, "create_redis_client", return_value=redis_client):
            result = CliRunner().invoke(
                cli, ["--config", str(config_file), "devices"], env={"COLUMNS": "200"}
            )

        assert result.exit_code == 0, result.output
        assert "Sauna" in result.output
        assert "80.25" in result.output
        assert "no data" in result.output


class TestInitDbCommand:
    def test_creates_metrics_table(self, config_file, tmp_path):
        result = CliRunner().invoke(cli, ["--config", str(config_file), "init-db"])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "metrics.db").exists()
