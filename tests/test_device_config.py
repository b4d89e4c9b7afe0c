# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for device-name configuration loading.
"""

import pytest

from beaconrelay.capture.shared.device_config import (
    DeviceConfigEntry,
    DeviceConfigError,
    load_device_config,
    parse_device_config,
)


class TestLoadDeviceConfig:
    """Test loading from files."""

    def test_json_list(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('[{"id": "AA:BB", "name": "Sauna"}, {"id": "CC:DD", "name": "Garage"}]')

        assert load_device_config(path) == [
            DeviceConfigEntry(id="AA:BB", display_name="Sauna"),
            DeviceConfigEntry(id="CC:DD", display_name="Garage"),
        ]

    def test_yaml_mapping_keeps_order(self, tmp_path):
        path = tmp_path / "devices.yaml"
        path.write_text('"CC:DD": Garage\n"AA:BB": Sauna\n')

        entries = load_device_config(path)

        assert [entry.id for entry in entries] == ["CC:DD", "AA:BB"]

    def test_display_name_key(self, tmp_path):
        path = tmp_path / "devices.yml"
        path.write_text("- id: 'AA:BB'\n  displayName: Sauna\n")

        assert load_device_config(path)[0].display_name == "Sauna"

    def test_yaml_mapping_with_unquoted_decimal_mac(self, tmp_path):
        path = tmp_path / "devices.yaml"
        path.write_text("12:34:56:12:34:56: Sauna\n")

        assert load_device_config(path) == [DeviceConfigEntry(id="12:34:56:12:34:56", display_name="Sauna")]

    def test_yaml_list_with_unquoted_decimal_mac(self, tmp_path):
        path = tmp_path / "devices.yaml"
        path.write_text("- id: 12:34:56:12:34:56\n  name: Sauna\n")

        assert load_device_config(path) == [DeviceConfigEntry(id="12:34:56:12:34:56", display_name="Sauna")]

    def test_yaml_integer_id_is_rejected(self, tmp_path):
        path = tmp_path / "devices.yaml"
        path.write_text("- id: 1234\n  name: Sauna\n")

        with pytest.raises(DeviceConfigError, match="quote"):
            load_device_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(DeviceConfigError):
            load_device_config(tmp_path / "nope.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[{")

        with pytest.raises(DeviceConfigError):
            load_device_config(path)


class TestParseDeviceConfig:
    def test_empty(self):
        assert parse_device_config(None) == []

    def test_entry_without_id(self):
        with pytest.raises(DeviceConfigError):
            parse_device_config([{"name": "Sauna"}])

    def test_non_string_mapping_id(self):
        with pytest.raises(DeviceConfigError, match="quote"):
            parse_device_config({9783981296: "Sauna"})

    def test_missing_name_is_empty(self):
        assert parse_device_config([{"id": "AA"}]) == [DeviceConfigEntry(id="AA", display_name="")]

    def test_unsupported_type(self):
        with pytest.raises(DeviceConfigError):
            parse_device_config("AA:BB")
