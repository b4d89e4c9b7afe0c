# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Static device-name configuration.

The device file binds hardware addresses to display names. It is re-read on
every reconciliation tick, so edits take effect without a restart.

Accepted shapes (JSON or YAML)::

    [{"id": "AA:BB:CC:DD:EE:FF", "name": "Sauna"}, ...]

    {"AA:BB:CC:DD:EE:FF": "Sauna", ...}
"""

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Union

import yaml


class DeviceConfigError(Exception):
    """Raised when the device configuration cannot be read or parsed."""


class DeviceConfigLoader(yaml.SafeLoader):
    """
    Safe YAML loader that keeps colon-separated digits as strings.

    YAML 1.1 reads an unquoted all-decimal MAC such as 12:34:56:12:34:56 as a
    base-60 integer. Integers are resolved only from their plain forms here.
    """


DeviceConfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:int"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
DeviceConfigLoader.add_implicit_resolver(
    "tag:yaml.org,2002:int",
    re.compile(r"^(?:[-+]?0b[0-1_]+|[-+]?0[0-7_]+|[-+]?(?:0|[1-9][0-9_]*)|[-+]?0x[0-9a-fA-F_]+)$"),
    list("-+0123456789"),
)


@dataclass(frozen=True)
class DeviceConfigEntry:
    """One configured device: raw id and the name shown for it."""

    id: str
    display_name: str


def _parse_entry(item: Any, index: int) -> DeviceConfigEntry:
    if not isinstance(item, dict):
        raise DeviceConfigError(f"Device entry {index} is not an object: {item!r}")

    device_id = item.get("id")
    if device_id is None or device_id == "":
        raise DeviceConfigError(f"Device entry {index} has no id")
    if not isinstance(device_id, str):
        raise DeviceConfigError(
            f"Device entry {index} id {device_id!r} is not a string; quote it in the config file"
        )

    name = item.get("name", item.get("displayName", ""))
    return DeviceConfigEntry(id=device_id, display_name=str(name or ""))


def parse_device_config(data: Any) -> List[DeviceConfigEntry]:
    """
    Convert decoded JSON/YAML content into device entries.

    Args:
        data: Decoded file content (list of objects or id -> name mapping)

    Returns:
        Entries in file order

    Raises:
        DeviceConfigError: If the content has an unsupported shape
    """
    if data is None:
        return []

    if isinstance(data, dict):
        entries = []
        for device_id, name in data.items():
            if not isinstance(device_id, str) or not device_id:
                raise DeviceConfigError(
                    f"Device id {device_id!r} is not a string; quote it in the config file"
                )
            entries.append(DeviceConfigEntry(id=device_id, display_name=str(name or "")))
        return entries

    if isinstance(data, list):
        return [_parse_entry(item, index) for index, item in enumerate(data)]

    raise DeviceConfigError(f"Unsupported device config type: {type(data).__name__}")


def load_device_config(path: Union[str, Path]) -> List[DeviceConfigEntry]:
    """
    Load device entries from a JSON or YAML file.

    Args:
        path: Path to the device file (.json, .yaml or .yml)

    Returns:
        Entries in file order

    Raises:
        DeviceConfigError: If the file is missing or malformed
    """
    path = Path(path).expanduser()

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DeviceConfigError(f"Cannot read device config {path}: {e}") from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.load(text, Loader=DeviceConfigLoader)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DeviceConfigError(f"Malformed device config {path}: {e}") from e

    return parse_device_config(data)
