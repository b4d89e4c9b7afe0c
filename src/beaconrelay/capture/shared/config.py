# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Configuration management for the relay service.

Settings come from a YAML file and are then overridden by environment
variables, so a container can run with only the environment set.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .channels import MEASUREMENT_STREAM

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".beacon-relay"


@dataclass
class RedisConfig:
    """Redis connection settings."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0


@dataclass
class StreamConfig:
    """Settings for reading a Redis Stream."""

    name: str = MEASUREMENT_STREAM
    count: int = 100
    block_ms: int = 1000


@dataclass
class Config:
    """Relay service configuration container."""

    redis: RedisConfig = field(default_factory=RedisConfig)
    measurements: StreamConfig = field(default_factory=StreamConfig)

    # Reconciliation settings
    reconcile_interval: float = 60.0  # seconds
    devices_file: Path = Path("./config.json")

    # Relational metrics archive
    metrics_db: Path = DEFAULT_CONFIG_DIR / "metrics.db"
    metrics_table: str = "ruuvitag_metrics"
    archive_enabled: bool = True

    log_level: str = "INFO"

    config_path: Optional[Path] = None

    def __post_init__(self):
        """Load from file (if present) and apply environment overrides."""
        if self.config_path is None:
            self.config_path = DEFAULT_CONFIG_DIR / "config.yaml"
        self.config_path = Path(self.config_path).expanduser()

        if self.config_path.exists():
            self.load_from_file()

        self.load_from_env()

    def load_from_file(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not load config file {self.config_path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.config_path}: top level is not a mapping")
            return

        redis_section = self._section(data, "redis")
        self.redis = RedisConfig(
            host=redis_section.get("host", self.redis.host),
            port=int(redis_section.get("port", self.redis.port)),
            db=int(redis_section.get("db", self.redis.db)),
            password=redis_section.get("password", self.redis.password),
            socket_timeout=float(redis_section.get("socket_timeout", self.redis.socket_timeout)),
            socket_connect_timeout=float(
                redis_section.get("socket_connect_timeout", self.redis.socket_connect_timeout)
            ),
        )

        streams = self._section(data, "streams")
        measurements = self._section(streams, "measurements")
        self.measurements = StreamConfig(
            name=measurements.get("name", self.measurements.name),
            count=int(measurements.get("count", self.measurements.count)),
            block_ms=int(measurements.get("block_ms", self.measurements.block_ms)),
        )

        reconcile = self._section(data, "reconcile")
        self.reconcile_interval = float(reconcile.get("interval", self.reconcile_interval))
        if "devices_file" in reconcile:
            self.devices_file = Path(reconcile["devices_file"]).expanduser()

        database = self._section(data, "database")
        if "metrics_db" in database:
            self.metrics_db = Path(database["metrics_db"]).expanduser()
        self.metrics_table = database.get("metrics_table", self.metrics_table)

        archive = self._section(data, "archive")
        self.archive_enabled = bool(archive.get("enabled", self.archive_enabled))

        logging_section = self._section(data, "logging")
        self.log_level = logging_section.get("level", self.log_level)

    @staticmethod
    def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
        """Return a config section, or an empty one if missing or not a mapping."""
        section = data.get(name, {})
        if not isinstance(section, dict):
            logger.warning(f"Config section '{name}' is not a mapping, using defaults")
            return {}
        return section

    def load_from_env(self) -> None:
        """Load configuration from environment variables."""
        if env_host := os.environ.get("REDIS_MASTER_HOST"):
            self.redis.host = env_host

        if env_port := os.environ.get("REDIS_MASTER_PORT"):
            self.redis.port = int(env_port)

        if env_password := os.environ.get("REDIS_MASTER_PASSWORD"):
            self.redis.password = env_password

        if env_table := os.environ.get("BEACON_METRICS_TABLE"):
            self.metrics_table = env_table

        if env_devices := os.environ.get("BEACON_DEVICES_FILE"):
            self.devices_file = Path(env_devices).expanduser()

        if env_level := os.environ.get("BEACON_LOG_LEVEL"):
            self.log_level = env_level

    def validate(self) -> bool:
        """Validate configuration values."""
        errors = []

        if self.reconcile_interval <= 0:
            errors.append("reconcile.interval must be positive")

        if self.measurements.block_ms < 0:
            errors.append("streams.measurements.block_ms must be non-negative")

        if not self.metrics_table:
            errors.append("database.metrics_table must not be empty")

        for error in errors:
            logger.error(f"Configuration error: {error}")

        return not errors
