# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Relay sink: publish a payload and store it under the same key.

Publish comes first so live subscribers are served even if the durable write
fails afterwards. A subscriber may therefore see a payload whose stored copy
never landed.
"""

import logging
from typing import Optional

import redis

from .models import DeviceState

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """
    A relay operation failed.

    Attributes:
        key: Channel/key the operation targeted
        stage: Which step failed ('encode', 'publish', 'store' or 'fetch')
    """

    def __init__(self, key: str, stage: str, cause: Optional[BaseException] = None):
        self.key = key
        self.stage = stage
        self.cause = cause
        message = f"Relay {stage} failed for {key}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class RelaySink:
    """Publishes and durably stores relay payloads in Redis."""

    def __init__(self, redis_client: redis.Redis):
        """
        Initialize relay sink.

        Args:
            redis_client: Redis client instance
        """
        self.redis_client = redis_client

    def publish_and_store(self, key: str, payload: str) -> None:
        """
        Publish `payload` on channel `key`, then SET it at `key` with no expiry.

        Args:
            key: Channel name and storage key
            payload: Encoded record

        Raises:
            RelayError: If publish fails (store is then not attempted) or if
                store fails after a successful publish
        """
        try:
            self.redis_client.publish(key, payload)
        except redis.RedisError as e:
            raise RelayError(key, "publish", e) from e

        try:
            self.redis_client.set(key, payload)
        except redis.RedisError as e:
            raise RelayError(key, "store", e) from e

        logger.debug(f"Relayed {len(payload)} bytes to {key}")

    def relay_state(self, key: str, state: DeviceState) -> str:
        """
        Encode a device state and relay it.

        Returns:
            The encoded payload

        Raises:
            RelayError: If encoding, publish or store fails
        """
        try:
            payload = state.to_json()
        except (TypeError, ValueError) as e:
            raise RelayError(key, "encode", e) from e

        self.publish_and_store(key, payload)
        return payload

    def fetch(self, key: str) -> Optional[str]:
        """
        Read the stored payload at `key`.

        Returns:
            Payload as text, or None if nothing is stored

        Raises:
            RelayError: If the read itself fails
        """
        try:
            value = self.redis_client.get(key)
        except redis.RedisError as e:
            raise RelayError(key, "fetch", e) from e

        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode('utf-8')
        return str(value)
