# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Metrics archiver.

Subscribes to the backfill sample channels (insert:*) and writes each sample
into the relational metrics table, giving one long-term row set per device
per reconciliation interval.
"""

import asyncio
import logging
import sqlite3
from typing import Any, Dict, Optional

import redis

from ..capture.shared.channels import INSERT_CHANNEL_PATTERN, parse_insert_channel
from .database.writer import MetricsWriter
from .models import DeviceState

logger = logging.getLogger(__name__)


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return str(value)


class MetricsArchiver:
    """Writes backfill samples published on Redis into the metrics table."""

    def __init__(
        self,
        redis_client: redis.Redis,
        writer: MetricsWriter,
        pattern: str = INSERT_CHANNEL_PATTERN,
        poll_timeout: float = 1.0,
    ):
        """
        Initialize archiver.

        Args:
            redis_client: Redis client instance
            writer: Metrics writer for the relational table
            pattern: Channel pattern to subscribe to
            poll_timeout: Seconds to wait for a message per poll
        """
        self.redis_client = redis_client
        self.writer = writer
        self.pattern = pattern
        self.poll_timeout = poll_timeout
        self.running = False
        self.stats = {'archived': 0, 'failed': 0}
        self._pubsub: Optional[redis.client.PubSub] = None

    def handle_message(self, message: Optional[Dict[str, Any]]) -> bool:
        """
        Archive one pub/sub message.

        Non-data messages (subscribe confirmations) are ignored. Undecodable
        payloads and database errors are logged and counted.

        Returns:
            True if rows were written
        """
        if not message or message.get('type') != 'pmessage':
            return False

        channel = _decode(message.get('channel', b''))
        try:
            _, normalized_id = parse_insert_channel(channel)
            state = DeviceState.from_json(message["data"])
        except (KeyError, UnicodeDecodeError, ValueError) as e:
            logger.warning(f"Skipping undecodable sample on {channel}: {e}")
            self.stats['failed'] += 1
            return False

        if state.normalized_id != normalized_id:
            logger.warning(f"Skipping sample on {channel}: payload belongs to {state.normalized_id}")
            self.stats['failed'] += 1
            return False

        try:
            self.writer.insert_device(state)
        except sqlite3.Error as e:
            logger.error(f"Failed to archive sample {channel}: {e}")
            self.stats['failed'] += 1
            return False

        self.stats['archived'] += 1
        return True

    def _poll(self) -> bool:
        message = self._pubsub.get_message(ignore_subscribe_messages=True, timeout=self.poll_timeout)
        return self.handle_message(message)

    async def run(self) -> None:
        """Subscribe and archive samples until stopped."""
        self.running = True
        self._pubsub = self.redis_client.pubsub()
        self._pubsub.psubscribe(self.pattern)
        logger.info(f"Metrics archiver subscribed to {self.pattern}")

        try:
            while self.running:
                try:
                    await asyncio.to_thread(self._poll)
                except asyncio.CancelledError:
                    break
                except redis.ConnectionError as e:
                    logger.warning(f"Redis connection lost, retrying: {e}")
                    await asyncio.sleep(5)
                except Exception as e:
                    logger.error(f"Error in archiver loop: {e}", exc_info=True)
                    await asyncio.sleep(1)
        finally:
            self._pubsub.close()
            self._pubsub = None

        logger.info("Metrics archiver stopped")

    def stop(self) -> None:
        """Stop the archiver."""
        self.running = False
