# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Raw beacon measurements and the sources that deliver them.

The radio scanner itself runs outside this process. It hands decoded
advertisements over either through a Redis Stream (one flat entry per
measurement) or, when embedded, through an in-process queue.
"""

import logging
import math
import queue
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping

import redis

from .shared.channels import MEASUREMENT_STREAM

logger = logging.getLogger(__name__)


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return str(value)


@dataclass(frozen=True)
class RawMeasurement:
    """
    One decoded beacon advertisement.

    Units are as the sensor reports them: pressure in hundredths of hPa
    (Pa), battery in millivolts.
    """

    device_id: str
    format_version: int
    temperature: float
    humidity: float
    pressure: int
    acceleration_x: float
    acceleration_y: float
    acceleration_z: float
    battery_millivolts: int

    @classmethod
    def from_fields(cls, fields: Mapping[Any, Any]) -> "RawMeasurement":
        """
        Decode a flat Redis Stream entry.

        Args:
            fields: Stream entry fields (bytes or str keys and values)

        Raises:
            ValueError: If a field is missing, not numeric or not finite
        """
        data = {_decode(key): _decode(value) for key, value in fields.items()}

        try:
            measurement = cls(
                device_id=data['device_id'],
                format_version=int(data.get('format_version', 0)),
                temperature=float(data['temperature']),
                humidity=float(data['humidity']),
                pressure=int(float(data['pressure'])),
                acceleration_x=float(data.get('acceleration_x', 0.0)),
                acceleration_y=float(data.get('acceleration_y', 0.0)),
                acceleration_z=float(data.get('acceleration_z', 0.0)),
                battery_millivolts=int(float(data['battery_millivolts'])),
            )
        except KeyError as e:
            raise ValueError(f"Measurement missing field {e.args[0]}") from e
        except (TypeError, OverflowError) as e:
            raise ValueError(f"Measurement has an invalid value: {e}") from e

        for name in ("temperature", "humidity", "acceleration_x", "acceleration_y", "acceleration_z"):
            if not math.isfinite(getattr(measurement, name)):
                raise ValueError(f"Measurement field {name} is not finite")
        return measurement

    def to_fields(self) -> Dict[str, str]:
        """Encode as a flat mapping suitable for XADD."""
        return {key: str(value) for key, value in asdict(self).items()}


class QueueSource:
    """
    In-process measurement source backed by an unbounded queue.

    There is no backpressure: if producers outpace the consumer, the queue
    keeps growing.
    """

    def __init__(self):
        self._queue: "queue.Queue[RawMeasurement]" = queue.Queue()

    def put(self, measurement: RawMeasurement) -> None:
        self._queue.put(measurement)

    def read(self, count: int = 100, block_ms: int = 1000) -> List[RawMeasurement]:
        """
        Take up to `count` queued measurements.

        Blocks up to `block_ms` for the first one, then drains without waiting.
        """
        try:
            first = self._queue.get(timeout=block_ms / 1000.0)
        except queue.Empty:
            return []

        batch = [first]
        while len(batch) < count:
            try:
                batch.append(self._queue.get_nowait())
            except queue.Empty:
                break
        return batch

    def qsize(self) -> int:
        return self._queue.qsize()


class RedisStreamSource:
    """Reads measurements appended to a Redis Stream by the scanner bridge."""

    def __init__(
        self,
        redis_client: redis.Redis,
        stream_name: str = MEASUREMENT_STREAM,
        last_id: str = "$",
    ):
        """
        Initialize stream source.

        Args:
            redis_client: Redis client instance
            stream_name: Stream to read from
            last_id: Start position; "$" reads only entries added from now on
        """
        self.redis_client = redis_client
        self.stream_name = stream_name
        self.last_id = last_id
        self.malformed = 0

    def read(self, count: int = 100, block_ms: int = 1000) -> List[RawMeasurement]:
        """
        Read the next batch of measurements.

        Malformed entries are logged and skipped.

        Raises:
            redis.RedisError: If the stream cannot be read
        """
        messages = self.redis_client.xread(
            {self.stream_name: self.last_id},
            count=count,
            block=block_ms,
        )
        if not messages:
            return []

        result = []
        for _stream, entries in messages:
            for message_id, fields in entries:
                self.last_id = _decode(message_id)
                try:
                    result.append(RawMeasurement.from_fields(fields))
                except ValueError as e:
                    self.malformed += 1
                    logger.warning(f"Skipping malformed measurement {self.last_id}: {e}")
        return result
