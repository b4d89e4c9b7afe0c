# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Measurement consumer loop.

Pulls measurements from a source and runs the enricher on each one, strictly
one at a time. A failure on one measurement is logged and counted; the loop
keeps going.
"""

import asyncio
import logging
from typing import Any, Dict, List, Protocol

import redis

from ..capture.measurements import RawMeasurement
from .enricher import MeasurementEnricher
from .relay import RelayError

logger = logging.getLogger(__name__)


class MeasurementSource(Protocol):
    def read(self, count: int = 100, block_ms: int = 1000) -> List[RawMeasurement]:
        ...


class MeasurementConsumer:
    """Consumes raw measurements and relays enriched device state."""

    def __init__(
        self,
        source: MeasurementSource,
        enricher: MeasurementEnricher,
        count: int = 100,
        block_ms: int = 1000,
    ):
        """
        Initialize consumer.

        Args:
            source: Where measurements come from
            enricher: Enricher that relays each measurement
            count: Maximum measurements per read
            block_ms: How long a read may block waiting for data
        """
        self.source = source
        self.enricher = enricher
        self.count = count
        self.block_ms = block_ms
        self.running = False
        self.stats: Dict[str, Any] = {
            'processed': 0,
            'failed': 0,
            'errors': [],
        }

    def process(self, measurements: List[RawMeasurement]) -> int:
        """
        Enrich and relay a batch, in order.

        Returns:
            Number of measurements relayed successfully
        """
        relayed = 0
        for measurement in measurements:
            try:
                self.enricher.handle(measurement)
            except RelayError as e:
                logger.error(f"Failed to relay measurement from {measurement.device_id}: {e}")
                self.stats['failed'] += 1
                self.stats['errors'].append(str(e))
                # Keep the error list bounded
                del self.stats['errors'][:-100]
                continue
            relayed += 1
            self.stats['processed'] += 1
        return relayed

    async def run(self) -> None:
        """Main consumer loop; blocking reads and relays run in a worker thread."""
        self.running = True
        logger.info("Measurement consumer started")

        while self.running:
            try:
                measurements = await asyncio.to_thread(self.source.read, self.count, self.block_ms)
                if measurements:
                    await asyncio.to_thread(self.process, measurements)

            except asyncio.CancelledError:
                logger.info("Consumer cancelled")
                break
            except redis.ConnectionError as e:
                logger.warning(f"Redis connection lost, retrying: {e}")
                await asyncio.sleep(5)
            except Exception as e:
                logger.error(f"Error in consumer loop: {e}", exc_info=True)
                await asyncio.sleep(1)

        logger.info("Measurement consumer stopped")

    def stop(self) -> None:
        """Stop the consumer."""
        self.running = False
