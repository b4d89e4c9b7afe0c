# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Main server for the beacon relay.

Wires the device cache, enricher, relay sink, reconciliation scheduler and
metrics archiver together and runs them until terminated.
"""

import asyncio
import functools
import logging
import signal
import sys
from typing import Optional

import redis

from ..capture.measurements import RedisStreamSource
from ..capture.shared.config import Config
from ..capture.shared.device_config import load_device_config
from .archiver import MetricsArchiver
from .cache import DeviceCache
from .consumer import MeasurementConsumer
from .database.schema import create_schema
from .database.sqlite_client import SQLiteClient
from .database.writer import MetricsWriter
from .enricher import MeasurementEnricher
from .reconciler import ReconciliationScheduler
from .relay import RelaySink

logger = logging.getLogger(__name__)


def create_redis_client(config: Config) -> redis.Redis:
    """Build a Redis client from configuration."""
    redis_config = config.redis
    return redis.Redis(
        host=redis_config.host,
        port=redis_config.port,
        db=redis_config.db,
        password=redis_config.password,
        socket_timeout=redis_config.socket_timeout,
        socket_connect_timeout=redis_config.socket_connect_timeout,
        decode_responses=False,  # We handle encoding/decoding
    )


def build_scheduler(config: Config, cache: DeviceCache, relay: RelaySink) -> ReconciliationScheduler:
    """Reconciliation scheduler reading device names from the configured file."""
    return ReconciliationScheduler(
        cache=cache,
        relay=relay,
        config_loader=functools.partial(load_device_config, config.devices_file),
        interval=config.reconcile_interval,
    )


class RelayServer:
    """
    Main server for beacon relaying.

    Manages:
    - Redis connection
    - SQLite metrics archive
    - Measurement consumer
    - Reconciliation scheduler
    - Metrics archiver
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize relay server.

        Args:
            config: Configuration instance (creates default if not provided)
        """
        self.config = config or Config()

        self.redis_client: Optional[redis.Redis] = None
        self.sqlite_client: Optional[SQLiteClient] = None
        self.metrics_writer: Optional[MetricsWriter] = None
        self.cache: Optional[DeviceCache] = None
        self.relay: Optional[RelaySink] = None
        self.enricher: Optional[MeasurementEnricher] = None
        self.scheduler: Optional[ReconciliationScheduler] = None
        self.consumer: Optional[MeasurementConsumer] = None
        self.archiver: Optional[MetricsArchiver] = None
        self._tasks = []
        self.running = False

    def _initialize_redis(self) -> None:
        """Initialize Redis connection."""
        logger.info("Initializing Redis connection")

        self.redis_client = create_redis_client(self.config)

        try:
            self.redis_client.ping()
            logger.info("Redis connection established")
        except redis.RedisError as e:
            raise RuntimeError(f"Failed to connect to Redis: {e}") from e

    def _initialize_database(self) -> None:
        """Initialize SQLite metrics archive."""
        if not self.config.archive_enabled:
            logger.info("Metrics archive is disabled")
            return

        logger.info(f"Initializing metrics database: {self.config.metrics_db}")

        self.sqlite_client = SQLiteClient(str(self.config.metrics_db))
        self.sqlite_client.initialize_database()
        create_schema(self.sqlite_client, self.config.metrics_table)
        self.metrics_writer = MetricsWriter(self.sqlite_client, self.config.metrics_table)

        logger.info("Metrics database initialized")

    def _initialize_pipeline(self) -> None:
        """Initialize cache, enricher, scheduler and consumer."""
        logger.info("Initializing relay pipeline")

        self.cache = DeviceCache()
        self.relay = RelaySink(self.redis_client)
        self.enricher = MeasurementEnricher(self.cache, self.relay)
        self.scheduler = build_scheduler(self.config, self.cache, self.relay)

        stream_config = self.config.measurements
        source = RedisStreamSource(self.redis_client, stream_name=stream_config.name)
        self.consumer = MeasurementConsumer(
            source=source,
            enricher=self.enricher,
            count=stream_config.count,
            block_ms=stream_config.block_ms,
        )

        if self.metrics_writer is not None:
            self.archiver = MetricsArchiver(self.redis_client, self.metrics_writer)

        logger.info("Relay pipeline initialized")

    async def start(self) -> None:
        """Start the server."""
        if self.running:
            logger.warning("Server already running")
            return

        logger.info("Starting beacon relay server...")

        try:
            self._initialize_redis()
            self._initialize_database()
            self._initialize_pipeline()

            self.running = True

            # Seed names before the first measurement arrives
            await asyncio.to_thread(self.scheduler.reload_config)

            self._tasks.append(asyncio.create_task(self.scheduler.run()))
            if self.archiver:
                self._tasks.append(asyncio.create_task(self.archiver.run()))

            # Start consumer (this blocks)
            await self.consumer.run()

        except Exception as e:
            logger.error(f"Failed to start server: {e}")
            raise

    async def stop(self) -> None:
        """Stop the server."""
        if not self.running:
            return

        logger.info("Stopping server...")
        self.running = False

        if self.consumer:
            self.consumer.stop()
        if self.scheduler:
            self.scheduler.stop()
        if self.archiver:
            self.archiver.stop()

        for task in self._tasks:
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._tasks.clear()

        if self.redis_client:
            self.redis_client.close()

        logger.info("Server stopped")


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


async def serve(config: Config) -> None:
    """Run a server until interrupted."""
    server = RelayServer(config)

    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()

    def signal_handler():
        logger.info("Received shutdown signal")
        main_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    try:
        await server.start()
    except asyncio.CancelledError:
        logger.info("Interrupted")
    finally:
        await server.stop()


def main() -> None:
    """Main entry point."""
    config = Config()
    setup_logging(config.log_level)

    try:
        asyncio.run(serve(config))
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
