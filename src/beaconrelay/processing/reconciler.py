# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Reconciliation scheduler.

On a fixed interval:
1. Reload the device-name configuration into the cache.
2. Backfill: republish every configured device's stored state under a
   time-stamped insert key, so downstream consumers get a sample per interval
   even when no fresh radio data arrived.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..capture.shared.channels import device_channel, insert_channel
from ..capture.shared.device_config import DeviceConfigEntry, DeviceConfigError
from .cache import DeviceCache
from .models import current_millis, normalize_device_id
from .relay import RelayError, RelaySink

logger = logging.getLogger(__name__)


@dataclass
class BackfillReport:
    """Outcome of one backfill pass."""

    published: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, RelayError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class ReconciliationScheduler:
    """
    Periodic config reload and backfill.

    Each tick runs in a worker thread so the measurement consumer keeps
    running while Redis calls for the backfill are in flight.
    """

    def __init__(
        self,
        cache: DeviceCache,
        relay: RelaySink,
        config_loader: Callable[[], List[DeviceConfigEntry]],
        interval: float = 60.0,
        clock: Callable[[], int] = current_millis,
    ):
        """
        Initialize scheduler.

        Args:
            cache: Shared device cache
            relay: Relay sink used both to read stored state and to republish
            config_loader: Returns the current device entries; may raise
                DeviceConfigError
            interval: Seconds between ticks
            clock: Returns epoch milliseconds for insert keys
        """
        self.cache = cache
        self.relay = relay
        self.config_loader = config_loader
        self.interval = interval
        self.clock = clock

        self.entries: List[DeviceConfigEntry] = []
        self.running = False
        self.last_report: Optional[BackfillReport] = None
        self.last_load_error: Optional[DeviceConfigError] = None

    def reload_config(self) -> List[DeviceConfigEntry]:
        """
        Reload device names into the cache.

        A failed load keeps the previous entries; its error stays in
        `last_load_error` until the next successful load.

        Returns:
            The entries now in effect
        """
        logger.info("Reloading configs...")
        try:
            self.entries = list(self.config_loader())
            self.last_load_error = None
        except DeviceConfigError as e:
            self.last_load_error = e
            logger.error(f"Failed to reload device config, keeping {len(self.entries)} known devices: {e}")

        for entry in self.entries:
            self.cache.set_display_name(entry.id, entry.display_name)

            device = self.cache.get_last_record(entry.id)
            if device is None:
                continue

            ago = (self.clock() - device.timestamp_millis) / 1000
            logger.info(
                "%9.3fs ago - %-14s :: %7.2f °c, %6.2f %%H, %7.2f hPa, %5.3f v",
                ago,
                entry.display_name,
                device.temperature,
                device.humidity,
                device.pressure_hpa,
                device.battery_volts,
            )

        return self.entries

    def backfill(self, entries: Optional[List[DeviceConfigEntry]] = None) -> BackfillReport:
        """
        Republish the stored state of every configured device.

        Devices with nothing stored are skipped. A relay failure for one device
        is recorded in the report and the pass moves on to the next one.

        Args:
            entries: Devices to backfill (defaults to the loaded entries)

        Returns:
            Report of published, skipped and failed devices
        """
        report = BackfillReport()

        for entry in self.entries if entries is None else entries:
            normalized = normalize_device_id(entry.id)

            try:
                payload = self.relay.fetch(device_channel(normalized))
                if payload is None:
                    logger.info(f"No data found for: {entry.display_name or entry.id}")
                    report.skipped.append(normalized)
                    continue

                self.relay.publish_and_store(insert_channel(self.clock(), normalized), payload)
                report.published.append(normalized)

            except RelayError as e:
                logger.error(f"Backfill failed for {entry.display_name or entry.id}: {e}")
                report.failed[normalized] = e

        logger.info(
            f"Backfill complete: {len(report.published)} published, "
            f"{len(report.skipped)} skipped, {len(report.failed)} failed"
        )
        self.last_report = report
        return report

    def tick(self) -> BackfillReport:
        """Run one reconciliation cycle: config reload, then backfill."""
        entries = self.reload_config()
        return self.backfill(entries)

    async def run(self) -> None:
        """Run ticks every `interval` seconds until stopped."""
        self.running = True
        logger.info(f"Reconciliation scheduler started ({self.interval}s interval)")

        while self.running:
            try:
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break

            if not self.running:
                break

            try:
                await asyncio.to_thread(self.tick)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in reconciliation tick: {e}", exc_info=True)

        logger.info("Reconciliation scheduler stopped")

    def stop(self) -> None:
        """Stop the scheduler after the current tick."""
        self.running = False
