# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Processing layer: device cache, enrichment, relay and reconciliation.
"""

from .cache import CacheKind, DeviceCache
from .enricher import MeasurementEnricher
from .models import DeviceState, merge_device_state, normalize_device_id
from .reconciler import BackfillReport, ReconciliationScheduler
from .relay import RelayError, RelaySink

__all__ = [
    'CacheKind',
    'DeviceCache',
    'MeasurementEnricher',
    'DeviceState',
    'merge_device_state',
    'normalize_device_id',
    'BackfillReport',
    'ReconciliationScheduler',
    'RelayError',
    'RelaySink',
]
