"""Общие фикстуры тестов MedTrace."""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from medtrace.custody.ledger import CustodyLedger
from medtrace.custody.service import CustodyService
from medtrace.geo.diversion import DiversionDetector
from medtrace.geo.region_registry import RegionRegistry
from medtrace.geo.resolver import GeolocationResolver
from medtrace.infrastructure.record_store import InMemoryRecordStore


FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class TickingClock:
    """Часы, которые сдвигаются на 1 секунду при каждом вызове."""

    def __init__(self, start: datetime = FIXED_NOW):
        self._ticks = itertools.count()
        self.start = start

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=next(self._ticks))


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def registry():
    """Реестр районов Бангладеш из config/regions.yaml."""
    return RegionRegistry.from_yaml()


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def ledger(store):
    return CustodyLedger(store, clock=TickingClock())


@pytest.fixture
def alerts():
    return []


@pytest.fixture
def service(ledger, registry, alerts):
    return CustodyService(
        ledger,
        GeolocationResolver(registry),
        DiversionDetector(registry),
        on_alert=alerts.append,
    )
