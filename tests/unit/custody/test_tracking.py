"""
Тесты LocationTracker: фоновые location_update и освобождение watch.
"""

import asyncio

import pytest

from contracts.custody_dto import CustodyAction
from contracts.geo_dto import GeoPoint
from medtrace.custody.tracking import LocationTracker
from medtrace.domain.exceptions import GeolocationError
from medtrace.geo import LocationService, StaticLocationProvider
from medtrace.parsing import ScanPipeline


DHAKA = GeoPoint(latitude=23.8103, longitude=90.4125)


async def picked_up(service):
    record = ScanPipeline().parse(
        '{"type": "medicine_tracking", "data": {"medicine_id": "M", "medicine_name": "N", '
        '"batch_number": "B", "assigned_district": "Dhaka"}}'
    )
    return await service.record_pickup(record, DHAKA, "agent-1")


async def fast_sleep(seconds):
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_samples_appended_and_watch_released(service, ledger):
    transaction = await picked_up(service)
    provider = StaticLocationProvider([DHAKA])
    tracker = LocationTracker(service, LocationService(provider), transaction.id, "agent-1", sleep=fast_sleep)

    async with tracker:
        while tracker.samples < 3:
            await asyncio.sleep(0)

    assert provider.released
    assert not tracker.running
    stored = await ledger.get(transaction.id)
    updates = [e for e in stored.events if e.action == CustodyAction.LOCATION_UPDATE]
    assert len(updates) >= 3
    assert ledger.verify(stored.events)


@pytest.mark.asyncio
async def test_stops_when_transaction_delivered(service):
    transaction = await picked_up(service)
    provider = StaticLocationProvider([DHAKA])
    tracker = LocationTracker(service, LocationService(provider), transaction.id, "agent-1", sleep=fast_sleep)

    await service.record_delivery(transaction.id, DHAKA, "agent-1")
    task = tracker.start()
    await asyncio.wait_for(task, timeout=1)

    assert provider.released
    assert tracker.samples == 0
    await tracker.stop()


@pytest.mark.asyncio
async def test_location_errors_do_not_stop_loop(service):
    transaction = await picked_up(service)
    provider = StaticLocationProvider(error=GeolocationError("denied", kind=GeolocationError.PERMISSION_DENIED))
    errors = []
    tracker = LocationTracker(
        service, LocationService(provider, on_error=errors.append), transaction.id, "agent-1", sleep=fast_sleep,
    )

    tracker.start()
    while len(errors) < 3:
        await asyncio.sleep(0)
    assert tracker.running
    await tracker.stop()

    assert provider.released
    assert tracker.samples == 0


@pytest.mark.asyncio
async def test_stop_before_first_step_still_releases(service):
    transaction = await picked_up(service)
    provider = StaticLocationProvider([DHAKA])
    tracker = LocationTracker(service, LocationService(provider), transaction.id, "agent-1")

    tracker.start()
    await tracker.stop()

    assert provider.released


@pytest.mark.asyncio
async def test_double_start_rejected(service):
    transaction = await picked_up(service)
    tracker = LocationTracker(
        service, LocationService(StaticLocationProvider([DHAKA])), transaction.id, "agent-1", sleep=fast_sleep,
    )
    tracker.start()
    with pytest.raises(RuntimeError):
        tracker.start()
    await tracker.stop()


class SlowReleaseProvider(StaticLocationProvider):
    """Провайдер, который освобождает watch только по сигналу."""

    def __init__(self, points):
        super().__init__(points)
        self.release_started = asyncio.Event()
        self.release_gate = asyncio.Event()

    async def release(self) -> None:
        self.release_started.set()
        await self.release_gate.wait()
        self.released = True


@pytest.mark.asyncio
async def test_stop_propagates_caller_cancellation(service):
    """Отмена задачи, которая ждёт stop(), не теряется."""
    transaction = await picked_up(service)
    provider = SlowReleaseProvider([DHAKA])
    tracker = LocationTracker(service, LocationService(provider), transaction.id, "agent-1", sleep=fast_sleep)

    tracker.start()
    while tracker.samples < 1:
        await asyncio.sleep(0)

    stopper = asyncio.create_task(tracker.stop())
    await provider.release_started.wait()
    stopper.cancel()

    with pytest.raises(asyncio.CancelledError):
        await stopper
    assert not tracker.running
