"""
Интеграционный тест: скан -> pickup -> трекинг -> доставка -> экспорт -> синк.

Все внешние коллабораторы заменены: координаты статичны, телеметрия на
httpx.MockTransport, хранилище - JSON файл во временной директории.
"""

import asyncio
import json
from datetime import date, timedelta

import httpx
import pytest

from contracts.custody_dto import CustodyAction, TransactionStatus
from contracts.scan_dto import PayloadType, RawScan, ValidationStatus
from contracts.sync_dto import SyncStatus
from medtrace.application import ProvenanceComponentFactory, ScanSession
from medtrace.custody import LocationTracker
from medtrace.domain.interfaces import IScanSource
from medtrace.geo import StaticLocationProvider
from medtrace.sync import HttpTelemetryClient, SyncOrchestrator


class QueueScanSource(IScanSource):
    """Источник сканов из очереди строк."""

    def __init__(self, *raws):
        self.queue = asyncio.Queue()
        for raw in raws:
            self.queue.put_nowait(raw)
        self.closed = False

    async def read(self) -> str:
        return await self.queue.get()

    async def close(self) -> None:
        self.closed = True


def medicine_payload(assigned: str) -> str:
    return json.dumps({
        "type": "medicine_tracking",
        "timestamp": date.today().isoformat(),
        "data": {
            "medicine_id": "MED-42",
            "medicine_name": "Seclo 20",
            "batch_number": "SC-0042",
            "expiry_date": (date.today() + timedelta(days=365)).isoformat(),
            "assigned_district": assigned,
        },
    })


def telemetry_proxy(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/auth"):
        return httpx.Response(200, json={"access_token": "t", "expires_in": 3600})
    return httpx.Response(200, json={"success": True})


async def no_sleep(seconds):
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_diverted_delivery_end_to_end(tmp_path):
    factory = ProvenanceComponentFactory
    registry = factory.create_registry()
    store = factory.create_store(tmp_path / "records.json")
    ledger = factory.create_ledger(store)
    alerts = []
    service = factory.create_custody_service(ledger, registry, on_alert=alerts.append)

    dhaka = registry.get("Dhaka").center
    chittagong = registry.get("Chittagong").center
    provider = StaticLocationProvider([dhaka])
    locations = factory.create_location_service(provider)

    # 1. Скан
    session = ScanSession(factory.create_pipeline(), owner_id="agent-7", store=store, locations=locations)
    camera = QueueScanSource(medicine_payload("Dhaka"))
    outcome = await session.capture(camera)
    record = outcome.record

    assert camera.closed
    assert record.payload_type == PayloadType.DOMAIN_TRACKING
    assert record.validation_status == ValidationStatus.VALID
    assert record.fields["is_expired"] is False
    assert record.scan_location == dhaka
    assert session.stats.successful_scans == 1

    # 2. Pickup + фоновый трекинг
    transaction = await service.record_pickup(record, dhaka, "agent-7")
    tracker = LocationTracker(service, locations, transaction.id, "agent-7", sleep=no_sleep)
    async with tracker:
        while tracker.samples < 2:
            await asyncio.sleep(0)
    assert provider.released

    # 3. Доставка не в тот район
    transaction = await service.record_delivery(transaction.id, chittagong, "agent-7")
    assert transaction.status == TransactionStatus.DIVERTED
    assert transaction.alert_triggered
    assert alerts and alerts[0].current_region == "Chittagong"
    actions = [e.action for e in transaction.events]
    assert actions[0] == CustodyAction.PICKUP
    assert actions[-2:] == [CustodyAction.ALERT, CustodyAction.DELIVERY]

    # 4. Экспорт и повторная проверка
    exporter = factory.create_exporter(ledger)
    path = await exporter.export([transaction.id], tmp_path / "exports", records=[record])
    assert path.name.startswith(f"custody_chain_{transaction.id}_")
    assert exporter.verify_bundle(exporter.load(path))

    # 5. Синк записи
    client = HttpTelemetryClient(base_url="http://proxy.test", transport=httpx.MockTransport(telemetry_proxy))
    async with client:
        orchestrator = SyncOrchestrator(client, thing_id="thing-1", store=store, sleep=no_sleep)
        outcomes = await orchestrator.sync([record])
    assert outcomes[record.id].status == SyncStatus.SYNCED

    # Хранилище на диске пережило весь сценарий
    reopened = factory.create_store(tmp_path / "records.json")
    assert (await reopened.get(record.id)).sync_status == SyncStatus.SYNCED
    stored_transaction = await reopened.get_transaction(transaction.id)
    assert ledger.verify(stored_transaction.events)


@pytest.mark.asyncio
async def test_scan_timeout_releases_camera():
    class SilentCamera(QueueScanSource):
        pass

    camera = SilentCamera()
    session = ScanSession(ProvenanceComponentFactory.create_pipeline(), owner_id="u", scan_timeout=0.01)
    with pytest.raises(asyncio.TimeoutError):
        await session.capture(camera)
    assert camera.closed
    assert session.stats.total_scans == 0


@pytest.mark.asyncio
async def test_scan_without_location_still_recorded():
    camera = QueueScanSource("https://example.com/a?b=1")
    errors = []
    locations = ProvenanceComponentFactory.create_location_service(StaticLocationProvider([]), on_error=errors.append)
    session = ScanSession(ProvenanceComponentFactory.create_pipeline(), owner_id="u", locations=locations)

    outcome = await session.capture(camera)

    assert outcome.location.status == "unavailable"
    assert outcome.record.scan_location is None
    assert outcome.record.validation_status == ValidationStatus.VALID
    assert errors


@pytest.mark.asyncio
async def test_session_counts_corrupted_scans():
    session = ScanSession(ProvenanceComponentFactory.create_pipeline(), owner_id="u")
    for raw in ["https://example.com", "WIFI:T:WPA;P:nossid;", "mailto:"]:
        await session.process(RawScan(raw=raw))

    stats = session.stats.to_dict()
    assert stats["total_scans"] == 3
    assert stats["successful_scans"] == 1
    assert stats["failed_scans"] == 2
    assert stats["corrupted_scans"] == 1
