#!/usr/bin/env python3
"""
Прогон доставки от скана до выгрузки цепочки custody.

Использование:
    # Доставка в назначенный регион
    python scripts/simulate_delivery.py

    # Доставка в другой регион (отклонение + алерт)
    python scripts/simulate_delivery.py --deliver-to Chittagong

    # С сохранением в data/records.json
    python scripts/simulate_delivery.py --persist
"""

import sys
import argparse
import asyncio
import json
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

# Добавляем корень проекта в путь
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from loguru import logger

from config.settings import EXPORT_DIR, LOG_LEVEL, STORE_FILE, validate_config
from contracts.geo_dto import GeoPoint
from contracts.scan_dto import RawScan
from medtrace.application import ProvenanceComponentFactory, ScanSession
from medtrace.custody import LocationTracker
from medtrace.geo import StaticLocationProvider


def sample_payload(assigned: str) -> str:
    return json.dumps({
        "type": "medicine_tracking",
        "timestamp": date.today().isoformat(),
        "data": {
            "medicine_id": "MED-001",
            "medicine_name": "Paracetamol 500mg",
            "batch_number": "B-2024-17",
            "expiry_date": (date.today() + timedelta(days=180)).isoformat(),
            "manufacturer": "Acme Pharma",
            "assigned_district": assigned,
            "destination_pharmacy": "City Pharmacy",
        },
    })


async def run(assigned: str, deliver_to: str, output_dir: Path, store_path: Optional[Path] = None) -> int:
    factory = ProvenanceComponentFactory
    registry = factory.create_registry()
    if deliver_to not in registry or assigned not in registry:
        print(f"[ERROR] Неизвестный регион. Доступны: {', '.join(registry.names)}")
        return 1

    store = factory.create_store(store_path)
    ledger = factory.create_ledger(store)
    alerts = []
    service = factory.create_custody_service(ledger, registry, on_alert=alerts.append)

    origin = registry.get(assigned).center
    destination = registry.get(deliver_to).center
    locations = factory.create_location_service(StaticLocationProvider([origin]))

    session = ScanSession(factory.create_pipeline(), owner_id="agent-1", store=store, locations=locations)
    outcome = await session.process(RawScan(raw=sample_payload(assigned)))
    print(f"[1/4] Скан: {outcome.record.payload_type.value} → {outcome.record.validation_status.value}")

    transaction = await service.record_pickup(outcome.record, origin, "agent-1")
    print(f"[2/4] Pickup: {transaction.id} ({transaction.current_region})")

    tracker = LocationTracker(service, locations, transaction.id, "agent-1", interval=0.01)
    async with tracker:
        await asyncio.sleep(0.05)
    print(f"[3/4] Трекинг: {tracker.samples} замеров")

    transaction = await service.record_delivery(transaction.id, GeoPoint(
        latitude=destination.latitude, longitude=destination.longitude, accuracy=5.0,
    ), "agent-1")
    print(f"[4/4] Доставка: {transaction.status.value}, событий в цепочке: {len(transaction.events)}")
    for alert in alerts:
        print(f"  [ALERT] {alert.message} ({alert.distance_km} км)")

    exporter = factory.create_exporter(ledger)
    path = await exporter.export([transaction.id], output_dir, records=[outcome.record])
    print(f"[SAVED] {path}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Симуляция доставки медикамента")
    parser.add_argument("--assigned", default="Dhaka", help="Регион назначения")
    parser.add_argument("--deliver-to", default=None, help="Фактический регион доставки")
    parser.add_argument("--output", type=Path, default=EXPORT_DIR, help="Директория выгрузки")
    parser.add_argument("--persist", action="store_true", help=f"Сохранять записи и транзакции в {STORE_FILE}")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=LOG_LEVEL)

    # Проверяем конфигурацию
    try:
        validate_config()
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1

    store_path = STORE_FILE if args.persist else None
    return asyncio.run(run(args.assigned, args.deliver_to or args.assigned, args.output, store_path))


if __name__ == "__main__":
    sys.exit(main())
