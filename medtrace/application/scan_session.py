"""
Сессия сканирования.

Один захват = строка с камеры -> (координаты) -> ParsedRecord -> хранилище.
Поток камеры закрывается на любом выходе: успех, ошибка, таймаут, отмена.
Координаты необязательны: при ошибке геолокации запись создаётся без них.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from loguru import logger

from config.settings import SCAN_TIMEOUT_S
from contracts.geo_dto import utc_now
from contracts.scan_dto import ParsedRecord, RawScan, ValidationStatus
from ..domain.interfaces import IRecordStore, IScanSource
from ..geo.location_service import LocationResult, LocationService
from ..parsing.pipeline import ScanPipeline


@dataclass
class ScanSessionStats:
    """Счётчики сессии."""
    total_scans: int = 0
    successful_scans: int = 0
    failed_scans: int = 0
    corrupted_scans: int = 0
    started_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "total_scans": self.total_scans,
            "successful_scans": self.successful_scans,
            "failed_scans": self.failed_scans,
            "corrupted_scans": self.corrupted_scans,
            "started_at": self.started_at.isoformat(),
        }


@dataclass
class ScanOutcome:
    """Результат одного захвата."""
    record: ParsedRecord
    location: Optional[LocationResult] = None
    stored: bool = False


class ScanSession:
    """
    Сессия захвата сканов владельца.

    Пример:
        session = ScanSession(pipeline, owner_id="user-1", store=store, locations=locations)
        outcome = await session.capture(camera)
    """

    def __init__(
        self,
        pipeline: ScanPipeline,
        owner_id: str,
        store: Optional[IRecordStore] = None,
        locations: Optional[LocationService] = None,
        scan_timeout: float = SCAN_TIMEOUT_S,
    ):
        self.pipeline = pipeline
        self.owner_id = owner_id
        self.store = store
        self.locations = locations
        self.scan_timeout = scan_timeout
        self.stats = ScanSessionStats()

    async def capture(self, source: IScanSource, metadata: Optional[Dict[str, Any]] = None) -> ScanOutcome:
        """
        Ждёт одну строку из источника и обрабатывает её.

        Raises:
            asyncio.TimeoutError: Источник ничего не отдал за scan_timeout
        """
        try:
            raw = await asyncio.wait_for(source.read(), timeout=self.scan_timeout)
        finally:
            await source.close()
            logger.debug("[ScanSession] Поток камеры закрыт")

        return await self.process(RawScan(raw=raw), metadata)

    async def process(self, scan: RawScan, metadata: Optional[Dict[str, Any]] = None) -> ScanOutcome:
        """Обрабатывает уже декодированный скан."""
        location = await self.locations.acquire() if self.locations else None
        if location is not None and not location.ok:
            logger.warning(f"[ScanSession] Скан без координат: {location.status}")

        point = location.point if location is not None and location.ok else None
        record = self.pipeline.process(scan, scan_location=point, metadata=metadata).record

        self.stats.total_scans += 1
        if record.validation_status == ValidationStatus.VALID:
            self.stats.successful_scans += 1
        else:
            self.stats.failed_scans += 1
        if record.is_corrupted:
            self.stats.corrupted_scans += 1
            logger.warning(f"[ScanSession] Повреждённый скан: {record.fields.get('error')}")

        stored = False
        if self.store is not None:
            await self.store.insert(self.owner_id, record)
            stored = True

        return ScanOutcome(record=record, location=location, stored=stored)
