"""
Sync Orchestrator

ЦКП: Исход синхронизации по каждой записи.

1. Записи режутся на последовательные батчи по batch_size
2. Внутри батча - одна публикация на запись, все параллельно
3. Следующий батч стартует только после завершения всех публикаций текущего
4. Между батчами пауза batch_delay (после последнего паузы нет)
5. Ошибка одной записи не прерывает ни соседей, ни следующие батчи

Исход публикации:
- ответ success -> synced
- ответ без success -> partial
- SyncError / любая ошибка -> failed
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from loguru import logger

from config.settings import (
    SYNC_BATCH_DELAY_S,
    SYNC_BATCH_SIZE,
    TELEMETRY_PROPERTY_NAME,
    TELEMETRY_THING_ID,
)
from contracts.scan_dto import ParsedRecord
from contracts.sync_dto import SyncOutcome, SyncStatus
from ..domain.exceptions import StorageError, SyncError
from ..domain.interfaces import IRecordStore, ITelemetryClient
from .telemetry_client import format_for_telemetry


class SyncOrchestrator:
    """Батч-синхронизация записей с облаком телеметрии."""

    def __init__(
        self,
        client: ITelemetryClient,
        thing_id: str = TELEMETRY_THING_ID,
        property_name: str = TELEMETRY_PROPERTY_NAME,
        batch_size: int = SYNC_BATCH_SIZE,
        batch_delay: float = SYNC_BATCH_DELAY_S,
        store: Optional[IRecordStore] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            client: Клиент телеметрии
            thing_id: ID устройства в облаке
            property_name: Свойство, куда публикуются записи
            batch_size: Размер батча (>= 1)
            batch_delay: Пауза между батчами (секунды)
            store: Хранилище для обновления sync-статуса (опционально)
            sleep: Функция паузы (подменяется в тестах)
        """
        if batch_size < 1:
            raise ValueError(f"batch_size должен быть >= 1, получено {batch_size}")
        self.client = client
        self.thing_id = thing_id
        self.property_name = property_name
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.store = store
        self._sleep = sleep

    def partition(self, records: Sequence[ParsedRecord]) -> List[List[ParsedRecord]]:
        return [list(records[i:i + self.batch_size]) for i in range(0, len(records), self.batch_size)]

    async def sync(self, records: Sequence[ParsedRecord]) -> Dict[str, SyncOutcome]:
        """
        Синхронизирует записи.

        Args:
            records: Финализированные записи

        Returns:
            {record_id: SyncOutcome} - по одной записи на каждый вход
        """
        batches = self.partition(list(records))
        outcomes: Dict[str, SyncOutcome] = {}
        logger.info(f"[Sync] {len(records)} записей → {len(batches)} батчей по {self.batch_size}")

        for index, batch in enumerate(batches):
            if index > 0 and self.batch_delay > 0:
                await self._sleep(self.batch_delay)

            results = await asyncio.gather(
                *(self._publish_one(record, index) for record in batch),
                return_exceptions=True,
            )
            for record, result in zip(batch, results):
                if isinstance(result, BaseException):
                    if isinstance(result, asyncio.CancelledError):
                        raise result
                    result = SyncOutcome(
                        record_id=record.id,
                        status=SyncStatus.FAILED,
                        error=str(result) or type(result).__name__,
                        batch_index=index,
                    )
                outcomes[record.id] = result
                await self._store_status(result)

            synced = sum(1 for r in results if isinstance(r, SyncOutcome) and r.succeeded)
            logger.debug(f"[Sync] Батч {index + 1}/{len(batches)}: {synced}/{len(batch)} synced")

        failed = sum(1 for o in outcomes.values() if o.status == SyncStatus.FAILED)
        logger.info(f"[Sync] Готово: {len(outcomes)} записей, failed={failed}")
        return outcomes

    async def _publish_one(self, record: ParsedRecord, batch_index: int) -> SyncOutcome:
        try:
            response = await self.client.publish(self.thing_id, self.property_name, format_for_telemetry(record))
        except SyncError as e:
            logger.warning(f"[Sync] {record.id}: {e.message}")
            return SyncOutcome(record_id=record.id, status=SyncStatus.FAILED, error=e.message, batch_index=batch_index)

        status = SyncStatus.SYNCED if response.get("success") else SyncStatus.PARTIAL
        error = None if status == SyncStatus.SYNCED else str(response.get("message") or "no success flag")
        return SyncOutcome(record_id=record.id, status=status, error=error, batch_index=batch_index)

    async def _store_status(self, outcome: SyncOutcome) -> None:
        if self.store is None:
            return
        try:
            await self.store.update_status(outcome.record_id, outcome.status)
        except StorageError as e:
            logger.warning(f"[Sync] Не удалось обновить статус {outcome.record_id}: {e.message}")
