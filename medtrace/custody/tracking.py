"""
Фоновый трекинг местоположения.

Каждые TRACKING_INTERVAL_S секунд получает координаты и добавляет
событие location_update в цепочку активной транзакции. Не блокирует
основной поток сканов и доставки: запись в цепочку идёт через тот же
per-transaction lock журнала.

Watch геолокации освобождается на любом выходе: stop(), ошибка,
отмена задачи, завершение транзакции.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from loguru import logger

from config.settings import TRACKING_INTERVAL_S
from ..domain.exceptions import TransactionStateError
from ..geo.location_service import LocationService
from .service import CustodyService


class LocationTracker:
    """
    Периодический сэмплер координат для одной транзакции.

    Пример:
        async with LocationTracker(service, locations, tx.id, "agent-1"):
            ...  # доставка
    """

    def __init__(
        self,
        service: CustodyService,
        locations: LocationService,
        transaction_id: str,
        actor_id: str,
        interval: float = TRACKING_INTERVAL_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.service = service
        self.locations = locations
        self.transaction_id = transaction_id
        self.actor_id = actor_id
        self.interval = interval
        self._sleep = sleep

        self._task: Optional[asyncio.Task] = None
        self._released = False
        self.samples = 0
        self.error: Optional[BaseException] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            raise RuntimeError(f"Трекинг {self.transaction_id} уже запущен")
        self._released = False
        self._task = asyncio.create_task(self._run(), name=f"tracking-{self.transaction_id}")
        logger.info(f"[Tracker] Старт трекинга {self.transaction_id} (каждые {self.interval:.0f} с)")
        return self._task

    async def stop(self) -> None:
        """Отменяет цикл и дожидается освобождения watch."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                # Отмена самого вызывающего stop() пробрасывается дальше
                current = asyncio.current_task()
                if current is not None and current.cancelling():
                    raise
        # Задача могла быть отменена до первого шага
        await self._release()
        logger.info(f"[Tracker] Стоп трекинга {self.transaction_id}: {self.samples} замеров")

    async def __aenter__(self) -> "LocationTracker":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def tick(self) -> bool:
        """
        Один замер.

        Returns:
            False, если трекинг пора завершить (транзакция закрыта)
        """
        result = await self.locations.acquire()
        if not result.ok:
            return True

        try:
            await self.service.record_location_update(self.transaction_id, result.point, self.actor_id)
        except TransactionStateError:
            logger.info(f"[Tracker] Транзакция {self.transaction_id} завершена, трекинг не нужен")
            return False

        self.samples += 1
        return True

    async def _run(self) -> None:
        try:
            while await self.tick():
                await self._sleep(self.interval)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.error = e
            logger.error(f"[Tracker] Трекинг {self.transaction_id} упал: {e}")
        finally:
            await self._release()

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        await self.locations.release()
