"""
Получение координат устройства.

Асинхронно и с таймаутом (по умолчанию 10 с). Результат всегда один из:
success | permission-denied | unavailable | timeout.
Ошибка не фатальна: вызывающий продолжает без координат, а сама ошибка
уходит в callback.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from loguru import logger

from config.settings import GEOLOCATION_TIMEOUT_S
from contracts.geo_dto import GeoPoint
from ..domain.exceptions import GeolocationError
from ..domain.interfaces import ILocationProvider


LOCATION_SUCCESS = "success"


@dataclass
class LocationResult:
    """Результат попытки получить координаты."""
    status: str                             # success | permission-denied | unavailable | timeout
    point: Optional[GeoPoint] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == LOCATION_SUCCESS and self.point is not None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "point": self.point.model_dump(mode="json") if self.point else None,
            "error": self.error,
        }


ErrorCallback = Callable[[GeolocationError], None]


class LocationService:
    """
    Обёртка над ILocationProvider с таймаутом и каналом ошибок.

    Пример:
        service = LocationService(provider, on_error=show_warning)
        result = await service.acquire()
        if result.ok:
            ...
    """

    def __init__(
        self,
        provider: ILocationProvider,
        timeout: float = GEOLOCATION_TIMEOUT_S,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.provider = provider
        self.timeout = timeout
        self.on_error = on_error

    async def acquire(self, timeout: Optional[float] = None) -> LocationResult:
        """
        Получает координаты, не бросая исключений.

        Args:
            timeout: Таймаут в секундах (по умолчанию self.timeout)

        Returns:
            LocationResult
        """
        timeout = self.timeout if timeout is None else timeout
        try:
            point = await asyncio.wait_for(self.provider.get_position(), timeout=timeout)
            return LocationResult(status=LOCATION_SUCCESS, point=point)
        except asyncio.TimeoutError as e:
            error = GeolocationError(
                message=f"Нет координат за {timeout:.1f} с",
                kind=GeolocationError.TIMEOUT,
                component="LocationService",
                original_error=e,
            )
        except GeolocationError as e:
            error = e
        except (OSError, RuntimeError, ValueError) as e:
            error = GeolocationError(
                message="Источник координат недоступен",
                kind=GeolocationError.UNAVAILABLE,
                component="LocationService",
                original_error=e,
            )

        logger.warning(f"[LocationService] {error.kind}: {error.message}")
        self._notify(error)
        return LocationResult(status=error.kind, error=error.message)

    async def release(self) -> None:
        await self.provider.release()

    def _notify(self, error: GeolocationError) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(error)
        except Exception as e:
            logger.error(f"[LocationService] Ошибка в on_error callback: {e}")


class StaticLocationProvider(ILocationProvider):
    """
    Провайдер с заранее заданными точками.

    Отдаёт точки по очереди, последняя повторяется. Пустой список означает
    "позиция недоступна". Используется в CLI и тестах.
    """

    def __init__(self, points: Iterable[GeoPoint] = (), error: Optional[GeolocationError] = None):
        self._points = list(points)
        self._error = error
        self._index = 0
        self.released = False

    async def get_position(self) -> GeoPoint:
        if self._error is not None:
            raise self._error
        if not self._points:
            raise GeolocationError(
                message="Нет доступных координат",
                kind=GeolocationError.UNAVAILABLE,
                component="StaticLocationProvider",
            )
        point = self._points[min(self._index, len(self._points) - 1)]
        self._index += 1
        return point

    async def release(self) -> None:
        self.released = True
