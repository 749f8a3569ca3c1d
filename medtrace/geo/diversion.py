"""
Diversion Detector

ЦКП: Факт отклонения от маршрута + расстояние для отчёта.

Отклонение есть, если назначенный и текущий регионы оба известны
(не "Unknown") и различаются. Расстояние считается от текущей точки
до центра НАЗНАЧЕННОГО региона.
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from config.settings import UNKNOWN_REGION
from contracts.geo_dto import GeoPoint
from .haversine import haversine_km
from .region_registry import RegionRegistry


@dataclass
class DiversionResult:
    """Результат проверки отклонения."""
    diverted: bool
    assigned_region: str
    current_region: str
    distance_km: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "diverted": self.diverted,
            "assigned_region": self.assigned_region,
            "current_region": self.current_region,
            "distance_km": self.distance_km,
        }


class DiversionDetector:
    """Сравнение назначенного и фактического регионов. Без состояния."""

    def __init__(self, registry: RegionRegistry):
        self.registry = registry

    def detect(
        self,
        assigned_region: Optional[str],
        current_region: Optional[str],
        point: GeoPoint,
    ) -> DiversionResult:
        """
        Args:
            assigned_region: Регион назначения (из записи / транзакции)
            current_region: Регион по GPS (выход резолвера)
            point: Текущая координата

        Returns:
            DiversionResult
        """
        assigned = assigned_region or UNKNOWN_REGION
        current = current_region or UNKNOWN_REGION

        if UNKNOWN_REGION in (assigned, current) or assigned == current:
            return DiversionResult(diverted=False, assigned_region=assigned, current_region=current)

        region = self.registry.get(assigned)
        distance = None
        if region is None:
            logger.warning(f"[Diversion] Регион назначения '{assigned}' отсутствует в реестре")
        else:
            distance = haversine_km(point.latitude, point.longitude, region.latitude, region.longitude)

        distance_text = f"{distance:.2f} км" if distance is not None else "n/a"
        logger.warning(f"[Diversion] Отклонение: {assigned} → {current} ({distance_text})")
        return DiversionResult(
            diverted=True,
            assigned_region=assigned,
            current_region=current,
            distance_km=distance,
        )
