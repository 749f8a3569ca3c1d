"""
Geolocation Resolver

ЦКП: Имя ближайшего региона, в радиус которого попадает точка.

Правила:
1. Для каждого региона считается haversine до центра
2. Кандидат: расстояние <= радиуса этого региона
3. Из кандидатов - минимальное расстояние; при равенстве первый по реестру
4. Нет кандидатов -> "Unknown"

Чистая функция: между вызовами ничего не хранит.
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from config.settings import UNKNOWN_REGION
from contracts.geo_dto import GeoPoint
from .haversine import haversine_km
from .region_registry import RegionRegistry


@dataclass
class RegionMatch:
    """Результат резолвинга точки."""
    name: str                               # Имя региона или "Unknown"
    distance_km: Optional[float] = None     # До центра найденного региона

    @property
    def is_known(self) -> bool:
        return self.name != UNKNOWN_REGION

    def to_dict(self) -> dict:
        return {"name": self.name, "distance_km": self.distance_km}


class GeolocationResolver:
    """Резолвер GPS-точки в регион."""

    def __init__(self, registry: RegionRegistry):
        self.registry = registry

    def resolve(self, point: GeoPoint) -> RegionMatch:
        """
        Находит регион для точки.

        Args:
            point: Координата устройства

        Returns:
            RegionMatch (name == "Unknown", если точка вне всех регионов)
        """
        best: Optional[RegionMatch] = None
        for region in self.registry:
            distance = haversine_km(point.latitude, point.longitude, region.latitude, region.longitude)
            # Строгое "<": при равенстве остаётся более ранний регион
            if distance <= region.radius_km and (best is None or distance < best.distance_km):
                best = RegionMatch(name=region.name, distance_km=distance)

        if best is None:
            logger.debug(f"[Resolver] ({point.latitude:.4f}, {point.longitude:.4f}) → {UNKNOWN_REGION}")
            return RegionMatch(name=UNKNOWN_REGION)

        logger.debug(
            f"[Resolver] ({point.latitude:.4f}, {point.longitude:.4f}) → {best.name} "
            f"({best.distance_km:.2f} км)"
        )
        return best

    def resolve_name(self, point: GeoPoint) -> str:
        return self.resolve(point).name
