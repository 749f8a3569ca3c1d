"""Великокруговое расстояние (haversine)."""

import math

from config.settings import EARTH_RADIUS_KM
from contracts.geo_dto import GeoPoint


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Расстояние между двумя точками по сфере радиуса EARTH_RADIUS_KM.

    Args:
        lat1, lon1: Первая точка (градусы)
        lat2, lon2: Вторая точка (градусы)

    Returns:
        Расстояние в километрах
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Ограничение от погрешности округления
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)
