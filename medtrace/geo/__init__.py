"""Гео-домен: haversine, реестр регионов, резолвер, отклонения, координаты."""

from .haversine import haversine_km, distance_km
from .region_registry import RegionRegistry
from .resolver import GeolocationResolver, RegionMatch
from .diversion import DiversionDetector, DiversionResult
from .location_service import LocationService, LocationResult, StaticLocationProvider

__all__ = [
    "haversine_km",
    "distance_km",
    "RegionRegistry",
    "GeolocationResolver",
    "RegionMatch",
    "DiversionDetector",
    "DiversionResult",
    "LocationService",
    "LocationResult",
    "StaticLocationProvider",
]
