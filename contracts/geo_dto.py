"""
DTO контракт: геоданные.

GeoPoint приходит от устройства (GPS), Region - статический справочник
из config/regions.yaml. Оба неизменяемы.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Текущее время в UTC (aware datetime)."""
    return datetime.now(timezone.utc)


class GeoPoint(BaseModel):
    """Координата устройства в момент замера."""

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Широта (градусы)")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Долгота (градусы)")
    accuracy: float = Field(0.0, ge=0.0, description="Точность (метры)")
    timestamp: datetime = Field(default_factory=utc_now, description="Время замера")

    model_config = ConfigDict(frozen=True)


class Region(BaseModel):
    """
    Именованный регион: центр + радиус.

    Справочные данные, в runtime не меняются.
    """

    name: str = Field(..., min_length=1, description="Название региона")
    latitude: float = Field(..., ge=-90.0, le=90.0, description="Широта центра")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Долгота центра")
    radius_km: float = Field(..., gt=0.0, description="Радиус покрытия (км)")

    model_config = ConfigDict(frozen=True)

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)
