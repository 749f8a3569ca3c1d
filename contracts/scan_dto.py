"""
DTO контракт: Scan -> Parsing

RawScan - декодированная строка с камеры.
ParsedRecord - классифицированная и провалидированная запись.
После создания запись не меняется.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from .geo_dto import GeoPoint, utc_now


class PayloadType(str, Enum):
    """Закрытый набор типов содержимого QR."""

    STRUCTURED_JSON = "structured-json"
    LAYERED_PAYLOAD = "layered-payload"
    DOMAIN_TRACKING = "domain-specific-tracking"
    LOCATOR = "locator"
    CONTACT_EMAIL = "contact-email"
    TELEPHONE = "telephone"
    SHORT_MESSAGE = "short-message"
    NETWORK_CREDENTIAL = "network-credential"
    CONTACT_CARD = "contact-card"
    CALENDAR_EVENT = "calendar-event"
    GEOCOORDINATE = "geocoordinate"
    MARKUP = "markup"
    GENERIC_TEXT = "generic-text"


class ValidationStatus(str, Enum):
    """Статус валидации записи."""

    VALID = "valid"
    INVALID = "invalid"
    CORRUPTED = "corrupted"
    INCOMPLETE = "incomplete"
    PENDING = "pending"


class RawScan(BaseModel):
    """Сырой скан: строка + время захвата."""

    raw: str = Field(..., description="Декодированная строка")
    captured_at: datetime = Field(default_factory=utc_now, description="Время захвата")

    model_config = ConfigDict(frozen=True)


class ParsedRecord(BaseModel):
    """
    Результат пайплайна парсинга.

    Производные поля (is_expired, days_until_expiry) лежат внутри fields.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="ID записи")
    raw_data: str = Field(..., description="Исходная строка")
    payload_type: PayloadType = Field(..., description="Тип содержимого")
    fields: Dict[str, Any] = Field(default_factory=dict, description="Нормализованные поля")
    dimensions: int = Field(1, ge=1, description="Структурная глубина / число слоёв")
    validation_status: ValidationStatus = Field(
        ValidationStatus.PENDING, description="Статус валидации"
    )
    scan_timestamp: datetime = Field(default_factory=utc_now, description="Время скана")
    scan_location: GeoPoint | None = Field(None, description="Координата скана (если была)")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Служебные данные")

    model_config = ConfigDict(frozen=True)

    @property
    def is_corrupted(self) -> bool:
        return self.validation_status == ValidationStatus.CORRUPTED

    @property
    def assigned_region(self) -> str | None:
        """Регион назначения, заявленный в самой записи."""
        return self.fields.get("assigned_district") or self.fields.get("destination_district")
