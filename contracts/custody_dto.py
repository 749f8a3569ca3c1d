"""
DTO контракт: Custody

Событие цепочки хранения неизменяемо. Transaction меняется только
через CustodyLedger / CustodyService (добавление событий и пересчёт статуса).
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .geo_dto import GeoPoint, utc_now
from .scan_dto import ParsedRecord


class CustodyAction(str, Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"
    VERIFICATION = "verification"
    LOCATION_UPDATE = "location_update"
    ALERT = "alert"


class TransactionStatus(str, Enum):
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    DIVERTED = "diverted"
    MISSING = "missing"


TERMINAL_STATUSES = frozenset({TransactionStatus.DELIVERED, TransactionStatus.DIVERTED})


class CustodyEvent(BaseModel):
    """Звено хеш-цепочки."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="ID события")
    transaction_id: str = Field(..., description="ID транзакции")
    action: CustodyAction = Field(..., description="Тип действия")
    actor_id: str = Field(..., description="Кто выполнил действие")
    location: GeoPoint = Field(..., description="Координата события")
    timestamp: datetime = Field(default_factory=utc_now, description="Время события")
    note: str | None = Field(None, description="Комментарий (не входит в хеш)")
    hash: str = Field(..., description="Контент-хеш события")
    previous_hash: str | None = Field(None, description="Хеш предыдущего события (None у головы)")

    model_config = ConfigDict(frozen=True)


class Transaction(BaseModel):
    """
    Транзакция доставки.

    Создаётся на pickup, терминальна в статусах delivered / diverted.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="ID транзакции")
    record_id: str = Field(..., description="ID записи медикамента")
    assigned_region: str = Field(..., description="Регион назначения")
    current_region: str = Field(..., description="Текущий регион по GPS")
    status: TransactionStatus = Field(TransactionStatus.PICKED_UP, description="Статус")
    events: List[CustodyEvent] = Field(default_factory=list, description="Цепочка событий")
    diversion_distance_km: float | None = Field(None, description="Расстояние отклонения (км)")
    alert_triggered: bool = Field(False, description="Был ли поднят алерт")

    medicine_name: str | None = Field(None, description="Название медикамента")
    batch_number: str | None = Field(None, description="Номер партии")
    destination_pharmacy: str | None = Field(None, description="Аптека назначения")
    agent_id: str | None = Field(None, description="Агент доставки")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("assigned_region", "medicine_name", "batch_number", "destination_pharmacy", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        """Поля payload приходят с типами из JSON (batch_number: 20240115)."""
        if value is not None and not isinstance(value, str):
            return str(value)
        return value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def tail(self) -> CustodyEvent | None:
        return self.events[-1] if self.events else None


class DiversionAlert(BaseModel):
    """Алерт об отклонении от маршрута."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    transaction_id: str
    severity: str = Field("high", description="Уровень серьёзности")
    title: str = Field("Medicine diversion detected")
    message: str
    assigned_region: str
    current_region: str
    distance_km: float | None = None
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(frozen=True)


class ExportBundle(BaseModel):
    """
    Экспортируемый JSON-артефакт: записи + их цепочки + общий хеш.
    """

    scope: str = Field(..., description="ID транзакции или метка выгрузки")
    records: List[ParsedRecord] = Field(default_factory=list)
    transactions: List[Transaction] = Field(default_factory=list)
    exported_at: datetime = Field(default_factory=utc_now)
    verification_hash: str = Field(..., description="Хеш содержимого выгрузки")
