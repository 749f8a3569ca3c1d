"""
DTO контракт: Storage / Sync

Статусы синхронизации с внешней телеметрией и хранимая запись.
"""

from datetime import datetime
from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from .geo_dto import utc_now
from .scan_dto import ParsedRecord


class SyncStatus(str, Enum):
    NOT_SYNCED = "not_synced"
    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"
    PARTIAL = "partial"


class SyncOutcome(BaseModel):
    """Результат публикации одной записи."""

    record_id: str
    status: SyncStatus
    error: str | None = None
    batch_index: int = Field(0, ge=0, description="Номер батча (с нуля)")

    model_config = ConfigDict(frozen=True)

    @property
    def succeeded(self) -> bool:
        return self.status == SyncStatus.SYNCED


class StoredRecord(BaseModel):
    """Запись в хранилище: ParsedRecord + владелец + статус синка."""

    id: str
    owner_id: str
    record: ParsedRecord
    sync_status: SyncStatus = SyncStatus.NOT_SYNCED
    created_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(frozen=True)


class UserStatistics(BaseModel):
    """Агрегаты по сканам пользователя."""

    owner_id: str
    total_scans: int = 0
    valid_scans: int = 0
    expired_medicines: int = 0
    synced_count: int = 0
    type_distribution: Dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)
