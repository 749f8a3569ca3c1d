"""
Интерфейсы (абстрактные классы) MedTrace.

Границы с внешним миром:
1. Хеш-функция цепочки custody
2. Источник координат (GPS устройства)
3. Источник сканов (камера + декодер QR)
4. Хранилище записей и транзакций
5. Облако телеметрии
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from contracts.custody_dto import Transaction
from contracts.geo_dto import GeoPoint
from contracts.scan_dto import ParsedRecord
from contracts.sync_dto import StoredRecord, SyncStatus


class IHashFunction(ABC):
    """Хеш-функция H для цепочки custody."""

    @abstractmethod
    def digest(self, content: Dict[str, Any]) -> str:
        """
        Считает детерминированный хеш содержимого события.

        Args:
            content: Канонический словарь полей события

        Returns:
            Строка-хеш
        """
        pass


class ILocationProvider(ABC):
    """Интерфейс источника координат (GPS / watch устройства)."""

    @abstractmethod
    async def get_position(self) -> GeoPoint:
        """
        Получает текущую позицию.

        Raises:
            GeolocationError: permission-denied / unavailable / timeout
        """
        pass

    async def release(self) -> None:
        """Освобождает watch геолокации. По умолчанию ничего не держит."""
        return None


class IScanSource(ABC):
    """Интерфейс источника сканов (поток камеры + декодер)."""

    @abstractmethod
    async def read(self) -> str:
        """Ждёт и возвращает следующую декодированную строку."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Останавливает поток камеры."""
        pass


class IRecordStore(ABC):
    """Хранилище ParsedRecord (внешний сервис записей)."""

    @abstractmethod
    async def insert(self, owner_id: str, record: ParsedRecord) -> StoredRecord:
        pass

    @abstractmethod
    async def list_by_owner(self, owner_id: str, limit: Optional[int] = None) -> List[StoredRecord]:
        """Записи владельца, самые свежие первыми."""
        pass

    @abstractmethod
    async def update_status(self, record_id: str, status: SyncStatus) -> StoredRecord:
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        pass


class ICustodyStore(ABC):
    """Хранилище транзакций и их цепочек."""

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> None:
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        pass

    @abstractmethod
    async def list_transactions(self) -> List[Transaction]:
        pass


class ITelemetryClient(ABC):
    """Клиент облака телеметрии."""

    @abstractmethod
    async def authenticate(self) -> str:
        """Возвращает access token."""
        pass

    @abstractmethod
    async def publish(self, thing_id: str, property_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Публикует значение свойства.

        Returns:
            Ответ API (success, status, ...)

        Raises:
            SyncError: сетевая ошибка или ошибка API
        """
        pass

    @abstractmethod
    async def get_status(self, thing_id: str) -> Dict[str, Any]:
        pass
