"""
Хранилище записей и транзакций.

Адаптеры внешнего сервиса хранения:
- InMemoryRecordStore: в памяти процесса (тесты, CLI)
- JsonFileRecordStore: то же + сброс в JSON файл после каждого изменения

Наружу отдаются копии: изменение полученного объекта не меняет хранилище.
"""

from collections import Counter
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from loguru import logger

from contracts.custody_dto import Transaction
from contracts.scan_dto import ParsedRecord, PayloadType, ValidationStatus
from contracts.sync_dto import StoredRecord, SyncStatus, UserStatistics
from ..domain.exceptions import RecordNotFoundError, StorageError, StorageWriteError
from ..domain.interfaces import ICustodyStore, IRecordStore
from .file_manager import ProvenanceFileManager


class InMemoryRecordStore(IRecordStore, ICustodyStore):
    """Хранилище в памяти. Порядок: самые свежие записи первыми."""

    def __init__(self):
        self._records: Dict[str, StoredRecord] = {}
        self._order: List[str] = []          # id записей, новые в начале
        self._transactions: Dict[str, Transaction] = {}

    # ------------------------------------------------------------------ records

    async def insert(self, owner_id: str, record: ParsedRecord) -> StoredRecord:
        if record.id in self._records:
            raise StorageError(message=f"Запись уже существует: {record.id}", component="RecordStore")

        stored = StoredRecord(id=record.id, owner_id=owner_id, record=record)
        self._records[record.id] = stored
        self._order.insert(0, record.id)
        self._changed()
        logger.debug(f"[RecordStore] + {record.id} ({record.payload_type.value}) для {owner_id}")
        return stored

    async def get(self, record_id: str) -> Optional[StoredRecord]:
        return self._records.get(record_id)

    async def list_by_owner(self, owner_id: str, limit: Optional[int] = None) -> List[StoredRecord]:
        result = [self._records[rid] for rid in self._order if self._records[rid].owner_id == owner_id]
        return result[:limit] if limit is not None else result

    async def update_status(self, record_id: str, status: SyncStatus) -> StoredRecord:
        stored = self._records.get(record_id)
        if stored is None:
            raise RecordNotFoundError(message=f"Запись не найдена: {record_id}", component="RecordStore")

        updated = stored.model_copy(update={"sync_status": SyncStatus(status)})
        self._records[record_id] = updated
        self._changed()
        return updated

    async def delete(self, record_id: str) -> bool:
        if self._records.pop(record_id, None) is None:
            return False
        self._order.remove(record_id)
        self._changed()
        return True

    async def statistics(self, owner_id: str) -> UserStatistics:
        """Агрегаты по сканам владельца."""
        stored = await self.list_by_owner(owner_id)
        types = Counter(s.record.payload_type.value for s in stored)
        expired = sum(
            1 for s in stored
            if s.record.payload_type == PayloadType.DOMAIN_TRACKING and s.record.fields.get("is_expired") is True
        )
        return UserStatistics(
            owner_id=owner_id,
            total_scans=len(stored),
            valid_scans=sum(1 for s in stored if s.record.validation_status == ValidationStatus.VALID),
            expired_medicines=expired,
            synced_count=sum(1 for s in stored if s.sync_status == SyncStatus.SYNCED),
            type_distribution=dict(types),
        )

    # ------------------------------------------------------------- transactions

    async def save_transaction(self, transaction: Transaction) -> None:
        self._transactions[transaction.id] = transaction.model_copy(deep=True)
        self._changed()

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        transaction = self._transactions.get(transaction_id)
        return transaction.model_copy(deep=True) if transaction else None

    async def list_transactions(self) -> List[Transaction]:
        return [t.model_copy(deep=True) for t in self._transactions.values()]

    def _changed(self) -> None:
        """Хук после каждого изменения."""
        pass


class JsonFileRecordStore(InMemoryRecordStore):
    """
    Файловое хранилище: весь снимок в одном JSON.

    Формат файла:
        {"records": [StoredRecord...], "transactions": [Transaction...]}
    Записи в файле идут в порядке "новые первыми".
    """

    def __init__(self, path: Path, file_manager: Optional[ProvenanceFileManager] = None):
        super().__init__()
        self.path = Path(path)
        self.file_manager = file_manager or ProvenanceFileManager()

        if self.path.exists():
            self._load()

    def _load(self) -> None:
        data = self.file_manager.load_json(self.path)
        for item in data.get("records", []):
            stored = StoredRecord.model_validate(item)
            self._records[stored.id] = stored
            self._order.append(stored.id)
        for item in data.get("transactions", []):
            transaction = Transaction.model_validate(item)
            self._transactions[transaction.id] = transaction
        logger.info(
            f"[RecordStore] Загружено из {self.path.name}: "
            f"{len(self._records)} записей, {len(self._transactions)} транзакций"
        )

    async def insert(self, owner_id: str, record: ParsedRecord) -> StoredRecord:
        with self._rollback_on_failure():
            return await super().insert(owner_id, record)

    async def update_status(self, record_id: str, status: SyncStatus) -> StoredRecord:
        with self._rollback_on_failure():
            return await super().update_status(record_id, status)

    async def delete(self, record_id: str) -> bool:
        with self._rollback_on_failure():
            return await super().delete(record_id)

    async def save_transaction(self, transaction: Transaction) -> None:
        with self._rollback_on_failure():
            await super().save_transaction(transaction)

    @contextmanager
    def _rollback_on_failure(self) -> Iterator[None]:
        """Память и файл совпадают: если снимок не записан, изменение откатывается."""
        records, order, transactions = dict(self._records), list(self._order), dict(self._transactions)
        try:
            yield
        except StorageWriteError:
            self._records, self._order, self._transactions = records, order, transactions
            logger.error(f"[RecordStore] Изменение отменено: не удалось записать {self.path.name}")
            raise

    def _changed(self) -> None:
        try:
            snapshot = {
                "records": [self._records[rid].model_dump(mode="json") for rid in self._order],
                "transactions": [t.model_dump(mode="json") for t in self._transactions.values()],
            }
        except ValueError as e:
            raise StorageWriteError(
                message=f"Снимок хранилища не сериализуется в JSON: {self.path}",
                component="RecordStore",
                original_error=e,
            )
        self.file_manager.save_json(snapshot, self.path)
