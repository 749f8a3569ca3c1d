"""
Custody Ledger

ЦКП: Append-only хеш-цепочка событий на каждую транзакцию.

append:
1. Берётся хвост цепочки (или ничего для первого события)
2. previous_hash = hash(хвост) или None
3. hash = H(action, geopoint, timestamp, actor, previous_hash)
4. Событие сохраняется и становится новым хвостом

Запись в одну транзакцию сериализуется asyncio.Lock'ом на её id:
фоновый трекинг и интерактивная доставка не могут связать событие
с устаревшим хвостом.
Lock живёт, пока его кто-то держит или ждёт (WeakValueDictionary).
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, List, Optional, Sequence, Tuple

from loguru import logger

from contracts.custody_dto import CustodyAction, CustodyEvent, Transaction
from contracts.geo_dto import GeoPoint, utc_now
from ..domain.exceptions import (
    ChainIntegrityError,
    TransactionNotFoundError,
    TransactionStateError,
)
from ..domain.interfaces import ICustodyStore, IHashFunction
from .hashing import Sha256ContentHash, event_content, hash_event


class CustodyLedger:
    """
    Журнал custody поверх ICustodyStore.

    Пример:
        ledger = CustodyLedger(store)
        await ledger.create(transaction)
        event = await ledger.append(transaction.id, CustodyAction.PICKUP, "agent-1", point)
        assert ledger.verify(transaction.events)
    """

    def __init__(
        self,
        store: ICustodyStore,
        hash_function: Optional[IHashFunction] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            store: Хранилище транзакций
            hash_function: H (по умолчанию Sha256ContentHash)
            clock: Часы для меток времени событий
        """
        self.store = store
        self.hash_function = hash_function or Sha256ContentHash()
        self.clock = clock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, transaction_id: str) -> asyncio.Lock:
        lock = self._locks.get(transaction_id)
        if lock is None:
            lock = self._locks[transaction_id] = asyncio.Lock()
        return lock

    async def create(self, transaction: Transaction) -> Transaction:
        """
        Регистрирует новую транзакцию (пустая цепочка).

        Raises:
            TransactionStateError: Транзакция с таким id уже есть
        """
        async with self._lock_for(transaction.id):
            if await self.store.get_transaction(transaction.id) is not None:
                raise TransactionStateError(
                    message=f"Транзакция уже существует: {transaction.id}",
                    component="CustodyLedger",
                )
            await self.store.save_transaction(transaction)
        logger.debug(f"[CustodyLedger] Создана транзакция {transaction.id}")
        return transaction

    async def get(self, transaction_id: str) -> Transaction:
        transaction = await self.store.get_transaction(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(
                message=f"Транзакция не найдена: {transaction_id}",
                component="CustodyLedger",
            )
        return transaction

    @asynccontextmanager
    async def session(self, transaction_id: str) -> AsyncIterator[Transaction]:
        """
        Эксклюзивная сессия записи в транзакцию.

        Внутри можно вызывать append_to() и менять статус; изменения
        сохраняются при выходе без ошибки.
        """
        async with self._lock_for(transaction_id):
            transaction = await self.get(transaction_id)
            yield transaction
            await self.store.save_transaction(transaction)

    async def append(
        self,
        transaction_id: str,
        action: CustodyAction,
        actor_id: str,
        location: GeoPoint,
        note: Optional[str] = None,
    ) -> CustodyEvent:
        """
        Добавляет событие в цепочку транзакции.

        Raises:
            TransactionNotFoundError: Нет такой транзакции
            TransactionStateError: Транзакция уже терминальна
        """
        async with self.session(transaction_id) as transaction:
            event = self.append_to(transaction, action, actor_id, location, note)
        return event

    def append_to(
        self,
        transaction: Transaction,
        action: CustodyAction,
        actor_id: str,
        location: GeoPoint,
        note: Optional[str] = None,
    ) -> CustodyEvent:
        """
        Добавляет событие к транзакции, уже взятой через session().

        Raises:
            TransactionStateError: Транзакция уже терминальна
        """
        if transaction.is_terminal:
            raise TransactionStateError(
                message=f"Транзакция {transaction.id} завершена ({transaction.status.value})",
                component="CustodyLedger",
            )

        tail = transaction.tail
        previous_hash = tail.hash if tail else None
        # Метка времени не раньше хвоста
        timestamp = self.clock()
        if tail and timestamp < tail.timestamp:
            timestamp = tail.timestamp

        event = CustodyEvent(
            transaction_id=transaction.id,
            action=action,
            actor_id=actor_id,
            location=location,
            timestamp=timestamp,
            note=note,
            hash=self.hash_function.digest(
                event_content(action, location, timestamp, actor_id, previous_hash)
            ),
            previous_hash=previous_hash,
        )
        transaction.events.append(event)
        transaction.updated_at = timestamp

        logger.debug(
            f"[CustodyLedger] {transaction.id}: #{len(transaction.events) - 1} "
            f"{event.action.value} hash={event.hash}"
        )
        return event

    def find_break(self, chain: Sequence[CustodyEvent]) -> Optional[Tuple[int, str]]:
        """
        Ищет первое нарушение цепочки.

        Returns:
            (индекс, причина) или None, если цепочка цела
        """
        previous: Optional[str] = None
        for index, event in enumerate(chain):
            if event.previous_hash != previous:
                return index, "previous_hash не совпадает с хешем предыдущего события"
            recomputed = hash_event(self.hash_function, event)
            if recomputed != event.hash:
                return index, "хеш события не совпадает с содержимым"
            previous = recomputed
        return None

    def verify(self, chain: Sequence[CustodyEvent]) -> bool:
        """True, если каждый хеш и каждая ссылка на предыдущий пересчитываются."""
        return self.find_break(chain) is None

    def assert_intact(self, chain: Sequence[CustodyEvent], transaction_id: Optional[str] = None) -> None:
        """
        Raises:
            ChainIntegrityError: Цепочка изменена (индекс и причина внутри)
        """
        found = self.find_break(chain)
        if found is None:
            return
        index, reason = found
        logger.error(f"[CustodyLedger] Нарушение цепочки {transaction_id or ''} на #{index}: {reason}")
        raise ChainIntegrityError(
            message=f"Цепочка custody нарушена на событии #{index}: {reason}",
            index=index,
            reason=reason,
            transaction_id=transaction_id,
        )

    async def audit(self) -> List[Tuple[str, bool]]:
        """Проверяет все цепочки хранилища: [(transaction_id, intact)]."""
        results = []
        for transaction in await self.store.list_transactions():
            intact = self.verify(transaction.events)
            if not intact:
                logger.error(f"[CustodyLedger] Аудит: цепочка {transaction.id} нарушена")
            results.append((transaction.id, intact))
        return results
