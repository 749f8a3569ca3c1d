"""
Custody Service - жизненный цикл транзакции доставки.

Машина состояний:
- pickup -> picked_up (транзакция создаётся)
- delivery -> delivered, либо diverted, если в точке доставки
  зафиксировано отклонение (оба статуса терминальны)
- in_transit / missing только через явный set_status()

Отклонение проверяется на pickup и delivery. При отклонении в цепочку
добавляется событие alert, флаг alert_triggered выставляется (и больше
не сбрасывается), а DiversionAlert уходит в on_alert.
"""

from typing import Callable, List, Optional

from loguru import logger

from config.settings import UNKNOWN_REGION
from contracts.custody_dto import (
    CustodyAction,
    DiversionAlert,
    Transaction,
    TransactionStatus,
)
from contracts.geo_dto import GeoPoint
from contracts.scan_dto import ParsedRecord
from ..domain.exceptions import TransactionStateError
from ..geo.diversion import DiversionDetector, DiversionResult
from ..geo.resolver import GeolocationResolver
from .ledger import CustodyLedger


AlertCallback = Callable[[DiversionAlert], None]

# Статусы, которые можно выставить извне
EXTERNAL_STATUSES = (TransactionStatus.IN_TRANSIT, TransactionStatus.MISSING)


class CustodyService:
    """Операции агента доставки поверх CustodyLedger."""

    def __init__(
        self,
        ledger: CustodyLedger,
        resolver: GeolocationResolver,
        detector: DiversionDetector,
        on_alert: Optional[AlertCallback] = None,
    ):
        self.ledger = ledger
        self.resolver = resolver
        self.detector = detector
        self.on_alert = on_alert

    async def record_pickup(
        self,
        record: ParsedRecord,
        location: GeoPoint,
        agent_id: str,
        note: Optional[str] = None,
    ) -> Transaction:
        """
        Агент забрал медикамент: создаёт транзакцию и первое событие.

        Args:
            record: Запись медикамента (регион назначения берётся из её полей)
            location: Координата pickup
            agent_id: ID агента
            note: Комментарий

        Returns:
            Transaction в статусе picked_up
        """
        fields = record.fields
        transaction = Transaction(
            record_id=record.id,
            assigned_region=record.assigned_region or UNKNOWN_REGION,
            current_region=self.resolver.resolve_name(location),
            medicine_name=fields.get("medicine_name"),
            batch_number=fields.get("batch_number"),
            destination_pharmacy=fields.get("destination_pharmacy"),
            agent_id=agent_id,
        )
        await self.ledger.create(transaction)

        alerts: List[DiversionAlert] = []
        async with self.ledger.session(transaction.id) as transaction:
            self.ledger.append_to(transaction, CustodyAction.PICKUP, agent_id, location, note)
            diversion = self.detector.detect(transaction.assigned_region, transaction.current_region, location)
            if diversion.diverted:
                alerts.append(self._flag_diversion(transaction, diversion, agent_id, location))

        logger.info(
            f"[Custody] Pickup {transaction.id}: {transaction.medicine_name or record.id} "
            f"→ {transaction.assigned_region} (сейчас {transaction.current_region})"
        )
        self._emit(alerts)
        return transaction

    async def record_delivery(
        self,
        transaction_id: str,
        location: GeoPoint,
        agent_id: str,
        note: Optional[str] = None,
    ) -> Transaction:
        """
        Доставка: проверка отклонения в точке доставки и терминальный статус.

        Raises:
            TransactionNotFoundError: Нет такой транзакции
            TransactionStateError: Транзакция уже завершена
        """
        alerts: List[DiversionAlert] = []
        async with self.ledger.session(transaction_id) as transaction:
            if transaction.is_terminal:
                raise TransactionStateError(
                    message=f"Повторная доставка {transaction_id} ({transaction.status.value})",
                    component="CustodyService",
                )
            transaction.current_region = self.resolver.resolve_name(location)
            diversion = self.detector.detect(transaction.assigned_region, transaction.current_region, location)
            if diversion.diverted:
                alerts.append(self._flag_diversion(transaction, diversion, agent_id, location))

            self.ledger.append_to(transaction, CustodyAction.DELIVERY, agent_id, location, note)
            transaction.status = (
                TransactionStatus.DIVERTED if diversion.diverted else TransactionStatus.DELIVERED
            )

        logger.info(f"[Custody] Delivery {transaction_id}: {transaction.status.value} ({transaction.current_region})")
        self._emit(alerts)
        return transaction

    async def record_location_update(
        self,
        transaction_id: str,
        location: GeoPoint,
        actor_id: str,
    ) -> Transaction:
        """Событие location_update + обновление текущего региона."""
        async with self.ledger.session(transaction_id) as transaction:
            transaction.current_region = self.resolver.resolve_name(location)
            self.ledger.append_to(transaction, CustodyAction.LOCATION_UPDATE, actor_id, location)
        return transaction

    async def record_verification(
        self,
        transaction_id: str,
        location: GeoPoint,
        actor_id: str,
        note: Optional[str] = None,
    ) -> Transaction:
        """Событие verification (проверка подлинности по пути)."""
        async with self.ledger.session(transaction_id) as transaction:
            self.ledger.append_to(transaction, CustodyAction.VERIFICATION, actor_id, location, note)
        return transaction

    async def set_status(self, transaction_id: str, status: TransactionStatus) -> Transaction:
        """
        Явное внешнее назначение статуса (in_transit / missing).

        Raises:
            TransactionStateError: Статус не назначается извне или транзакция завершена
        """
        status = TransactionStatus(status)
        if status not in EXTERNAL_STATUSES:
            raise TransactionStateError(
                message=f"Статус {status.value} не назначается вручную",
                component="CustodyService",
            )
        async with self.ledger.session(transaction_id) as transaction:
            if transaction.is_terminal:
                raise TransactionStateError(
                    message=f"Транзакция {transaction_id} завершена ({transaction.status.value})",
                    component="CustodyService",
                )
            transaction.status = status
        logger.info(f"[Custody] {transaction_id}: статус → {status.value}")
        return transaction

    def _flag_diversion(
        self,
        transaction: Transaction,
        diversion: DiversionResult,
        actor_id: str,
        location: GeoPoint,
    ) -> DiversionAlert:
        message = (
            f"Medicine {transaction.medicine_name or transaction.record_id} was scanned in "
            f"{diversion.current_region} but assigned to {diversion.assigned_region}"
        )
        self.ledger.append_to(transaction, CustodyAction.ALERT, actor_id, location, message)
        transaction.alert_triggered = True
        transaction.diversion_distance_km = diversion.distance_km

        return DiversionAlert(
            transaction_id=transaction.id,
            message=message,
            assigned_region=diversion.assigned_region,
            current_region=diversion.current_region,
            distance_km=diversion.distance_km,
        )

    def _emit(self, alerts: List[DiversionAlert]) -> None:
        for alert in alerts:
            logger.warning(f"[Custody] ALERT {alert.transaction_id}: {alert.message}")
            if self.on_alert is None:
                continue
            try:
                self.on_alert(alert)
            except Exception as e:
                logger.error(f"[Custody] Ошибка в on_alert callback: {e}")
