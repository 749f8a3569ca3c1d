"""
Экспорт цепочек custody.

ЦКП: JSON-артефакт {scope, records, transactions, exported_at,
verification_hash}, имя файла custody_chain_<scope>_<YYYY-MM-DD>.json.

Перед экспортом каждая цепочка проверяется (ChainIntegrityError не
глушится). verification_hash покрывает id/raw записей и хеши всех событий,
поэтому после повторного импорта артефакт перепроверяется целиком.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from loguru import logger

from contracts.custody_dto import ExportBundle, Transaction
from contracts.geo_dto import utc_now
from contracts.scan_dto import ParsedRecord
from ..domain.exceptions import ChainIntegrityError
from ..infrastructure.file_manager import ProvenanceFileManager
from .hashing import Sha256ContentHash
from .ledger import CustodyLedger


def export_filename(scope: str, exported_at: datetime) -> str:
    return f"custody_chain_{scope}_{exported_at:%Y-%m-%d}.json"


class CustodyExporter:
    """Сборка, сохранение, загрузка и проверка ExportBundle."""

    def __init__(
        self,
        ledger: CustodyLedger,
        file_manager: Optional[ProvenanceFileManager] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ledger = ledger
        self.file_manager = file_manager or ProvenanceFileManager()
        self.clock = clock
        # Полный SHA-256 для всей выгрузки
        self._bundle_hash = Sha256ContentHash(length=64)

    def bundle_hash(
        self,
        scope: str,
        records: Iterable[ParsedRecord],
        transactions: Iterable[Transaction],
    ) -> str:
        content: Dict[str, Any] = {
            "scope": scope,
            "records": [
                {"id": r.id, "raw_data": r.raw_data, "validation_status": r.validation_status.value}
                for r in records
            ],
            "transactions": [
                {
                    "id": t.id,
                    "record_id": t.record_id,
                    "status": t.status.value,
                    "events": [e.hash for e in t.events],
                }
                for t in transactions
            ],
        }
        return self._bundle_hash.digest(content)

    def build(
        self,
        scope: str,
        transactions: List[Transaction],
        records: Optional[List[ParsedRecord]] = None,
    ) -> ExportBundle:
        """
        Собирает выгрузку.

        Raises:
            ChainIntegrityError: Одна из цепочек нарушена
        """
        records = list(records or [])
        for transaction in transactions:
            self.ledger.assert_intact(transaction.events, transaction.id)

        return ExportBundle(
            scope=scope,
            records=records,
            transactions=transactions,
            exported_at=self.clock(),
            verification_hash=self.bundle_hash(scope, records, transactions),
        )

    async def export(
        self,
        transaction_ids: List[str],
        output_dir: Path,
        records: Optional[List[ParsedRecord]] = None,
        scope: Optional[str] = None,
    ) -> Path:
        """
        Сохраняет выгрузку транзакций в output_dir.

        Args:
            transaction_ids: Какие транзакции выгрузить
            output_dir: Директория
            records: Записи медикаментов, относящиеся к транзакциям
            scope: Метка выгрузки (по умолчанию id единственной транзакции или "all")

        Returns:
            Путь к JSON
        """
        transactions = [await self.ledger.get(tid) for tid in transaction_ids]
        if scope is None:
            scope = transaction_ids[0] if len(transaction_ids) == 1 else "all"

        bundle = self.build(scope, transactions, records)
        path = Path(output_dir) / export_filename(scope, bundle.exported_at)
        self.file_manager.save_json(bundle.model_dump(mode="json"), path)

        logger.info(f"[Export] {len(transactions)} цепочек → {path.name}")
        return path

    def load(self, path: Path) -> ExportBundle:
        return ExportBundle.model_validate(self.file_manager.load_json(Path(path)))

    def assert_bundle(self, bundle: ExportBundle) -> None:
        """
        Raises:
            ChainIntegrityError: Нарушена цепочка или общий хеш выгрузки
        """
        for transaction in bundle.transactions:
            self.ledger.assert_intact(transaction.events, transaction.id)

        expected = self.bundle_hash(bundle.scope, bundle.records, bundle.transactions)
        if expected != bundle.verification_hash:
            raise ChainIntegrityError(
                message="verification_hash выгрузки не совпадает с содержимым",
                index=-1,
                reason="bundle hash mismatch",
            )

    def verify_bundle(self, bundle: ExportBundle) -> bool:
        try:
            self.assert_bundle(bundle)
        except ChainIntegrityError as e:
            logger.error(f"[Export] {e.message}")
            return False
        return True
