"""
Контракты DTO между доменами проекта MedTrace.

Все контракты используют Pydantic v2 для валидации.

Контракты:
- Geo: GeoPoint, Region (geo_dto.py)
- Scan -> Parsing: RawScan, ParsedRecord (scan_dto.py)
- Custody: CustodyEvent, Transaction, DiversionAlert, ExportBundle (custody_dto.py)
- Sync / Storage: SyncOutcome, StoredRecord, UserStatistics (sync_dto.py)
"""

from .geo_dto import GeoPoint, Region
from .scan_dto import PayloadType, ValidationStatus, RawScan, ParsedRecord
from .custody_dto import (
    CustodyAction,
    TransactionStatus,
    CustodyEvent,
    Transaction,
    DiversionAlert,
    ExportBundle,
)
from .sync_dto import SyncStatus, SyncOutcome, StoredRecord, UserStatistics

__all__ = [
    # Geo
    "GeoPoint",
    "Region",
    # Scan
    "PayloadType",
    "ValidationStatus",
    "RawScan",
    "ParsedRecord",
    # Custody
    "CustodyAction",
    "TransactionStatus",
    "CustodyEvent",
    "Transaction",
    "DiversionAlert",
    "ExportBundle",
    # Sync / Storage
    "SyncStatus",
    "SyncOutcome",
    "StoredRecord",
    "UserStatistics",
]
