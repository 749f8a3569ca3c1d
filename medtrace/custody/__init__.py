"""Custody-домен: хеш-цепочка событий, транзакции, трекинг, экспорт."""

from .hashing import Sha256ContentHash, event_content, hash_event
from .ledger import CustodyLedger
from .service import CustodyService
from .tracking import LocationTracker
from .export import CustodyExporter, export_filename

__all__ = [
    "Sha256ContentHash",
    "event_content",
    "hash_event",
    "CustodyLedger",
    "CustodyService",
    "LocationTracker",
    "CustodyExporter",
    "export_filename",
]
