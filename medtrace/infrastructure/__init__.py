"""Инфраструктура: файлы и хранилище записей."""

from .file_manager import ProvenanceFileManager
from .record_store import InMemoryRecordStore, JsonFileRecordStore

__all__ = ["ProvenanceFileManager", "InMemoryRecordStore", "JsonFileRecordStore"]
