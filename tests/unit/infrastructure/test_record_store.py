"""
Тесты хранилища записей: порядок, статусы, статистика, файловый вариант.
"""

import json
from datetime import datetime, timezone

import pytest

from contracts.custody_dto import Transaction
from contracts.scan_dto import ParsedRecord, PayloadType, ValidationStatus
from contracts.sync_dto import SyncStatus
from medtrace.domain.exceptions import (
    RecordNotFoundError,
    StorageError,
    StorageFileNotFoundError,
    StorageWriteError,
)
from medtrace.infrastructure import InMemoryRecordStore, JsonFileRecordStore, ProvenanceFileManager
from medtrace.parsing import ScanPipeline


NOW = datetime(2025, 1, 15, tzinfo=timezone.utc)


@pytest.fixture
def pipeline():
    return ScanPipeline(clock=lambda: NOW)


class TestInMemoryStore:

    @pytest.mark.asyncio
    async def test_most_recent_first(self, pipeline):
        store = InMemoryRecordStore()
        first = await store.insert("u1", pipeline.parse("first"))
        await store.insert("u2", pipeline.parse("other owner"))
        second = await store.insert("u1", pipeline.parse("second"))

        listed = await store.list_by_owner("u1")
        assert [s.id for s in listed] == [second.id, first.id]
        assert [s.id for s in await store.list_by_owner("u1", limit=1)] == [second.id]

    @pytest.mark.asyncio
    async def test_update_status_and_delete(self, pipeline):
        store = InMemoryRecordStore()
        stored = await store.insert("u1", pipeline.parse("x"))
        assert stored.sync_status == SyncStatus.NOT_SYNCED

        updated = await store.update_status(stored.id, SyncStatus.SYNCED)
        assert updated.sync_status == SyncStatus.SYNCED
        assert (await store.get(stored.id)).sync_status == SyncStatus.SYNCED

        assert await store.delete(stored.id) is True
        assert await store.delete(stored.id) is False
        assert await store.list_by_owner("u1") == []

        with pytest.raises(RecordNotFoundError):
            await store.update_status(stored.id, SyncStatus.FAILED)

    @pytest.mark.asyncio
    async def test_duplicate_insert(self, pipeline):
        store = InMemoryRecordStore()
        record = pipeline.parse("x")
        await store.insert("u1", record)
        with pytest.raises(StorageError):
            await store.insert("u1", record)

    @pytest.mark.asyncio
    async def test_statistics(self, pipeline):
        store = InMemoryRecordStore()
        expired = json.dumps({"type": "medicine_tracking", "data": {
            "medicine_id": "M", "medicine_name": "N", "batch_number": "B", "expiry_date": "2020-01-01",
        }})
        for raw in [expired, "https://a.bd", "WIFI:broken", "hello"]:
            await store.insert("u1", pipeline.parse(raw))
        url = (await store.list_by_owner("u1"))[2]
        await store.update_status(url.id, SyncStatus.SYNCED)

        stats = await store.statistics("u1")
        assert stats.total_scans == 4
        assert stats.valid_scans == 3
        assert stats.expired_medicines == 1
        assert stats.synced_count == 1
        assert stats.type_distribution == {
            PayloadType.DOMAIN_TRACKING.value: 1,
            PayloadType.LOCATOR.value: 1,
            PayloadType.NETWORK_CREDENTIAL.value: 1,
            PayloadType.GENERIC_TEXT.value: 1,
        }

    @pytest.mark.asyncio
    async def test_transactions_are_copied(self):
        store = InMemoryRecordStore()
        transaction = Transaction(record_id="r", assigned_region="Dhaka", current_region="Dhaka")
        await store.save_transaction(transaction)

        loaded = await store.get_transaction(transaction.id)
        loaded.current_region = "Sylhet"
        assert (await store.get_transaction(transaction.id)).current_region == "Dhaka"
        assert await store.get_transaction("missing") is None


class TestJsonFileStore:

    @pytest.mark.asyncio
    async def test_roundtrip(self, tmp_path, pipeline):
        path = tmp_path / "store" / "records.json"
        store = JsonFileRecordStore(path)
        a = await store.insert("u1", pipeline.parse("https://a.bd"))
        b = await store.insert("u1", pipeline.parse("hello"))
        await store.update_status(a.id, SyncStatus.PARTIAL)
        await store.save_transaction(Transaction(record_id=a.id, assigned_region="Dhaka", current_region="Dhaka"))

        reopened = JsonFileRecordStore(path)
        listed = await reopened.list_by_owner("u1")
        assert [s.id for s in listed] == [b.id, a.id]
        assert listed[1].sync_status == SyncStatus.PARTIAL
        assert listed[1].record.validation_status == ValidationStatus.VALID
        assert len(await reopened.list_transactions()) == 1

    @pytest.mark.asyncio
    async def test_unserializable_record_is_rolled_back(self, tmp_path, pipeline):
        """Если снимок не пишется, память не расходится с файлом."""
        path = tmp_path / "records.json"
        store = JsonFileRecordStore(path)
        kept = await store.insert("u1", pipeline.parse("hello"))
        before = path.read_text(encoding="utf-8")

        fields = current = {}
        for _ in range(400):
            current["a"] = {}
            current = current["a"]
        deep = ParsedRecord(raw_data="deep", payload_type=PayloadType.STRUCTURED_JSON, fields=fields)

        with pytest.raises(StorageWriteError):
            await store.insert("u1", deep)

        assert [s.id for s in await store.list_by_owner("u1")] == [kept.id]
        assert await store.get(deep.id) is None
        assert path.read_text(encoding="utf-8") == before
        assert [s.id for s in await JsonFileRecordStore(path).list_by_owner("u1")] == [kept.id]


class TestFileManager:

    def test_missing_file(self, tmp_path):
        with pytest.raises(StorageFileNotFoundError):
            ProvenanceFileManager().load_json(tmp_path / "nope.json")

    def test_list_exports(self, tmp_path):
        manager = ProvenanceFileManager()
        manager.save_json({"a": 1}, tmp_path / "custody_chain_b_2025-01-01.json")
        manager.save_json({"a": 1}, tmp_path / "custody_chain_a_2025-01-01.json")
        manager.save_json({"a": 1}, tmp_path / "unrelated.json")
        assert [p.name for p in manager.list_exports(tmp_path)] == [
            "custody_chain_a_2025-01-01.json",
            "custody_chain_b_2025-01-01.json",
        ]
