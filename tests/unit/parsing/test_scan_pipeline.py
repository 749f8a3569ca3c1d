"""
Тесты ScanPipeline: скан -> ParsedRecord.
"""

import json
from datetime import datetime, timezone

import pytest

from contracts.geo_dto import GeoPoint
from contracts.scan_dto import PayloadType, RawScan, ValidationStatus
from medtrace.parsing import ScanPipeline


NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def pipeline():
    return ScanPipeline(clock=lambda: NOW)


def test_locator_with_query(pipeline):
    """URL -> locator, host, valid."""
    record = pipeline.parse("https://example.com/a?b=1")
    assert record.payload_type == PayloadType.LOCATOR
    assert record.fields["host"] == "example.com"
    assert record.validation_status == ValidationStatus.VALID


def test_wifi_credentials(pipeline):
    """WiFi credentials."""
    record = pipeline.parse("WIFI:T:WPA;S:MyNet;P:secret;H:false;")
    assert record.payload_type == PayloadType.NETWORK_CREDENTIAL
    assert record.fields == {"security": "WPA", "ssid": "MyNet", "password": "secret", "hidden": False}


def test_expired_medicine_flagged(pipeline):
    """просроченный медикамент с полной идентификацией - valid."""
    raw = json.dumps({
        "type": "medicine_tracking",
        "data": {
            "medicine_id": "MED-9",
            "medicine_name": "Amoxicillin",
            "batch_number": "AX-1",
            "expiry_date": "2024-06-30",
        },
    })
    record = pipeline.parse(raw)
    assert record.payload_type == PayloadType.DOMAIN_TRACKING
    assert record.fields["is_expired"] is True
    assert record.validation_status == ValidationStatus.VALID


def test_tracking_missing_identity_is_incomplete(pipeline):
    raw = json.dumps({"type": "medicine_tracking", "data": {"medicine_id": "MED-9"}})
    assert pipeline.parse(raw).validation_status == ValidationStatus.INCOMPLETE


def test_corrupted_tracking_payload(pipeline):
    """Битый доменный payload -> corrupted, dimensions >= 1."""
    record = pipeline.parse('{"type": "medicine_tracking", "data": 5}')
    assert record.validation_status == ValidationStatus.CORRUPTED
    assert "error" in record.fields
    assert record.dimensions >= 1


def test_layered_dimensions(pipeline):
    record = pipeline.parse(json.dumps({"layers": [{"data": 1}, {"data": 2}, {"data": 3}]}))
    assert record.payload_type == PayloadType.LAYERED_PAYLOAD
    assert record.dimensions == 3
    assert record.validation_status == ValidationStatus.VALID


def test_scan_metadata_is_kept(pipeline):
    scan = RawScan(raw="hello", captured_at=NOW)
    point = GeoPoint(latitude=23.8, longitude=90.4, accuracy=5)
    result = pipeline.process(scan, scan_location=point, metadata={"device": "pixel"})
    assert result.stages_completed == 4
    assert result.record.scan_timestamp == NOW
    assert result.record.scan_location == point
    assert result.record.metadata == {"device": "pixel"}
    assert result.to_dict()["record"]["fields"] == {"text": "hello"}


def test_record_is_immutable(pipeline):
    record = pipeline.parse("hello")
    with pytest.raises(Exception):
        record.validation_status = ValidationStatus.INVALID


@pytest.mark.parametrize("raw", [
    "", "{}", "[]", "null", "geo:1.2.3,4", "WIFI:", '{"layers": []}', '{"a": {"b": {"c": {}}}}',
    "mailto:", "tel:", "<", "BEGIN:VCARD", "http://[::1",
])
def test_dimensions_at_least_one_and_no_throw(pipeline, raw):
    record = pipeline.parse(raw)
    assert record.dimensions >= 1
    if "error" in record.fields:
        assert record.validation_status == ValidationStatus.CORRUPTED
    else:
        assert record.validation_status != ValidationStatus.CORRUPTED


@pytest.mark.parametrize("raw", [
    '{"a":' * 400 + "1" + "}" * 400,
    '{"a": ' + "[" * 400 + "]" * 400 + "}",
])
def test_too_deep_payload_is_corrupted(pipeline, raw):
    """Запись глубже предела вложенности не выпускается как valid и сериализуется."""
    record = pipeline.parse(raw)

    assert record.payload_type == PayloadType.STRUCTURED_JSON
    assert record.validation_status == ValidationStatus.CORRUPTED
    assert "error" in record.fields
    assert record.dimensions == 1
    assert json.loads(json.dumps(record.model_dump(mode="json")))["raw_data"] == raw


def test_nesting_limit_is_configurable():
    raw = json.dumps({"a": {"b": {"c": 1}}})
    assert ScanPipeline(max_nesting=3).parse(raw).validation_status == ValidationStatus.VALID
    assert ScanPipeline(max_nesting=2).parse(raw).validation_status == ValidationStatus.CORRUPTED
