import pytest

from contracts.scan_dto import PayloadType, ValidationStatus
from medtrace.parsing.s3_dimensionality import DimensionalityStage
from medtrace.parsing.s4_validation import ValidationStage


@pytest.fixture
def dims():
    return DimensionalityStage()


@pytest.fixture
def validator():
    return ValidationStage()


class TestDimensionality:

    def test_flat_mapping(self, dims):
        assert dims.process({"a": 1, "b": [1, 2]}, PayloadType.STRUCTURED_JSON) == 1

    def test_empty_mapping(self, dims):
        assert dims.process({}, PayloadType.GENERIC_TEXT) == 1

    def test_nested(self, dims):
        fields = {"a": {"b": {"c": {}}}, "x": {"y": 1}}
        assert dims.process(fields, PayloadType.STRUCTURED_JSON) == 4

    def test_lists_do_not_add_depth(self, dims):
        assert dims.process({"a": [{"b": {"c": 1}}]}, PayloadType.STRUCTURED_JSON) == 1

    def test_layered_uses_layer_count(self, dims):
        fields = {"total_layers": 5, "layers": [], "metadata": {"deep": {"deeper": {}}}}
        assert dims.process(fields, PayloadType.LAYERED_PAYLOAD) == 5

    def test_layered_minimum_one(self, dims):
        assert dims.process({"total_layers": 0, "layers": []}, PayloadType.LAYERED_PAYLOAD) == 1

    def test_very_deep_mapping(self, dims):
        fields = current = {}
        for _ in range(5000):
            current["n"] = {}
            current = current["n"]
        assert dims.process(fields, PayloadType.STRUCTURED_JSON) == 5001

    def test_nesting_counts_lists(self, dims):
        fields = {"a": [[{"b": [1]}]]}
        assert dims.depth(fields) == 2
        assert dims.nesting(fields) == 5


class TestValidation:

    def test_error_overrides_everything(self, validator):
        for payload_type in PayloadType:
            fields = {"error": "boom", "host": "x", "email": "a@b.c", "total_layers": 3}
            assert validator.validate(fields, payload_type) == ValidationStatus.CORRUPTED

    def test_locator(self, validator):
        assert validator.validate({"host": "example.com"}, PayloadType.LOCATOR) == ValidationStatus.VALID
        assert validator.validate({"host": None}, PayloadType.LOCATOR) == ValidationStatus.INVALID

    def test_email(self, validator):
        assert validator.validate({"email": "a@b.c"}, PayloadType.CONTACT_EMAIL) == ValidationStatus.VALID
        assert validator.validate({"email": ""}, PayloadType.CONTACT_EMAIL) == ValidationStatus.INVALID

    def test_layered(self, validator):
        assert validator.validate({"total_layers": 2}, PayloadType.LAYERED_PAYLOAD) == ValidationStatus.VALID
        assert validator.validate({"total_layers": 0}, PayloadType.LAYERED_PAYLOAD) == ValidationStatus.INCOMPLETE

    def test_tracking_complete(self, validator):
        fields = {"medicine_id": "M1", "medicine_name": "Napa", "batch_number": "B1"}
        assert validator.validate(fields, PayloadType.DOMAIN_TRACKING) == ValidationStatus.VALID

    def test_tracking_lot_number_counts_as_batch(self, validator):
        fields = {"medicine_id": "M1", "medicine_name": "Napa", "lot_number": "L7"}
        assert validator.validate(fields, PayloadType.DOMAIN_TRACKING) == ValidationStatus.VALID

    def test_tracking_incomplete(self, validator):
        result = validator.process({"medicine_id": "M1"}, PayloadType.DOMAIN_TRACKING)
        assert result.status == ValidationStatus.INCOMPLETE
        assert result.missing_fields == ["medicine_name", "batch_number"]

    @pytest.mark.parametrize("payload_type", [
        PayloadType.TELEPHONE,
        PayloadType.NETWORK_CREDENTIAL,
        PayloadType.GEOCOORDINATE,
        PayloadType.GENERIC_TEXT,
        PayloadType.MARKUP,
    ])
    def test_other_types_valid(self, validator, payload_type):
        assert validator.validate({"anything": 1}, payload_type) == ValidationStatus.VALID

    def test_never_pending(self, validator):
        for payload_type in PayloadType:
            assert validator.validate({}, payload_type) != ValidationStatus.PENDING
