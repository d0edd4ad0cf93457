"""Tests for path navigation and the search parameter factories."""

from decimal import Decimal

from fhirindex.indexing import fields
from fhirindex.indexing.paths import choice, walk
from fhirindex.indexing.registry import FieldContext, ReferenceValue
from fhirindex.indexing.rows import RowKind

CONTEXT = FieldContext()


class TestPaths:
    """Tests for walk and choice."""

    def test_walk_flattens_lists(self):
        resource = {"name": [{"given": ["Jane", "Q"]}, {"given": ["J"]}]}
        assert walk(resource, "name.given") == ["Jane", "Q", "J"]

    def test_walk_missing_element(self):
        assert walk({"name": []}, "name.given") == []
        assert walk(None, "name") == []

    def test_walk_empty_path_returns_node(self):
        resource = {"id": "1"}
        assert walk(resource, "") == [resource]

    def test_choice(self):
        node = {"valueQuantity": {"value": 1}, "valueSetId": None}
        assert choice(node, "value") == ("Quantity", {"value": 1})

    def test_choice_ignores_lowercase_continuation(self):
        """'values' is a different element, not a value[x] choice."""
        assert choice({"values": [1]}, "value") is None


class TestFieldFactories:
    """Tests for the field descriptor factories."""

    def test_concept_yields_one_row_per_coding(self):
        parameter = fields.concept("code", "code")
        resource = {"code": {"coding": [{"system": "a", "code": "1"}, {"system": "b", "code": "2"}]}}

        values = parameter.extract(resource, CONTEXT)
        assert [(v.system, v.value) for v in values] == [("a", "1"), ("b", "2")]

    def test_concept_first_only(self):
        parameter = fields.concept("code", "code", first_only=True)
        resource = {"code": {"coding": [{"code": "1"}, {"code": "2"}]}}
        assert [v.value for v in parameter.extract(resource, CONTEXT)] == ["1"]

    def test_telecom_filters_by_system(self):
        parameter = fields.telecom("email", system="email")
        resource = {"telecom": [{"system": "phone", "value": "555"}, {"system": "email", "value": "a@b.c"}]}
        assert [v.value for v in parameter.extract(resource, CONTEXT)] == ["a@b.c"]

    def test_boolean_skips_non_booleans(self):
        parameter = fields.boolean("active", "active")
        assert [v.value for v in parameter.extract({"active": False}, CONTEXT)] == ["false"]
        assert parameter.extract({"active": "yes"}, CONTEXT) == []

    def test_address_text(self):
        address = {"line": ["1 Main St"], "city": "Springfield", "state": "IL", "postalCode": "62701"}
        assert fields.address_text(address) == "1 Main St Springfield IL 62701"

    def test_number_keeps_decimal_precision(self):
        parameter = fields.number("probability", "prediction.probabilityDecimal")
        resource = {"prediction": [{"probabilityDecimal": Decimal("0.50")}]}
        assert [v.value for v in parameter.extract(resource, CONTEXT)] == ["0.50"]

    def test_reference_carries_type_hint(self):
        parameter = fields.reference("subject", "subject")
        values = parameter.extract({"subject": {"reference": "Patient/1", "type": "Patient"}}, CONTEXT)
        assert values == [ReferenceValue("Patient/1", type_hint="Patient")]

    def test_reference_without_reference_string_skipped(self):
        parameter = fields.reference("subject", "subject")
        assert parameter.extract({"subject": {"display": "Someone"}}, CONTEXT) == []

    def test_subject_narrows_to_patient(self):
        assert fields.subject().narrowing == {"Patient": "patient"}

    def test_extension_concept(self):
        parameter = fields.extension_concept("race", "http://example.org/race")
        resource = {
            "extension": [
                {
                    "url": "http://example.org/race",
                    "extension": [{"url": "ombCategory", "valueCoding": {"system": "urn:race", "code": "2106-3"}}],
                },
                {"url": "http://example.org/other", "valueCoding": {"code": "x"}},
            ]
        }
        assert [v.value for v in parameter.extract(resource, CONTEXT)] == ["2106-3"]


class TestDateFactories:
    """Tests for date, period and timing extraction."""

    def test_date_choice_period(self):
        parameter = fields.date_choice("date", "effective")
        resource = {"effectivePeriod": {"start": "2024-01-01", "end": "2024-01-31"}}

        value = parameter.extract(resource, CONTEXT)[0]
        assert value.kind == RowKind.PERIOD
        assert (value.value, value.value_high) == ("20240101000000", "20240131000000")

    def test_date_choice_ignores_non_date_types(self):
        parameter = fields.date_choice("onset-date", "onset")
        assert parameter.extract({"onsetString": "childhood"}, CONTEXT) == []

    def test_timing_bounds_span_events(self):
        timing = {"event": ["2024-03-05", "2024-03-01", "2024-03-10"]}
        value = fields.timing_bounds(timing, CONTEXT)
        assert (value.value, value.value_high) == ("20240301000000", "20240310000000")

    def test_timing_bounds_fall_back_to_repeat_bounds(self):
        timing = {"repeat": {"boundsPeriod": {"start": "2024-01-01"}}}
        value = fields.timing_bounds(timing, CONTEXT)
        assert value.value == "20240101000000"
        assert value.value_high is None

    def test_timing_without_events_or_bounds(self):
        assert fields.timing_bounds({"code": {"text": "BID"}}, CONTEXT) is None
