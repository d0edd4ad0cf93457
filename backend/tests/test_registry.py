"""Tests for the index registry and the row model."""

import pytest

from fhirindex.indexing import encoders
from fhirindex.indexing.exceptions import UnknownResourceTypeError
from fhirindex.indexing.registry import FieldContext, IndexConfig, IndexRegistry, SearchParameter
from fhirindex.indexing.rows import IndexRow, RowKind, RowValue


def extract_status(resource, context):
    yield encoders.token(resource.get("status"))


class TestIndexRegistry:
    """Tests for IndexRegistry."""

    def setup_method(self):
        """Clear registry before each test."""
        IndexRegistry._clear_for_testing()

    def test_register_and_get(self):
        """Test registering and retrieving an index config."""
        config = IndexConfig(
            resource_type="TestResource",
            parameters=[SearchParameter("status", "token", extract_status)],
        )

        IndexRegistry.register(config)

        retrieved = IndexRegistry.get("TestResource")
        assert retrieved is not None
        assert retrieved.resource_type == "TestResource"

    def test_has_index(self):
        IndexRegistry.register(IndexConfig(resource_type="TestResource"))

        assert IndexRegistry.has_index("TestResource") is True
        assert IndexRegistry.has_index("NonExistent") is False

    def test_get_nonexistent_returns_none(self):
        assert IndexRegistry.get("NonExistent") is None

    def test_dispatch_unknown_type_raises(self):
        """Dispatch fails loudly instead of returning nothing."""
        with pytest.raises(UnknownResourceTypeError):
            IndexRegistry.dispatch("NonExistent")

    def test_dispatch_non_string_raises(self):
        with pytest.raises(UnknownResourceTypeError):
            IndexRegistry.dispatch(None)

    def test_all_configs_is_a_copy(self):
        IndexRegistry.register(IndexConfig(resource_type="TestResource"))

        configs = IndexRegistry.all_configs()
        configs.clear()

        assert IndexRegistry.has_index("TestResource") is True


class TestSearchParameter:
    """Tests for SearchParameter."""

    def test_extract_drops_absent_values(self):
        parameter = SearchParameter("status", "token", extract_status)

        assert parameter.extract({"status": "final"}, FieldContext()) == [RowValue(value="final")]
        assert parameter.extract({}, FieldContext()) == []

    def test_is_reference(self):
        assert SearchParameter("subject", "reference", extract_status).is_reference is True
        assert SearchParameter("status", "token", extract_status).is_reference is False


class TestIndexRow:
    """Tests for IndexRow."""

    def test_from_value_truncates_every_column(self):
        value = RowValue(value="abcdefgh", system="http://long.example.org", text="long text")
        row = IndexRow.from_value("r1", "name", "string", value, max_length=4)

        assert (row.value, row.system, row.text) == ("abcd", "http", "long")

    def test_empty_strings_become_none(self):
        row = IndexRow.from_value("r1", "name", "string", RowValue(value="x", text=""))
        assert row.text is None

    def test_upper_columns(self):
        row = IndexRow("r1", "name", "string", "Smith", text="Jane Smith")

        assert row.value_upper == "SMITH"
        assert row.text_upper == "JANE SMITH"
        assert IndexRow("r1", "name", "string", None).value_upper is None

    def test_with_param_name_copies(self):
        row = IndexRow("r1", "name", "string", "Smith")
        renamed = row.with_param_name("subject.name")

        assert renamed.param_name == "subject.name"
        assert row.param_name == "name"

    def test_to_dict(self):
        row = IndexRow("r1", "date", "date", "20240101000000", "20240201000000", kind=RowKind.PERIOD)
        data = row.to_dict()

        assert data["owner_id"] == "r1"
        assert data["kind"] == "PERIOD"
        assert data["value_upper"] == "20240101000000"
        assert data["text_upper"] is None
