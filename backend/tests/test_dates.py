"""Tests for FHIR date parsing and sortable formatting."""

from datetime import datetime, timezone

import pytest

from fhirindex.indexing.dates import ParsedDate, parse_fhir_date, resolve_timezone


class TestParseFhirDate:
    """Tests for parse_fhir_date."""

    def test_year_only_is_floating(self):
        parsed = parse_fhir_date("2020")
        assert parsed.floating is True
        assert parsed.sortable() == "20200101000000"

    def test_full_date_is_floating(self):
        parsed = parse_fhir_date("1985-03-20")
        assert parsed.floating is True
        assert parsed.sortable() == "19850320000000"

    def test_zulu_instant(self):
        parsed = parse_fhir_date("2024-01-15T09:00:00Z")
        assert parsed.floating is False
        assert parsed.sortable() == "20240115090000"

    def test_offset_converted_to_utc(self):
        assert parse_fhir_date("2024-01-15T23:30:00-02:00").sortable() == "20240116013000"

    def test_naive_datetime_treated_as_utc(self):
        assert parse_fhir_date("2024-01-15T09:00:00").sortable() == "20240115090000"

    @pytest.mark.parametrize("value", ["", "yesterday", "2024-13-01", "2024-01-15T25:00:00"])
    def test_invalid_values_raise(self, value):
        with pytest.raises(ValueError):
            parse_fhir_date(value)

    def test_non_string_raises(self):
        with pytest.raises(ValueError):
            parse_fhir_date(20240115)


class TestParsedDate:
    """Tests for ParsedDate rendering."""

    def test_floating_date_renders_the_same_everywhere(self):
        parsed = ParsedDate(datetime(2020, 5, 1, tzinfo=timezone.utc), floating=True)
        assert parsed.local(resolve_timezone("Asia/Tokyo")) == parsed.sortable()

    def test_local_rendering_shifts_instants(self):
        parsed = parse_fhir_date("2024-01-15T00:00:00Z")
        assert parsed.local(resolve_timezone("Asia/Tokyo")) == "20240115090000"

    def test_utc_shortcut(self):
        assert resolve_timezone("UTC") is timezone.utc
