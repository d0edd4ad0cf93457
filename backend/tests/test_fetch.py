"""Tests for referenced-document fetchers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from fhirindex.indexing.fetch import FetchedDocument, InMemoryFetcher, RepositoryFetcher
from tests.conftest import BASE_URL


class TestInMemoryFetcher:
    """Tests for InMemoryFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_relative_and_absolute(self, sample_patient):
        fetcher = InMemoryFetcher([sample_patient])

        assert await fetcher.fetch("Patient/42") == FetchedDocument("Patient", sample_patient)
        assert await fetcher.fetch(f"{BASE_URL}/Patient/42") == FetchedDocument("Patient", sample_patient)

    @pytest.mark.asyncio
    async def test_missing_document_returns_none(self, sample_patient):
        fetcher = InMemoryFetcher([sample_patient])

        assert await fetcher.fetch("Patient/43") is None
        assert await fetcher.fetch("urn:uuid:abc") is None


class TestRepositoryFetcher:
    """Tests for RepositoryFetcher."""

    def setup_method(self):
        self.repository = MagicMock()
        self.repository.get_by_fhir_id = AsyncMock()
        self.fetcher = RepositoryFetcher(self.repository, BASE_URL + "/")

    @pytest.mark.asyncio
    async def test_fetches_local_reference(self, sample_patient):
        stored = MagicMock(resource_type="Patient", data=sample_patient)
        self.repository.get_by_fhir_id.return_value = stored

        result = await self.fetcher.fetch(f"{BASE_URL}/Patient/42")

        assert result == FetchedDocument("Patient", sample_patient)
        self.repository.get_by_fhir_id.assert_awaited_once_with("42", "Patient")

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self):
        self.repository.get_by_fhir_id.return_value = None
        assert await self.fetcher.fetch("Patient/missing") is None

    @pytest.mark.asyncio
    async def test_foreign_reference_not_fetched(self):
        """References to other servers are never looked up locally."""
        result = await self.fetcher.fetch("https://other.org/fhir/Patient/42")

        assert result is None
        self.repository.get_by_fhir_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_untyped_reference_not_fetched(self):
        result = await self.fetcher.fetch("urn:uuid:abc")

        assert result is None
        self.repository.get_by_fhir_id.assert_not_awaited()
