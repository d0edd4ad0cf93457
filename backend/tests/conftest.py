"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- The search index registry, populated with every resource type table
- Search indexers wired to in-memory fetchers
- HTTP client for API testing with a mocked database session
- Common FHIR test data
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fhirindex.auth import verify_api_key
from fhirindex.database import get_db
from fhirindex.indexing.catalog import register_all_indexes
from fhirindex.indexing.engine import SearchIndexer, StoredResource
from fhirindex.indexing.fetch import InMemoryFetcher
from fhirindex.indexing.registry import IndexRegistry
from fhirindex.main import app

BASE_URL = "http://host/fhir"
TEST_API_KEY = "test-key"


async def stub_verify_api_key() -> str:
    """Stub auth dependency that accepts every request."""
    return TEST_API_KEY


def as_stored(resource: dict, **kwargs) -> StoredResource:
    """Wrap a FHIR dict as a stored handle with JSON content."""
    return StoredResource(
        resource_id=resource["id"],
        resource_type=resource["resourceType"],
        content=json.dumps(resource),
        **kwargs,
    )


def rows_named(rows, param_name: str) -> list:
    """Rows of one search parameter."""
    return [row for row in rows if row.param_name == param_name]


def values_of(rows, param_name: str) -> list:
    """Sorted values of one search parameter."""
    return sorted(row.value for row in rows_named(rows, param_name))


# =============================================================================
# Registry Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def index_registry():
    """Register every resource table before each test; clear afterwards."""
    IndexRegistry._clear_for_testing()
    register_all_indexes()
    yield IndexRegistry
    IndexRegistry._clear_for_testing()


# =============================================================================
# Indexer Fixtures
# =============================================================================


@pytest.fixture
def fetcher(sample_patient, sample_practitioner, sample_encounter) -> InMemoryFetcher:
    """Fetcher serving the sample patient, practitioner and encounter."""
    return InMemoryFetcher([sample_patient, sample_practitioner, sample_encounter])


@pytest.fixture
def indexer(fetcher) -> SearchIndexer:
    """Indexer resolving chained references from the in-memory fetcher."""
    return SearchIndexer(
        fetcher=fetcher,
        base_url=BASE_URL,
        local_timezone="UTC",
        fetch_timeout=1.0,
        max_value_length=750,
    )


@pytest.fixture
def bare_indexer() -> SearchIndexer:
    """Indexer without a fetcher; only contained and embedded references chain."""
    return SearchIndexer(base_url=BASE_URL, local_timezone="UTC", fetch_timeout=1.0)


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest.fixture
def mock_db():
    """Mock async database session."""
    db = MagicMock()
    db.execute = AsyncMock()
    db.flush = AsyncMock()
    db.delete = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


@pytest_asyncio.fixture
async def client(mock_db):
    """Async test client for the FastAPI app with a mocked database session."""

    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[verify_api_key] = stub_verify_api_key

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(verify_api_key, None)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authentication headers for API requests."""
    return {"X-API-Key": TEST_API_KEY}


# =============================================================================
# FHIR Test Data Fixtures
# =============================================================================


@pytest.fixture
def sample_patient() -> dict:
    """Sample FHIR Patient resource for testing."""
    return {
        "resourceType": "Patient",
        "id": "42",
        "meta": {
            "lastUpdated": "2024-01-15T09:00:00Z",
            "tag": [{"system": "http://example.org/tags", "code": "vip", "display": "VIP"}],
            "profile": ["http://hl7.org/fhir/us/core/StructureDefinition/us-core-patient"],
        },
        "language": "en-US",
        "identifier": [
            {"system": "http://hospital.example.org/mrn", "value": "MRN-001", "type": {"text": "MRN"}},
            {"system": "http://hl7.org/fhir/sid/us-ssn", "value": "999-99-9999"},
        ],
        "active": True,
        "name": [{"given": ["Jane", "Q"], "family": "Smith"}],
        "telecom": [
            {"system": "phone", "value": "555-0100"},
            {"system": "email", "value": "jane@example.org"},
        ],
        "gender": "female",
        "birthDate": "1985-03-20",
        "address": [
            {
                "line": ["1 Main St"],
                "city": "Springfield",
                "state": "IL",
                "postalCode": "62701",
                "country": "US",
                "use": "home",
            }
        ],
        "generalPractitioner": [{"reference": "Practitioner/dr-1"}],
    }


@pytest.fixture
def sample_practitioner() -> dict:
    """Sample FHIR Practitioner resource for testing."""
    return {
        "resourceType": "Practitioner",
        "id": "dr-1",
        "name": [{"given": ["Gregory"], "family": "House", "prefix": ["Dr"]}],
        "gender": "male",
    }


@pytest.fixture
def sample_encounter() -> dict:
    """Sample FHIR Encounter resource for testing."""
    return {
        "resourceType": "Encounter",
        "id": "enc-1",
        "status": "finished",
        "class": {"system": "http://terminology.hl7.org/CodeSystem/v3-ActCode", "code": "AMB"},
        "subject": {"reference": "Patient/42"},
        "period": {
            "start": "2024-01-15T09:00:00Z",
            "end": "2024-01-15T09:30:00Z",
        },
    }


@pytest.fixture
def sample_observation() -> dict:
    """Sample FHIR Observation resource for testing."""
    return {
        "resourceType": "Observation",
        "id": "obs-1",
        "status": "final",
        "code": {
            "coding": [
                {"system": "http://loinc.org", "code": "8480-6", "display": "Systolic blood pressure"},
                {"system": "http://snomed.info/sct", "code": "271649006"},
            ]
        },
        "subject": {"reference": "Patient/42"},
        "encounter": {"reference": "Encounter/enc-1"},
        "effectiveDateTime": "2024-01-15T09:10:00-05:00",
        "valueQuantity": {
            "value": 140.50,
            "unit": "mmHg",
            "system": "http://unitsofmeasure.org",
            "code": "mm[Hg]",
        },
    }


@pytest.fixture
def sample_molecular_sequence() -> dict:
    """Sample FHIR MolecularSequence resource for testing."""
    return {
        "resourceType": "MolecularSequence",
        "id": "seq-1",
        "type": "dna",
        "coordinateSystem": 1,
        "patient": {"reference": "Patient/42"},
        "referenceSeq": {
            "chromosome": {
                "coding": [{"system": "http://terminology.hl7.org/CodeSystem/chromosome-human", "code": "1"}]
            },
            "referenceSeqId": {
                "coding": [{"system": "http://www.ncbi.nlm.nih.gov/nuccore", "code": "NC_000001.11"}]
            },
            "windowStart": 22125500,
            "windowEnd": 22125510,
        },
        "variant": [{"start": 22125503, "end": 22125504}],
    }
