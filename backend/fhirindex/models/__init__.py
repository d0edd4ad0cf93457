"""SQLAlchemy models."""

from fhirindex.models.fhir import FhirResource
from fhirindex.models.search_index import SearchIndexEntry

__all__ = [
    "FhirResource",
    "SearchIndexEntry",
]
