"""Repository layer for data access.

Repositories encapsulate database operations and provide a clean interface
for CRUD operations on stored resources and their search index rows.
"""

from fhirindex.repositories.fhir import FhirRepository
from fhirindex.repositories.search_index import SearchIndexRepository

__all__ = ["FhirRepository", "SearchIndexRepository"]
