"""FHIR search index extraction.

Turns stored FHIR resources into flat, typed search index rows: one row per
queryable value, driven by a per-type table of search parameters and one
generic engine.
"""

from fhirindex.indexing.engine import ChainContext, SearchIndexer, StoredResource, parse_resource
from fhirindex.indexing.exceptions import (
    IndexingError,
    MalformedResourceError,
    ReferenceResolutionError,
    UnknownResourceTypeError,
)
from fhirindex.indexing.fetch import DocumentFetcher, FetchedDocument, InMemoryFetcher, RepositoryFetcher
from fhirindex.indexing.registry import IndexConfig, IndexRegistry, SearchParameter
from fhirindex.indexing.rows import IndexRow, RowKind, RowValue

__all__ = [
    "ChainContext",
    "DocumentFetcher",
    "FetchedDocument",
    "IndexConfig",
    "IndexRegistry",
    "IndexRow",
    "IndexingError",
    "InMemoryFetcher",
    "MalformedResourceError",
    "ReferenceResolutionError",
    "RepositoryFetcher",
    "RowKind",
    "RowValue",
    "SearchIndexer",
    "SearchParameter",
    "StoredResource",
    "UnknownResourceTypeError",
    "parse_resource",
]
