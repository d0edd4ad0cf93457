"""Pydantic schemas."""

from fhirindex.schemas.index import IndexRowResponse, IndexRowsResponse, TagListResponse, TagResponse

__all__ = [
    "IndexRowResponse",
    "IndexRowsResponse",
    "TagListResponse",
    "TagResponse",
]
