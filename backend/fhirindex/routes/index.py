"""Search index API routes.

Preview extraction for a posted resource, read back stored index rows,
and list distinct meta tags.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fhirindex.auth import verify_api_key
from fhirindex.config import settings
from fhirindex.database import get_db
from fhirindex.indexing.engine import SearchIndexer, StoredResource
from fhirindex.indexing.exceptions import MalformedResourceError, UnknownResourceTypeError
from fhirindex.indexing.fetch import RepositoryFetcher
from fhirindex.repositories.fhir import FhirRepository
from fhirindex.repositories.search_index import SearchIndexRepository
from fhirindex.schemas.index import IndexRowResponse, IndexRowsResponse, TagListResponse, TagResponse

router = APIRouter(prefix="/index", tags=["index"])

# Owner id used when previewing a resource that has no id yet
PREVIEW_RESOURCE_ID = "preview"


@router.get("/tags", response_model=TagListResponse)
async def list_tags(
    resource_type: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
    _api_key: str = Depends(verify_api_key),
) -> TagListResponse:
    """List distinct meta tags, optionally for one resource type."""
    tags = await SearchIndexRepository(db).distinct_tags(resource_type)
    return TagListResponse(tags=[TagResponse(**tag) for tag in tags])


@router.post("/{resource_type}/$extract", response_model=IndexRowsResponse)
async def extract_rows(
    resource_type: str,
    resource: dict[str, Any],
    db: AsyncSession = Depends(get_db),
    _api_key: str = Depends(verify_api_key),
) -> IndexRowsResponse:
    """Extract search index rows for a posted resource without storing it.

    Chained references are resolved against stored resources.

    Raises:
        HTTPException: 400 if the resource is malformed, 422 if the
            resource type has no index configuration.
    """
    resource_id = resource.get("id") or PREVIEW_RESOURCE_ID
    indexer = SearchIndexer(fetcher=RepositoryFetcher(FhirRepository(db), settings.base_url))
    try:
        rows = await indexer.index(StoredResource(resource_id, resource_type, resource))
    except MalformedResourceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except UnknownResourceTypeError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return IndexRowsResponse(
        resource_type=resource_type,
        resource_id=resource_id,
        total=len(rows),
        rows=[IndexRowResponse.model_validate(row.to_dict()) for row in rows],
    )


@router.get("/{resource_type}/{fhir_id}", response_model=IndexRowsResponse)
async def get_rows(
    resource_type: str,
    fhir_id: str,
    param: str | None = Query(default=None, description="Only rows of this search parameter"),
    db: AsyncSession = Depends(get_db),
    _api_key: str = Depends(verify_api_key),
) -> IndexRowsResponse:
    """Get the stored search index rows of a resource.

    Raises:
        HTTPException: 404 if the resource is not stored.
    """
    resource = await FhirRepository(db).get_by_fhir_id(fhir_id, resource_type)
    if resource is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource_type}/{fhir_id} not found",
        )

    entries = await SearchIndexRepository(db).get_for_resource(resource.id, param)
    return IndexRowsResponse(
        resource_type=resource_type,
        resource_id=fhir_id,
        total=len(entries),
        rows=[IndexRowResponse.model_validate(entry) for entry in entries],
    )
