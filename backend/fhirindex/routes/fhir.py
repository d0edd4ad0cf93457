"""FHIR API routes for storing resources and loading bundles.

Every write rebuilds the search index rows of the written resource.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from fhirindex.auth import verify_api_key
from fhirindex.database import get_db
from fhirindex.indexing.exceptions import MalformedResourceError
from fhirindex.repositories.fhir import FhirRepository
from fhirindex.services.bundle_loader import load_bundle as load_bundle_service

router = APIRouter(prefix="/fhir", tags=["fhir"])


class BundleLoadResponse(BaseModel):
    """Response from loading a FHIR bundle."""

    message: str
    resources_loaded: int
    resources_indexed: int


class ResourceWriteResponse(BaseModel):
    """Response from storing one resource."""

    id: uuid.UUID
    resource_type: str
    fhir_id: str


def _validate_resource(resource_type: str, resource: dict[str, Any]) -> None:
    if resource.get("resourceType") != resource_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid resource: resourceType must be '{resource_type}'",
        )


@router.post("/load-bundle", response_model=BundleLoadResponse)
async def load_bundle(
    bundle: dict[str, Any],
    db: AsyncSession = Depends(get_db),
    _api_key: str = Depends(verify_api_key),
) -> BundleLoadResponse:
    """Store every resource of a FHIR Bundle and index it.

    Raises:
        HTTPException: 400 if the bundle or one of its resources is invalid.
    """
    if bundle.get("resourceType") != "Bundle":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid bundle: resourceType must be 'Bundle'",
        )

    try:
        result = await load_bundle_service(db, bundle)
    except (ValueError, MalformedResourceError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return BundleLoadResponse(
        message="Bundle loaded successfully",
        resources_loaded=result.resources_loaded,
        resources_indexed=result.resources_indexed,
    )


@router.post(
    "/{resource_type}",
    response_model=ResourceWriteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_resource(
    resource_type: str,
    resource: dict[str, Any],
    db: AsyncSession = Depends(get_db),
    _api_key: str = Depends(verify_api_key),
) -> ResourceWriteResponse:
    """Store a new resource and build its search index rows.

    Raises:
        HTTPException: 400 if the resource is invalid, 409 if it already exists.
    """
    _validate_resource(resource_type, resource)
    repo = FhirRepository(db)

    if resource.get("id") and await repo.get_by_fhir_id(resource["id"], resource_type):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{resource_type}/{resource['id']} already exists",
        )

    try:
        stored = await repo.save_from_data(resource_type, resource)
    except MalformedResourceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return ResourceWriteResponse(id=stored.id, resource_type=stored.resource_type, fhir_id=stored.fhir_id)


@router.put("/{resource_type}/{fhir_id}", response_model=ResourceWriteResponse)
async def update_resource(
    resource_type: str,
    fhir_id: str,
    resource: dict[str, Any],
    db: AsyncSession = Depends(get_db),
    _api_key: str = Depends(verify_api_key),
) -> ResourceWriteResponse:
    """Replace a stored resource and rebuild its search index rows.

    Raises:
        HTTPException: 400 if the resource is invalid, 404 if not stored.
    """
    _validate_resource(resource_type, resource)
    repo = FhirRepository(db)

    stored = await repo.get_by_fhir_id(fhir_id, resource_type)
    if stored is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource_type}/{fhir_id} not found",
        )

    stored.data = {**resource, "id": fhir_id}
    try:
        await repo.update(stored)
    except MalformedResourceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return ResourceWriteResponse(id=stored.id, resource_type=stored.resource_type, fhir_id=stored.fhir_id)


@router.delete("/{resource_type}/{fhir_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_type: str,
    fhir_id: str,
    db: AsyncSession = Depends(get_db),
    _api_key: str = Depends(verify_api_key),
) -> None:
    """Delete a stored resource; its search index rows cascade.

    Raises:
        HTTPException: 404 if not stored.
    """
    repo = FhirRepository(db)
    stored = await repo.get_by_fhir_id(fhir_id, resource_type)
    if stored is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource_type}/{fhir_id} not found",
        )
    await repo.delete(stored.id)
