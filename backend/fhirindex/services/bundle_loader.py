"""FHIR Bundle loader: store every entry, then index it."""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fhirindex.indexing.registry import IndexRegistry
from fhirindex.models import FhirResource
from fhirindex.repositories.fhir import FhirRepository

logger = logging.getLogger(__name__)


@dataclass
class BundleLoadResult:
    """Counts from loading one bundle."""

    resources_loaded: int
    resources_indexed: int


async def load_bundle(db: AsyncSession, bundle: dict[str, Any]) -> BundleLoadResult:
    """
    Load the entries of a FHIR bundle and build their search index rows.

    All entries are stored before any is indexed, so chained parameters can
    reach resources that appear later in the same bundle. Uses upsert
    semantics keyed on (fhir_id, resource_type) for idempotency.

    Args:
        db: Async SQLAlchemy session.
        bundle: FHIR Bundle dict with "entry" array of resources.

    Returns:
        Counts of stored and indexed resources.

    Raises:
        ValueError: If the bundle has no usable entries.
        MalformedResourceError: If an entry cannot be indexed.
    """
    entries = bundle.get("entry", [])
    if not entries:
        raise ValueError("Bundle contains no entries")

    resources_data: list[dict[str, Any]] = []
    for entry in entries:
        resource = entry.get("resource", {})
        if resource and resource.get("resourceType") and resource.get("id"):
            resources_data.append(resource)

    if not resources_data:
        raise ValueError("Bundle contains no valid resources")

    existing_resources = await _find_existing_resources_batch(db, resources_data)
    existing_by_key = {(r.fhir_id, r.resource_type): r for r in existing_resources}

    stored: list[FhirResource] = []
    for resource in resources_data:
        key = (resource["id"], resource["resourceType"])
        existing = existing_by_key.get(key)
        if existing:
            existing.data = resource
            stored.append(existing)
        else:
            fhir_resource = FhirResource(
                fhir_id=resource["id"],
                resource_type=resource["resourceType"],
                data=resource,
            )
            db.add(fhir_resource)
            stored.append(fhir_resource)

    # Flush to get IDs assigned
    await db.flush()

    repository = FhirRepository(db)
    indexed = 0
    for fhir_resource in stored:
        await repository.update(fhir_resource)
        if IndexRegistry.has_index(fhir_resource.resource_type):
            indexed += 1

    logger.info("Loaded bundle: %d resources stored, %d indexed", len(stored), indexed)
    return BundleLoadResult(resources_loaded=len(stored), resources_indexed=indexed)


async def _find_existing_resources_batch(
    db: AsyncSession, resources: list[dict[str, Any]]
) -> list[FhirResource]:
    """Find existing resources by (fhir_id, resource_type) pairs in a single query."""
    conditions = [
        and_(
            FhirResource.fhir_id == resource["id"],
            FhirResource.resource_type == resource["resourceType"],
        )
        for resource in resources
    ]
    if not conditions:
        return []

    result = await db.execute(select(FhirResource).where(or_(*conditions)))
    return list(result.scalars().all())
