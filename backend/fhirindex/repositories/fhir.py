"""FHIR Resource repository.

Single entry point for FHIR resource persistence with automatic search
index sync. When a resource is saved, the repository checks if an index
configuration is registered for that resource type and rebuilds the
resource's search index rows.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fhirindex.config import settings
from fhirindex.indexing.engine import SearchIndexer, StoredResource
from fhirindex.indexing.fetch import RepositoryFetcher
from fhirindex.indexing.registry import IndexRegistry
from fhirindex.indexing.rows import IndexRow
from fhirindex.models.fhir import FhirResource
from fhirindex.repositories.search_index import SearchIndexRepository

logger = logging.getLogger(__name__)


def stored_resource(resource: FhirResource) -> StoredResource:
    """Extraction handle for a persisted resource."""
    return StoredResource(
        resource_id=resource.fhir_id,
        resource_type=resource.resource_type,
        content=resource.data,
        last_updated=resource.last_updated,
        language=resource.data.get("language"),
    )


class FhirRepository:
    """Repository for FHIR resource persistence.

    Handles CRUD operations on FhirResource with automatic search index
    sync for resource types that have registered index configurations.
    """

    def __init__(self, db: AsyncSession, indexer: SearchIndexer | None = None):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
            indexer: Extraction engine; defaults to one that resolves chained
                references through this repository.
        """
        self.db = db
        self.search_index = SearchIndexRepository(db)
        self.indexer = indexer or SearchIndexer(fetcher=RepositoryFetcher(self, settings.base_url))

    async def save(self, resource: FhirResource) -> FhirResource:
        """Save FHIR resource and sync its search index if configured.

        Args:
            resource: FhirResource to save.

        Returns:
            The saved FhirResource.

        Raises:
            MalformedResourceError: If the resource cannot be indexed.
        """
        resource.last_updated = datetime.now(timezone.utc)
        self.db.add(resource)
        await self.db.flush()
        await self._sync_search_index(resource)
        return resource

    async def save_from_data(self, resource_type: str, fhir_data: dict) -> FhirResource:
        """Create FhirResource from FHIR JSON and save with its search index.

        Args:
            resource_type: FHIR resource type (e.g., 'Task', 'Observation').
            fhir_data: Raw FHIR JSON data.

        Returns:
            The created and saved FhirResource.
        """
        resource = FhirResource(
            fhir_id=fhir_data.get("id", str(uuid.uuid4())),
            resource_type=resource_type,
            data=fhir_data,
        )
        return await self.save(resource)

    async def update(self, resource: FhirResource) -> FhirResource:
        """Update FHIR resource and rebuild its search index.

        Args:
            resource: FhirResource to update.

        Returns:
            The updated FhirResource.
        """
        resource.last_updated = datetime.now(timezone.utc)
        await self.db.flush()
        await self._sync_search_index(resource)
        return resource

    async def delete(self, resource_id: uuid.UUID) -> bool:
        """Delete FHIR resource (search index rows cascade via FK).

        Args:
            resource_id: UUID of the resource to delete.

        Returns:
            True if resource was deleted, False if not found.
        """
        resource = await self.get_by_id(resource_id)
        if resource:
            await self.db.delete(resource)
            return True
        return False

    async def get_by_id(self, resource_id: uuid.UUID) -> FhirResource | None:
        """Get FHIR resource by ID.

        Args:
            resource_id: UUID of the resource.

        Returns:
            FhirResource if found, None otherwise.
        """
        result = await self.db.execute(
            select(FhirResource).where(FhirResource.id == resource_id)
        )
        return result.scalar_one_or_none()

    async def get_by_fhir_id(
        self, fhir_id: str, resource_type: str
    ) -> FhirResource | None:
        """Get FHIR resource by FHIR ID and type.

        Args:
            fhir_id: The FHIR resource ID (from the FHIR JSON).
            resource_type: FHIR resource type.

        Returns:
            FhirResource if found, None otherwise.
        """
        result = await self.db.execute(
            select(FhirResource).where(
                FhirResource.fhir_id == fhir_id,
                FhirResource.resource_type == resource_type,
            )
        )
        return result.scalar_one_or_none()

    async def reindex(self, resource: FhirResource) -> list[IndexRow]:
        """Rebuild the search index rows of a stored resource.

        Returns:
            The extracted rows.
        """
        return await self._sync_search_index(resource)

    async def _sync_search_index(self, resource: FhirResource) -> list[IndexRow]:
        """Replace the resource's index rows with a fresh extraction.

        Resource types without an index configuration are stored but not
        indexed.

        Args:
            resource: The FhirResource to index.

        Returns:
            The extracted rows (empty when the type is not indexed).
        """
        if not IndexRegistry.has_index(resource.resource_type):
            logger.debug("No search index configured for %s; skipping", resource.resource_type)
            return []

        rows = await self.indexer.index(stored_resource(resource))
        await self.search_index.replace_for_resource(resource, rows)
        return rows
