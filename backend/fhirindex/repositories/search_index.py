"""Search index repository.

Persists the rows produced by the extraction engine. Rows for a resource
are always replaced as a set, never patched, so the table mirrors exactly
what the last extraction produced.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from fhirindex.indexing.constants import PARAM_TAG
from fhirindex.indexing.rows import IndexRow
from fhirindex.models.fhir import FhirResource
from fhirindex.models.search_index import SearchIndexEntry

logger = logging.getLogger(__name__)


def entry_from_row(resource: FhirResource, row: IndexRow) -> SearchIndexEntry:
    """Build a SearchIndexEntry for a resource from an extracted row."""
    data = row.to_dict()
    data.pop("owner_id")
    return SearchIndexEntry(
        fhir_resource_id=resource.id,
        resource_type=resource.resource_type,
        **data,
    )


class SearchIndexRepository:
    """Repository for search index rows."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
        """
        self.db = db

    async def replace_for_resource(
        self, resource: FhirResource, rows: list[IndexRow]
    ) -> list[SearchIndexEntry]:
        """Replace all index rows of a resource within the caller's transaction.

        Args:
            resource: The owning FhirResource (must already have an id).
            rows: Freshly extracted rows.

        Returns:
            The inserted entries.
        """
        await self.delete_for_resource(resource.id)
        entries = [entry_from_row(resource, row) for row in rows]
        self.db.add_all(entries)
        await self.db.flush()
        logger.debug(
            "Stored %d search index rows for %s/%s",
            len(entries),
            resource.resource_type,
            resource.fhir_id,
        )
        return entries

    async def get_for_resource(
        self,
        resource_id: uuid.UUID,
        param_name: str | None = None,
    ) -> list[SearchIndexEntry]:
        """Get index rows of a resource.

        Args:
            resource_id: UUID of the owning resource.
            param_name: Optional filter by search parameter name.

        Returns:
            List of SearchIndexEntry objects ordered by parameter name.
        """
        query = select(SearchIndexEntry).where(SearchIndexEntry.fhir_resource_id == resource_id)
        if param_name:
            query = query.where(SearchIndexEntry.param_name == param_name)
        query = query.order_by(SearchIndexEntry.param_name, SearchIndexEntry.value)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete_for_resource(self, resource_id: uuid.UUID) -> int:
        """Delete every index row of a resource.

        Returns:
            Number of rows deleted.
        """
        result = await self.db.execute(
            delete(SearchIndexEntry).where(SearchIndexEntry.fhir_resource_id == resource_id)
        )
        return result.rowcount or 0

    async def distinct_tags(self, resource_type: str | None = None) -> list[dict[str, str | None]]:
        """Distinct meta tags across stored resources.

        Args:
            resource_type: Optional filter by resource type.

        Returns:
            List of {"system", "code", "display"} dicts.
        """
        query = (
            select(SearchIndexEntry.system, SearchIndexEntry.value, SearchIndexEntry.code)
            .where(SearchIndexEntry.param_name == PARAM_TAG)
            .distinct()
        )
        if resource_type:
            query = query.where(SearchIndexEntry.resource_type == resource_type)
        query = query.order_by(SearchIndexEntry.system, SearchIndexEntry.value)

        result = await self.db.execute(query)
        return [
            {"system": system, "code": code, "display": display}
            for system, code, display in result.all()
        ]
