"""Referenced-document fetchers used during chain expansion.

A fetcher turns a fully-qualified reference into the parsed target
document, or None when the target does not exist. Fetchers hold no state
the engine depends on; the engine applies its own timeout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from fhirindex.indexing.references import is_absolute_reference, parse_reference

if TYPE_CHECKING:
    from fhirindex.repositories.fhir import FhirRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedDocument:
    """A referenced document and its declared type."""

    resource_type: str
    document: dict


class DocumentFetcher(Protocol):
    """Fetch collaborator interface."""

    async def fetch(self, reference: str) -> FetchedDocument | None:
        """Return the referenced document, or None if it is not found."""
        ...


class InMemoryFetcher:
    """Serve referenced documents from a dict keyed by "Type/id".

    Used by batch tooling (indexing a whole Bundle before it is stored) and
    by tests.
    """

    def __init__(self, documents: list[dict] | None = None):
        self._documents: dict[tuple[str, str], dict] = {}
        for document in documents or []:
            self.add(document)

    def add(self, document: dict) -> None:
        """Make a document available by its resourceType and id."""
        self._documents[(document["resourceType"], document["id"])] = document

    async def fetch(self, reference: str) -> FetchedDocument | None:
        parsed = parse_reference(reference)
        if not parsed.resource_type or not parsed.resource_id:
            return None
        document = self._documents.get((parsed.resource_type, parsed.resource_id))
        if document is None:
            return None
        return FetchedDocument(parsed.resource_type, document)


class RepositoryFetcher:
    """Read referenced documents from the local resource store.

    Only references into this server are resolved: relative references and
    absolute references under base_url. Anything else is "not found".
    """

    def __init__(self, repository: FhirRepository, base_url: str):
        self.repository = repository
        self.base_url = base_url.rstrip("/")

    def _is_local(self, reference: str) -> bool:
        return not is_absolute_reference(reference) or reference.startswith(self.base_url + "/")

    async def fetch(self, reference: str) -> FetchedDocument | None:
        if not self._is_local(reference):
            logger.debug("Not fetching non-local reference %s", reference)
            return None

        parsed = parse_reference(reference)
        if not parsed.resource_type or not parsed.resource_id:
            return None

        resource = await self.repository.get_by_fhir_id(parsed.resource_id, parsed.resource_type)
        if resource is None:
            return None
        return FetchedDocument(resource.resource_type, resource.data)
