"""Search index extraction engine.

Turns one stored FHIR resource into its full list of search index rows:
common parameters, every parameter in the resource type's table, and
one level of chained parameters for each reference.

Chaining is bounded by construction. A top-level extraction expands each
reference by extracting the referenced document with a ChainContext; an
extraction running under a ChainContext emits reference rows but never
expands them again, so reference cycles cannot recurse.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from fhirindex.config import settings
from fhirindex.indexing import encoders
from fhirindex.indexing.constants import (
    CHAIN_SEPARATOR,
    PARAM_ID,
    PARAM_LANGUAGE,
    PARAM_LAST_UPDATED,
    PARAM_PROFILE,
    PARAM_SECURITY,
    PARAM_TAG,
    TYPE_MODIFIER_SEPARATOR,
)
from fhirindex.indexing.dates import ParsedDate, resolve_timezone
from fhirindex.indexing.exceptions import (
    IndexingError,
    MalformedResourceError,
    ReferenceResolutionError,
)
from fhirindex.indexing.fetch import DocumentFetcher, FetchedDocument
from fhirindex.indexing.paths import walk
from fhirindex.indexing.references import (
    full_local_reference,
    is_contained_reference,
    parse_reference,
)
from fhirindex.indexing.registry import (
    FieldContext,
    IndexRegistry,
    ReferenceValue,
    SearchParameter,
)
from fhirindex.indexing.rows import IndexRow, RowValue

logger = logging.getLogger(__name__)

# Chained parameters go one reference deep
MAX_CHAIN_DEPTH = 1


@dataclass(frozen=True)
class StoredResource:
    """Handle to a stored document.

    Args:
        resource_id: Logical id of the document; owner of every row produced.
        resource_type: Declared resource type.
        content: Raw JSON bytes/str, or an already-decoded dict.
        last_updated: Last-modified timestamp (datetime or FHIR instant string).
        language: Language tag.
    """

    resource_id: str
    resource_type: str
    content: bytes | str | dict
    last_updated: datetime | str | None = None
    language: str | None = None


@dataclass(frozen=True)
class ChainContext:
    """Marks an extraction as running inside a chain.

    Args:
        prefix: Prepended to every parameter name ("subject.").
        depth: Chain depth of this extraction.
        document: The already-parsed referenced document.
    """

    prefix: str
    depth: int = 1
    document: dict | None = None


def parse_resource(
    content: bytes | str | dict,
    resource_id: str | None = None,
    resource_type: str | None = None,
) -> dict:
    """Decode stored content into FHIR JSON.

    Decimals are parsed exactly so quantities index without float rounding.

    Raises:
        MalformedResourceError: If the content is not a FHIR JSON resource
            of the declared type.
    """
    if isinstance(content, dict):
        document = content
    else:
        try:
            if isinstance(content, (bytes, bytearray)):
                content = content.decode("utf-8")
            document = json.loads(content, parse_float=Decimal)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedResourceError(resource_id, f"unparseable content ({e})") from e

    if not isinstance(document, dict) or not document.get("resourceType"):
        raise MalformedResourceError(resource_id, "content is not a FHIR resource")
    if resource_type and document["resourceType"] != resource_type:
        raise MalformedResourceError(
            resource_id,
            f"declared type {resource_type} does not match resourceType {document['resourceType']}",
        )
    return document


def _as_parsed_date(value: datetime | str | None) -> ParsedDate | str | None:
    if isinstance(value, datetime):
        return ParsedDate(value if value.tzinfo else value.replace(tzinfo=timezone.utc))
    return value


def _reprefix(rows: list[IndexRow], old_prefix: str, new_prefix: str) -> list[IndexRow]:
    if old_prefix == new_prefix:
        return list(rows)
    return [row.with_param_name(new_prefix + row.param_name[len(old_prefix):]) for row in rows]


class SearchIndexer:
    """Extracts search index rows from stored FHIR resources.

    Holds configuration only; every call is independent, so one indexer can
    serve concurrent extractions.
    """

    def __init__(
        self,
        fetcher: DocumentFetcher | None = None,
        base_url: str | None = None,
        registry: type[IndexRegistry] = IndexRegistry,
        local_timezone: str | None = None,
        fetch_timeout: float | None = None,
        max_value_length: int | None = None,
    ):
        """Initialize the indexer.

        Args:
            fetcher: Fetch collaborator for chained references. Without one,
                only contained and embedded references are chain-expanded.
            base_url: Base URL used to qualify relative references.
            registry: Index configuration registry.
            local_timezone: IANA zone for the auxiliary local date columns.
            fetch_timeout: Seconds to wait for each referenced document.
            max_value_length: Index column width.
        """
        self.fetcher = fetcher
        self.base_url = (base_url if base_url is not None else settings.base_url).rstrip("/")
        self.registry = registry
        self.fetch_timeout = fetch_timeout if fetch_timeout is not None else settings.chain_fetch_timeout
        self.max_value_length = (
            max_value_length if max_value_length is not None else settings.index_value_max_length
        )
        self.field_context = FieldContext(
            local_tz=resolve_timezone(local_timezone or settings.local_timezone)
        )

    async def index(self, stored: StoredResource, chain: ChainContext | None = None) -> list[IndexRow]:
        """Extract every search index row for a stored resource.

        Args:
            stored: The stored document handle.
            chain: Chain context when extracting a referenced document on
                behalf of stored (rows are owned by stored.resource_id).

        Returns:
            All rows; order is not significant.

        Raises:
            MalformedResourceError: If the document cannot be parsed.
            UnknownResourceTypeError: If the type has no index configuration.
        """
        if chain is not None and chain.document is not None:
            document = parse_resource(chain.document)
        else:
            document = parse_resource(stored.content, stored.resource_id, stored.resource_type)

        rows = await self._extract(
            stored.resource_id,
            document,
            chain,
            stored=stored if chain is None else None,
        )
        logger.debug(
            "Extracted %d search index rows for %s/%s",
            len(rows),
            stored.resource_type,
            stored.resource_id,
        )
        return rows

    async def _extract(
        self,
        owner_id: str,
        document: dict,
        chain: ChainContext | None,
        stored: StoredResource | None = None,
    ) -> list[IndexRow]:
        config = self.registry.dispatch(document.get("resourceType"))
        prefix = chain.prefix if chain else ""
        document_id = document.get("id") or owner_id

        try:
            rows = self._common_rows(owner_id, document, prefix, stored)
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            raise MalformedResourceError(document_id, f"common parameters: {e}") from e

        for parameter in config.parameters:
            try:
                values = parameter.extract(document, self.field_context)
            except (ValueError, TypeError, AttributeError, KeyError) as e:
                raise MalformedResourceError(document_id, f"{parameter.name}: {e}") from e

            for value in values:
                if isinstance(value, ReferenceValue):
                    rows.extend(await self._reference_rows(owner_id, parameter, value, document, chain))
                else:
                    rows.append(self._row(owner_id, prefix + parameter.name, parameter.param_type, value))
        return rows

    def _row(self, owner_id: str, name: str, param_type: str, value: RowValue) -> IndexRow:
        return IndexRow.from_value(owner_id, name, param_type, value, self.max_value_length)

    def _common_rows(
        self,
        owner_id: str,
        document: dict,
        prefix: str,
        stored: StoredResource | None,
    ) -> list[IndexRow]:
        """_id, _language, _lastUpdated and the meta tags.

        Malformed meta elements raise from the encoders; _extract wraps
        them in MalformedResourceError.
        """
        meta = document.get("meta") or {}
        resource_id = (stored.resource_id if stored else None) or document.get("id")
        language = (stored.language if stored else None) or document.get("language")
        last_updated = (stored.last_updated if stored else None) or meta.get("lastUpdated")

        candidates = [
            (PARAM_ID, "token", encoders.token(resource_id)),
            (PARAM_LANGUAGE, "token", encoders.token(language)),
            (PARAM_LAST_UPDATED, "date", encoders.date(_as_parsed_date(last_updated), self.field_context.local_tz)),
        ]

        for tag in walk(meta, "tag"):
            candidates.append((PARAM_TAG, "token", encoders.meta_coding(tag)))
        for profile in walk(meta, "profile"):
            candidates.append((PARAM_PROFILE, "uri", encoders.string(profile)))
        for label in walk(meta, "security"):
            candidates.append((PARAM_SECURITY, "token", encoders.meta_coding(label)))

        return [
            self._row(owner_id, prefix + name, param_type, value)
            for name, param_type, value in candidates
            if value is not None
        ]

    def _self_url(self, document: dict, fallback_id: str | None = None) -> str | None:
        resource_id = document.get("id") or fallback_id
        if document.get("resourceType") and resource_id:
            return f"{self.base_url}/{document['resourceType']}/{resource_id}"
        return None

    async def _reference_rows(
        self,
        owner_id: str,
        parameter: SearchParameter,
        value: ReferenceValue,
        document: dict,
        chain: ChainContext | None,
    ) -> list[IndexRow]:
        """Rows for one reference value, plus its chained rows at the top level.

        Emits the qualified reference under the parameter name, under the
        narrower name when the target type calls for it, and under the typed
        modifier form "<name>:<Type>" when the target type is known.
        """
        prefix = chain.prefix if chain else ""
        depth = chain.depth if chain else 0
        full_reference = full_local_reference(value.reference, self.base_url, self._self_url(document, owner_id))

        target = None
        if depth < MAX_CHAIN_DEPTH:
            try:
                target = await self._resolve_target(value, full_reference, document)
            except ReferenceResolutionError as e:
                logger.warning("Skipping chained search parameters: %s", e)

        resolved_type = (
            parse_reference(value.reference).resource_type
            or value.type_hint
            or (target.resource_type if target else None)
        )

        names = [parameter.name]
        narrow_name = parameter.narrowing.get(resolved_type) if resolved_type else None
        if narrow_name:
            names.append(narrow_name)

        rows = []
        reference_value = RowValue(value=full_reference)
        for name in names:
            rows.append(self._row(owner_id, prefix + name, "reference", reference_value))
            if resolved_type:
                typed_name = f"{prefix}{name}{TYPE_MODIFIER_SEPARATOR}{resolved_type}"
                rows.append(self._row(owner_id, typed_name, "reference", reference_value))

        if target is None:
            return rows

        chained = await self._chained_rows(owner_id, parameter.name, target, depth + 1)
        base_prefix = parameter.name + CHAIN_SEPARATOR
        for name in names:
            rows.extend(_reprefix(chained, base_prefix, name + CHAIN_SEPARATOR))
            if resolved_type:
                typed_prefix = f"{name}{TYPE_MODIFIER_SEPARATOR}{resolved_type}{CHAIN_SEPARATOR}"
                rows.extend(_reprefix(chained, base_prefix, typed_prefix))
        return rows

    async def _resolve_target(
        self,
        value: ReferenceValue,
        full_reference: str,
        document: dict,
    ) -> FetchedDocument | None:
        """Find the referenced document: embedded, contained, or fetched.

        Returns:
            The target, or None when there is nothing to expand.

        Raises:
            ReferenceResolutionError: If the target is missing, or the fetch
                fails or times out.
        """
        if value.embedded is not None:
            return FetchedDocument(value.embedded.get("resourceType", ""), value.embedded)

        if is_contained_reference(value.reference):
            contained_id = value.reference[1:]
            for contained in walk(document, "contained"):
                if isinstance(contained, dict) and contained.get("id") == contained_id:
                    return FetchedDocument(contained.get("resourceType", ""), contained)
            raise ReferenceResolutionError(value.reference, "no matching contained resource")

        if self.fetcher is None:
            return None

        try:
            target = await asyncio.wait_for(
                self.fetcher.fetch(full_reference),
                timeout=self.fetch_timeout if self.fetch_timeout > 0 else None,
            )
        except asyncio.TimeoutError:
            raise ReferenceResolutionError(
                full_reference, f"fetch timed out after {self.fetch_timeout}s"
            ) from None
        except Exception as e:
            raise ReferenceResolutionError(full_reference, f"fetch failed ({e})") from e

        if target is None:
            raise ReferenceResolutionError(full_reference, "not found")
        return FetchedDocument(target.document.get("resourceType") or target.resource_type, target.document)

    async def _chained_rows(
        self,
        owner_id: str,
        parameter_name: str,
        target: FetchedDocument,
        depth: int,
    ) -> list[IndexRow]:
        """Extract the target document under the "<parameter>." prefix."""
        if not self.registry.has_index(target.resource_type):
            logger.debug(
                "No search index configuration for chained type %s; skipping %s chain",
                target.resource_type,
                parameter_name,
            )
            return []

        chain = ChainContext(
            prefix=parameter_name + CHAIN_SEPARATOR,
            depth=depth,
            document=target.document,
        )
        try:
            return await self._extract(owner_id, parse_resource(target.document), chain)
        except IndexingError as e:
            logger.warning("Skipping chained search parameters for %s: %s", parameter_name, e)
            return []
