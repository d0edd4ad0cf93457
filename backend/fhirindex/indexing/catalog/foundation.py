"""Search parameter tables for foundation and document resources.

Bundle, Composition, MessageHeader, List, Basic and Provenance.
"""

import logging
from typing import Iterator

from fhirindex.indexing import encoders, fields
from fhirindex.indexing.registry import FieldContext, IndexConfig, IndexRegistry, ReferenceValue
from fhirindex.indexing.rows import RowValue

logger = logging.getLogger(__name__)

BUNDLE_TYPE_DOCUMENT = "document"
BUNDLE_TYPE_MESSAGE = "message"


def _first_entry_reference(bundle: dict, bundle_type: str) -> ReferenceValue | None:
    """Reference to the first entry of a document/message Bundle, carrying the entry itself.

    The entry's resource is already in hand, so chained parameters are
    extracted from it directly instead of fetching.
    """
    if bundle.get("type") != bundle_type:
        return None
    entries = bundle.get("entry") or []
    if not entries:
        return None
    entry = entries[0]
    resource = entry.get("resource")
    if not isinstance(resource, dict) or not resource.get("resourceType"):
        return None

    reference = entry.get("fullUrl")
    if not reference and resource.get("id"):
        reference = f"{resource['resourceType']}/{resource['id']}"
    if not reference:
        return None
    return ReferenceValue(reference, type_hint=resource["resourceType"], embedded=resource)


def extract_bundle_composition(bundle: dict, context: FieldContext) -> Iterator[ReferenceValue | None]:
    """The Composition heading a document Bundle."""
    yield _first_entry_reference(bundle, BUNDLE_TYPE_DOCUMENT)


def extract_bundle_message(bundle: dict, context: FieldContext) -> Iterator[ReferenceValue | None]:
    """The MessageHeader heading a message Bundle."""
    yield _first_entry_reference(bundle, BUNDLE_TYPE_MESSAGE)


def extract_message_event(header: dict, context: FieldContext) -> Iterator[RowValue | None]:
    """MessageHeader.event[x]: a Coding or a URI."""
    if "eventCoding" in header:
        yield encoders.coding(header["eventCoding"])
    elif "eventUri" in header:
        yield encoders.token(header["eventUri"])


def bundle_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Bundle",
        parameters=[
            fields.identifier(),
            fields.token("type", "type"),
            fields.date("timestamp", "timestamp"),
            fields.custom("composition", "reference", extract_bundle_composition, targets=("Composition",)),
            fields.custom("message", "reference", extract_bundle_message, targets=("MessageHeader",)),
        ],
    )


def composition_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Composition",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("type", "type"),
            fields.concept("category", "category"),
            fields.token("confidentiality", "confidentiality"),
            fields.date("date", "date"),
            fields.string("title", "title"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.reference("author", "author"),
            fields.reference("attester", "attester.party"),
            fields.concept("context", "event.code"),
            fields.period("period", "event.period"),
            fields.identifier("related-id", "relatesTo.targetIdentifier"),
            fields.reference("related-ref", "relatesTo.targetReference", targets=("Composition",)),
            fields.concept("section", "section.code"),
            fields.reference("entry", "section.entry"),
        ],
    )


def message_header_index() -> IndexConfig:
    return IndexConfig(
        resource_type="MessageHeader",
        parameters=[
            fields.custom("event", "token", extract_message_event),
            fields.token("code", "response.code"),
            fields.token("response-id", "response.identifier"),
            fields.string("destination", "destination.name"),
            fields.uri("destination-uri", "destination.endpoint"),
            fields.reference("target", "destination.target", targets=("Device",)),
            fields.reference("receiver", "destination.receiver"),
            fields.string("source", "source.name"),
            fields.uri("source-uri", "source.endpoint"),
            fields.reference("sender", "sender"),
            fields.reference("enterer", "enterer"),
            fields.reference("author", "author"),
            fields.reference("responsible", "responsible"),
            fields.reference("focus", "focus"),
        ],
    )


def list_index() -> IndexConfig:
    return IndexConfig(
        resource_type="List",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("code", "code"),
            fields.string("title", "title"),
            fields.date("date", "date"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.reference("source", "source"),
            fields.reference("item", "entry.item"),
            fields.concept("empty-reason", "emptyReason"),
            fields.string("notes", "note.text"),
        ],
    )


def basic_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Basic",
        parameters=[
            fields.identifier(),
            fields.concept("code", "code"),
            fields.date("created", "created"),
            fields.subject(),
            fields.reference("author", "author"),
        ],
    )


def provenance_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Provenance",
        parameters=[
            fields.reference("target", "target", narrowing={"Patient": "patient"}),
            fields.date_choice("when", "occurred"),
            fields.date("recorded", "recorded"),
            fields.reference("location", "location", targets=("Location",)),
            fields.reference("agent", "agent.who"),
            fields.concept("agent-type", "agent.type"),
            fields.concept("agent-role", "agent.role"),
            fields.reference("entity", "entity.what"),
            fields.coding("signature-type", "signature.type"),
        ],
    )


def register_foundation_indexes() -> None:
    """Register foundation and document resource tables."""
    for build in (
        bundle_index,
        composition_index,
        message_header_index,
        list_index,
        basic_index,
        provenance_index,
    ):
        config = build()
        IndexRegistry.register(config)
        logger.debug("Registered search index for %s", config.resource_type)
