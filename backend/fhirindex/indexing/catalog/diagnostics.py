"""Search parameter tables for diagnostic resources.

Observation carries the composite parameters: a code paired with the
observed value, each component encoded as "system|code" and components
joined with "$". The code side always uses the first coding only so a
point query matches exactly one composite string per observation.
Observation components repeat the same parameters under "component-*",
and "combo-*" covers the observation and its components together.
"""

import logging
from typing import Callable, Iterator

from fhirindex.indexing import encoders, fields
from fhirindex.indexing.fields import encode_date_choice
from fhirindex.indexing.paths import choice, walk
from fhirindex.indexing.registry import FieldContext, IndexConfig, IndexRegistry, SearchParameter
from fhirindex.indexing.rows import RowKind, RowValue

logger = logging.getLogger(__name__)

# Which observation nodes a parameter reads
SCOPE_OBSERVATION = "observation"
SCOPE_COMPONENT = "component"
SCOPE_COMBO = "combo"

SCOPE_PREFIXES = {
    SCOPE_OBSERVATION: "",
    SCOPE_COMPONENT: "component-",
    SCOPE_COMBO: "combo-",
}


def _scoped_nodes(observation: dict, scope: str) -> Iterator[dict]:
    if scope in (SCOPE_OBSERVATION, SCOPE_COMBO):
        yield observation
    if scope in (SCOPE_COMPONENT, SCOPE_COMBO):
        yield from walk(observation, "component")


def first_coding_component(concept: dict | None) -> str | None:
    """The "system|code" component of a concept's first coding."""
    codings = (concept or {}).get("coding") or []
    if not codings or codings[0].get("code") in (None, ""):
        return None
    return encoders.composite_component(codings[0].get("system"), codings[0]["code"])


# =============================================================================
# Value extraction (value[x] of an observation or component)
# =============================================================================


def value_quantity(node: dict, context: FieldContext) -> Iterator[RowValue | None]:
    found = choice(node, "value")
    if found is None:
        return
    suffix, value = found
    if suffix == "Quantity":
        yield encoders.quantity_of(value)
    elif suffix == "SampledData":
        yield encoders.quantity(value.get("lowerLimit"))


def value_concept(node: dict, context: FieldContext) -> Iterator[RowValue | None]:
    concept = node.get("valueCodeableConcept")
    if concept:
        yield from fields.concept_codings(concept)


def value_string(node: dict, context: FieldContext) -> Iterator[RowValue | None]:
    if "valueString" in node:
        yield encoders.string(node["valueString"])
    elif node.get("valueCodeableConcept"):
        yield encoders.string(node["valueCodeableConcept"].get("text"))


def value_date(node: dict, context: FieldContext) -> Iterator[RowValue | None]:
    found = choice(node, "value")
    if found is not None and found[0] in ("DateTime", "Period"):
        yield encode_date_choice(node, "value", context)


def code_tokens(node: dict, context: FieldContext) -> Iterator[RowValue | None]:
    yield from fields.concept_codings(node.get("code") or {})


def data_absent_reason(node: dict, context: FieldContext) -> Iterator[RowValue | None]:
    yield from fields.concept_codings(node.get("dataAbsentReason") or {})


# =============================================================================
# Code/value composites
# =============================================================================


def _prefixed(code_part: str, value: str | None) -> str | None:
    return encoders.join_components(code_part, value) if value is not None else None


def code_value_composites(node: dict, context: FieldContext) -> Iterator[tuple[str, RowValue]]:
    """(value kind, composite) pairs for one observation or component node.

    Value kinds are "quantity", "concept", "string" and "date".
    """
    code_part = first_coding_component(node.get("code"))
    if code_part is None:
        return
    found = choice(node, "value")
    if found is None:
        return
    suffix, value = found

    if suffix == "Quantity":
        if value.get("value") is not None:
            amount = encoders.decimal_string(value["value"])
            yield "quantity", encoders.composite(code_part, encoders.composite_component(value.get("system"), amount))
    elif suffix == "SampledData":
        if value.get("lowerLimit") is not None:
            yield "quantity", encoders.composite(code_part, encoders.decimal_string(value["lowerLimit"]))
    elif suffix == "CodeableConcept":
        value_part = first_coding_component(value)
        if value_part is not None:
            yield "concept", encoders.composite(code_part, value_part)
        if value.get("text"):
            yield "string", encoders.composite(code_part, value["text"])
    elif suffix == "String":
        if value != "":
            yield "string", encoders.composite(code_part, value)
    elif suffix in ("DateTime", "Period"):
        encoded = encode_date_choice(node, "value", context)
        if encoded is not None:
            yield "date", RowValue(
                value=_prefixed(code_part, encoded.value),
                value_high=_prefixed(code_part, encoded.value_high),
                kind=RowKind.COMPOSITE,
                value_local=_prefixed(code_part, encoded.value_local),
                value_high_local=_prefixed(code_part, encoded.value_high_local),
            )


# =============================================================================
# Parameter factories
# =============================================================================


def scoped(
    name: str,
    param_type: str,
    scope: str,
    node_extractor: Callable[[dict, FieldContext], Iterator[RowValue | None]],
) -> SearchParameter:
    """Apply a per-node extractor to the nodes a scope covers."""

    def extract(observation: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for node in _scoped_nodes(observation, scope):
            yield from node_extractor(node, context)

    return fields.custom(SCOPE_PREFIXES[scope] + name, param_type, extract)


def code_value(kind: str, scope: str) -> SearchParameter:
    """code-value-<kind> composite over the nodes a scope covers."""

    def extract(observation: dict, context: FieldContext) -> Iterator[RowValue]:
        for node in _scoped_nodes(observation, scope):
            for value_kind, row_value in code_value_composites(node, context):
                if value_kind == kind:
                    yield row_value

    return fields.custom(f"{SCOPE_PREFIXES[scope]}code-value-{kind}", "composite", extract)


def observation_value_parameters() -> list[SearchParameter]:
    parameters = [
        scoped("value-date", "date", SCOPE_OBSERVATION, value_date),
        code_value("date", SCOPE_OBSERVATION),
    ]
    for scope in (SCOPE_OBSERVATION, SCOPE_COMPONENT, SCOPE_COMBO):
        if scope != SCOPE_OBSERVATION:
            parameters.append(scoped("code", "token", scope, code_tokens))
        parameters.extend([
            scoped("data-absent-reason", "token", scope, data_absent_reason),
            scoped("value-quantity", "quantity", scope, value_quantity),
            scoped("value-concept", "token", scope, value_concept),
            scoped("value-string", "string", scope, value_string),
            code_value("quantity", scope),
            code_value("concept", scope),
            code_value("string", scope),
        ])
    return parameters


def observation_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Observation",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("category", "category"),
            fields.concept("code", "code"),
            fields.concept("method", "method"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date_choice("date", "effective"),
            fields.reference("performer", "performer"),
            fields.reference("specimen", "specimen", targets=("Specimen",)),
            fields.reference("device", "device"),
            fields.reference("focus", "focus"),
            fields.reference("has-member", "hasMember"),
            fields.reference("derived-from", "derivedFrom"),
            fields.reference("based-on", "basedOn"),
            fields.reference("part-of", "partOf"),
            *observation_value_parameters(),
        ],
    )


def diagnostic_report_index() -> IndexConfig:
    return IndexConfig(
        resource_type="DiagnosticReport",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("category", "category"),
            fields.concept("code", "code"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date_choice("date", "effective"),
            fields.date("issued", "issued"),
            fields.reference("performer", "performer"),
            fields.reference("results-interpreter", "resultsInterpreter"),
            fields.reference("result", "result", targets=("Observation",)),
            fields.reference("specimen", "specimen", targets=("Specimen",)),
            fields.reference("based-on", "basedOn"),
            fields.concept("conclusion", "conclusionCode"),
            fields.reference("media", "media.link", targets=("Media",)),
        ],
    )


def specimen_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Specimen",
        parameters=[
            fields.identifier(),
            fields.identifier("accession", "accessionIdentifier"),
            fields.token("status", "status"),
            fields.concept("type", "type"),
            fields.subject(),
            fields.reference("parent", "parent", targets=("Specimen",)),
            fields.concept("bodysite", "collection.bodySite"),
            fields.reference("collector", "collection.collector"),
            fields.date_choice("collected", "collected", parent="collection"),
            fields.concept("container", "container.type"),
            fields.identifier("container-id", "container.identifier"),
        ],
    )


def imaging_study_index() -> IndexConfig:
    return IndexConfig(
        resource_type="ImagingStudy",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date("started", "started"),
            fields.reference("basedon", "basedOn"),
            fields.reference("referrer", "referrer"),
            fields.reference("interpreter", "interpreter"),
            fields.reference("endpoint", "endpoint", targets=("Endpoint",)),
            fields.concept("reason", "reasonCode"),
            fields.token("series", "series.uid"),
            fields.coding("modality", "series.modality"),
            fields.coding("bodysite", "series.bodySite"),
            fields.token("instance", "series.instance.uid"),
            fields.coding("dicom-class", "series.instance.sopClass"),
            fields.reference("performer", "series.performer.actor"),
        ],
    )


def document_reference_index() -> IndexConfig:
    return IndexConfig(
        resource_type="DocumentReference",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.token("doc-status", "docStatus"),
            fields.concept("type", "type"),
            fields.concept("category", "category"),
            fields.subject(),
            fields.date("date", "date"),
            fields.reference("author", "author"),
            fields.reference("authenticator", "authenticator"),
            fields.reference("custodian", "custodian", targets=("Organization",)),
            fields.string("description", "description"),
            fields.concept("security-label", "securityLabel"),
            fields.token("contenttype", "content.attachment.contentType"),
            fields.token("language", "content.attachment.language"),
            fields.uri("location", "content.attachment.url"),
            fields.coding("format", "content.format"),
            fields.reference("encounter", "context.encounter"),
            fields.concept("event", "context.event"),
            fields.concept("facility", "context.facilityType"),
            fields.concept("setting", "context.practiceSetting"),
            fields.period("period", "context.period"),
            fields.reference("related", "context.related"),
            fields.token("relation", "relatesTo.code"),
            fields.reference("relatesto", "relatesTo.target", targets=("DocumentReference",)),
        ],
    )


def register_diagnostic_indexes() -> None:
    """Register diagnostic resource tables."""
    for build in (
        observation_index,
        diagnostic_report_index,
        specimen_index,
        imaging_study_index,
        document_reference_index,
    ):
        config = build()
        IndexRegistry.register(config)
        logger.debug("Registered search index for %s", config.resource_type)
