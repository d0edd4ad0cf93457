"""Search parameter tables for request, task and financial resources."""

import logging

from fhirindex.indexing import fields
from fhirindex.indexing.registry import IndexConfig, IndexRegistry

logger = logging.getLogger(__name__)


def service_request_index() -> IndexConfig:
    return IndexConfig(
        resource_type="ServiceRequest",
        parameters=[
            fields.identifier(),
            fields.identifier("requisition", "requisition"),
            fields.token("status", "status"),
            fields.token("intent", "intent"),
            fields.token("priority", "priority"),
            fields.concept("category", "category"),
            fields.concept("code", "code"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date("authored", "authoredOn"),
            fields.date_choice("occurrence", "occurrence"),
            fields.reference("requester", "requester"),
            fields.reference("performer", "performer"),
            fields.concept("performer-type", "performerType"),
            fields.reference("specimen", "specimen", targets=("Specimen",)),
            fields.concept("body-site", "bodySite"),
            fields.reference("based-on", "basedOn"),
            fields.reference("replaces", "replaces", targets=("ServiceRequest",)),
            fields.uri("instantiates-canonical", "instantiatesCanonical"),
            fields.uri("instantiates-uri", "instantiatesUri"),
        ],
    )


def task_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Task",
        parameters=[
            fields.identifier(),
            fields.identifier("group-identifier", "groupIdentifier"),
            fields.token("status", "status"),
            fields.token("intent", "intent"),
            fields.token("priority", "priority"),
            fields.concept("code", "code"),
            fields.concept("business-status", "businessStatus"),
            fields.subject("subject", "for"),
            fields.reference("focus", "focus"),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date("authored-on", "authoredOn"),
            fields.date("modified", "lastModified"),
            fields.period("period", "executionPeriod"),
            fields.reference("requester", "requester"),
            fields.concept("performer", "performerType"),
            fields.reference("owner", "owner"),
            fields.reference("based-on", "basedOn"),
            fields.reference("part-of", "partOf", targets=("Task",)),
        ],
    )


def communication_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Communication",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("category", "category"),
            fields.concept("medium", "medium"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date("sent", "sent"),
            fields.date("received", "received"),
            fields.reference("sender", "sender"),
            fields.reference("recipient", "recipient"),
            fields.reference("based-on", "basedOn"),
            fields.reference("part-of", "partOf"),
            fields.uri("instantiates-canonical", "instantiatesCanonical"),
            fields.uri("instantiates-uri", "instantiatesUri"),
        ],
    )


def device_request_index() -> IndexConfig:
    return IndexConfig(
        resource_type="DeviceRequest",
        parameters=[
            fields.identifier(),
            fields.identifier("group-identifier", "groupIdentifier"),
            fields.token("status", "status"),
            fields.token("intent", "intent"),
            fields.concept("code", "codeCodeableConcept"),
            fields.reference("device", "codeReference", targets=("Device",)),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date("authored-on", "authoredOn"),
            fields.date_choice("event-date", "occurrence"),
            fields.reference("requester", "requester"),
            fields.reference("performer", "performer"),
            fields.reference("based-on", "basedOn"),
            fields.reference("prior-request", "priorRequest"),
            fields.reference("insurance", "insurance"),
        ],
    )


def account_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Account",
        parameters=[
            fields.identifier(),
            fields.string("name", "name"),
            fields.token("status", "status"),
            fields.concept("type", "type"),
            fields.period("period", "servicePeriod"),
            fields.subject(),
            fields.reference("owner", "owner", targets=("Organization",)),
        ],
    )


def coverage_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Coverage",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("type", "type"),
            fields.reference("beneficiary", "beneficiary", narrowing={"Patient": "patient"}),
            fields.reference("payor", "payor"),
            fields.reference("policy-holder", "policyHolder"),
            fields.reference("subscriber", "subscriber"),
            fields.string("dependent", "dependent"),
            fields.concept("class-type", "class.type"),
            fields.string("class-value", "class.value"),
        ],
    )


def claim_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Claim",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.token("use", "use"),
            fields.concept("priority", "priority"),
            fields.date("created", "created"),
            fields.reference("patient", "patient", targets=("Patient",)),
            fields.reference("provider", "provider"),
            fields.reference("insurer", "insurer", targets=("Organization",)),
            fields.reference("enterer", "enterer"),
            fields.reference("facility", "facility", targets=("Location",)),
            fields.reference("encounter", "item.encounter", targets=("Encounter",)),
            fields.reference("care-team", "careTeam.provider"),
            fields.reference("payee", "payee.party"),
            fields.reference("item-udi", "item.udi", targets=("Device",)),
            fields.reference("detail-udi", "item.detail.udi", targets=("Device",)),
            fields.reference("procedure-udi", "procedure.udi", targets=("Device",)),
        ],
    )


def register_workflow_indexes() -> None:
    """Register request, task and financial resource tables."""
    for build in (
        service_request_index,
        task_index,
        communication_index,
        device_request_index,
        account_index,
        coverage_index,
        claim_index,
    ):
        config = build()
        IndexRegistry.register(config)
        logger.debug("Registered search index for %s", config.resource_type)
