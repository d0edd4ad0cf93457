"""Search parameter tables for medication resources."""

import logging

from fhirindex.indexing import fields
from fhirindex.indexing.registry import IndexConfig, IndexRegistry, SearchParameter

logger = logging.getLogger(__name__)


def medication_choice_parameters() -> list[SearchParameter]:
    """medication[x]: a code or a reference to a Medication."""
    return [
        fields.concept("code", "medicationCodeableConcept"),
        fields.reference("medication", "medicationReference", targets=("Medication",)),
    ]


def medication_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Medication",
        parameters=[
            fields.identifier(),
            fields.concept("code", "code"),
            fields.token("status", "status"),
            fields.concept("form", "form"),
            fields.reference("ingredient", "ingredient.itemReference"),
            fields.concept("ingredient-code", "ingredient.itemCodeableConcept"),
            fields.string("lot-number", "batch.lotNumber"),
            fields.date("expiration-date", "batch.expirationDate"),
            fields.reference("manufacturer", "manufacturer", targets=("Organization",)),
        ],
    )


def medication_request_index() -> IndexConfig:
    return IndexConfig(
        resource_type="MedicationRequest",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.token("intent", "intent"),
            fields.token("priority", "priority"),
            fields.concept("category", "category"),
            *medication_choice_parameters(),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date("authoredon", "authoredOn"),
            fields.reference("requester", "requester"),
            fields.reference("intended-performer", "performer"),
            fields.concept("intended-performertype", "performerType"),
            fields.reference("intended-dispenser", "dispenseRequest.performer", targets=("Organization",)),
            fields.date("date", "dosageInstruction.timing.event"),
        ],
    )


def medication_administration_index() -> IndexConfig:
    return IndexConfig(
        resource_type="MedicationAdministration",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            *medication_choice_parameters(),
            fields.subject(),
            fields.reference("context", "context"),
            fields.date_choice("effective-time", "effective"),
            fields.reference("performer", "performer.actor"),
            fields.concept("reason-given", "reasonCode"),
            fields.concept("reason-not-given", "statusReason"),
            fields.reference("request", "request", targets=("MedicationRequest",)),
            fields.reference("device", "device", targets=("Device",)),
        ],
    )


def medication_dispense_index() -> IndexConfig:
    return IndexConfig(
        resource_type="MedicationDispense",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            *medication_choice_parameters(),
            fields.subject(),
            fields.reference("context", "context"),
            fields.reference("performer", "performer.actor"),
            fields.reference("receiver", "receiver"),
            fields.reference("destination", "destination", targets=("Location",)),
            fields.reference("prescription", "authorizingPrescription", targets=("MedicationRequest",)),
            fields.reference("responsibleparty", "substitution.responsibleParty"),
            fields.concept("type", "type"),
            fields.date("whenhandedover", "whenHandedOver"),
            fields.date("whenprepared", "whenPrepared"),
        ],
    )


def medication_statement_index() -> IndexConfig:
    return IndexConfig(
        resource_type="MedicationStatement",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("category", "category"),
            *medication_choice_parameters(),
            fields.subject(),
            fields.reference("context", "context"),
            fields.date_choice("effective", "effective"),
            fields.reference("source", "informationSource"),
            fields.reference("part-of", "partOf"),
        ],
    )


def substance_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Substance",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("category", "category"),
            fields.concept("code", "code"),
            fields.concept("code", "ingredient.substanceCodeableConcept"),
            fields.identifier("container-identifier", "instance.identifier"),
            fields.date("expiry", "instance.expiry"),
            fields.quantity("quantity", "instance.quantity"),
            fields.reference("substance-reference", "ingredient.substanceReference", targets=("Substance",)),
        ],
    )


def register_medication_indexes() -> None:
    """Register medication resource tables."""
    for build in (
        medication_index,
        medication_request_index,
        medication_administration_index,
        medication_dispense_index,
        medication_statement_index,
        substance_index,
    ):
        config = build()
        IndexRegistry.register(config)
        logger.debug("Registered search index for %s", config.resource_type)
