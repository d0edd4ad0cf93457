"""Search parameter tables for scheduling and encounter resources."""

import logging

from fhirindex.indexing import fields
from fhirindex.indexing.registry import IndexConfig, IndexRegistry

logger = logging.getLogger(__name__)

# Appointment participants narrow to the FHIR convenience parameters
PARTICIPANT_NARROWING = {
    "Patient": "patient",
    "Practitioner": "practitioner",
    "Location": "location",
}


def schedule_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Schedule",
        parameters=[
            fields.identifier(),
            fields.boolean("active", "active"),
            fields.reference("actor", "actor"),
            fields.period("date", "planningHorizon"),
            fields.concept("service-category", "serviceCategory"),
            fields.concept("service-type", "serviceType"),
            fields.concept("specialty", "specialty"),
        ],
    )


def slot_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Slot",
        parameters=[
            fields.identifier(),
            fields.reference("schedule", "schedule", targets=("Schedule",)),
            fields.token("status", "status"),
            fields.date("start", "start"),
            fields.concept("service-category", "serviceCategory"),
            fields.concept("service-type", "serviceType"),
            fields.concept("specialty", "specialty"),
            fields.concept("appointment-type", "appointmentType"),
        ],
    )


def appointment_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Appointment",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.date("date", "start"),
            fields.concept("appointment-type", "appointmentType"),
            fields.concept("service-category", "serviceCategory"),
            fields.concept("service-type", "serviceType"),
            fields.concept("specialty", "specialty"),
            fields.concept("reason-code", "reasonCode"),
            fields.reference("reason-reference", "reasonReference"),
            fields.reference("based-on", "basedOn", targets=("ServiceRequest",)),
            fields.reference("slot", "slot", targets=("Slot",)),
            fields.reference("supporting-info", "supportingInformation"),
            fields.reference("actor", "participant.actor", narrowing=PARTICIPANT_NARROWING),
            fields.token("part-status", "participant.status"),
        ],
    )


def appointment_response_index() -> IndexConfig:
    return IndexConfig(
        resource_type="AppointmentResponse",
        parameters=[
            fields.identifier(),
            fields.reference("appointment", "appointment", targets=("Appointment",)),
            fields.reference("actor", "actor", narrowing=PARTICIPANT_NARROWING),
            fields.token("part-status", "participantStatus"),
        ],
    )


def encounter_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Encounter",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.coding("class", "class"),
            fields.concept("type", "type"),
            fields.concept("service-type", "serviceType"),
            fields.subject(),
            fields.reference("participant", "participant.individual", narrowing={"Practitioner": "practitioner"}),
            fields.concept("participant-type", "participant.type"),
            fields.period("date", "period"),
            fields.quantity("length", "length"),
            fields.concept("reason-code", "reasonCode"),
            fields.reference("reason-reference", "reasonReference"),
            fields.reference("diagnosis", "diagnosis.condition"),
            fields.reference("episode-of-care", "episodeOfCare", targets=("EpisodeOfCare",)),
            fields.reference("based-on", "basedOn", targets=("ServiceRequest",)),
            fields.reference("location", "location.location", targets=("Location",)),
            fields.period("location-period", "location.period"),
            fields.reference("service-provider", "serviceProvider", targets=("Organization",)),
            fields.reference("part-of", "partOf", targets=("Encounter",)),
            fields.reference("account", "account", targets=("Account",)),
            fields.reference("appointment", "appointment", targets=("Appointment",)),
            fields.concept("special-arrangement", "hospitalization.specialArrangement"),
        ],
    )


def episode_of_care_index() -> IndexConfig:
    return IndexConfig(
        resource_type="EpisodeOfCare",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("type", "type"),
            fields.period("date", "period"),
            fields.reference("patient", "patient", targets=("Patient",)),
            fields.reference("organization", "managingOrganization", targets=("Organization",)),
            fields.reference("care-manager", "careManager", targets=("Practitioner",)),
            fields.reference("condition", "diagnosis.condition", targets=("Condition",)),
            fields.reference("incoming-referral", "referralRequest", targets=("ServiceRequest",)),
        ],
    )


def register_scheduling_indexes() -> None:
    """Register scheduling and encounter resource tables."""
    for build in (
        schedule_index,
        slot_index,
        appointment_index,
        appointment_response_index,
        encounter_index,
        episode_of_care_index,
    ):
        config = build()
        IndexRegistry.register(config)
        logger.debug("Registered search index for %s", config.resource_type)
