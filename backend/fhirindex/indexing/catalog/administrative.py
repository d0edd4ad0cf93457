"""Search parameter tables for administrative resources.

People, organizations, locations, devices and services.
"""

import logging
from typing import Iterator

from fhirindex.indexing import encoders, fields
from fhirindex.indexing.constants import EXT_MOTHERS_MAIDEN_NAME, EXT_US_CORE_ETHNICITY, EXT_US_CORE_RACE
from fhirindex.indexing.registry import FieldContext, IndexConfig, IndexRegistry, SearchParameter
from fhirindex.indexing.rows import RowValue

logger = logging.getLogger(__name__)


def extract_deceased(patient: dict, context: FieldContext) -> Iterator[RowValue | None]:
    """Patient.deceased[x]: the boolean itself, or "true" when a death date is recorded."""
    if "deceasedBoolean" in patient:
        yield encoders.string(patient["deceasedBoolean"])
    elif patient.get("deceasedDateTime"):
        yield encoders.string(True)


def person_name_parameters() -> list[SearchParameter]:
    """name, phonetic, family and given over HumanName."""
    return [
        fields.human_name("name", "name"),
        fields.human_name("phonetic", "name"),
        fields.string("family", "name.family"),
        fields.string("given", "name.given"),
    ]


def contact_parameters(path: str = "telecom") -> list[SearchParameter]:
    """telecom, email and phone over ContactPoint."""
    return [
        fields.telecom("telecom", path),
        fields.telecom("email", path, system="email"),
        fields.telecom("phone", path, system="phone"),
    ]


def patient_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Patient",
        parameters=[
            fields.identifier(),
            fields.boolean("active", "active"),
            *person_name_parameters(),
            *contact_parameters(),
            *fields.address_parts(),
            fields.token("gender", "gender", system="http://hl7.org/fhir/administrative-gender"),
            fields.date("birthdate", "birthDate"),
            fields.date("death-date", "deceasedDateTime"),
            fields.custom("deceased", "token", extract_deceased),
            fields.concept("language", "communication.language"),
            fields.reference("general-practitioner", "generalPractitioner"),
            fields.reference("organization", "managingOrganization", targets=("Organization",)),
            fields.reference("link", "link.other"),
            fields.extension_concept("race", EXT_US_CORE_RACE),
            fields.extension_concept("ethnicity", EXT_US_CORE_ETHNICITY),
            fields.extension_string("mothersMaidenName", EXT_MOTHERS_MAIDEN_NAME),
        ],
    )


def practitioner_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Practitioner",
        parameters=[
            fields.identifier(),
            fields.boolean("active", "active"),
            *person_name_parameters(),
            *contact_parameters(),
            *fields.address_parts(),
            fields.token("gender", "gender", system="http://hl7.org/fhir/administrative-gender"),
            fields.concept("communication", "communication"),
        ],
    )


def practitioner_role_index() -> IndexConfig:
    return IndexConfig(
        resource_type="PractitionerRole",
        parameters=[
            fields.identifier(),
            fields.boolean("active", "active"),
            fields.period("date", "period"),
            fields.reference("practitioner", "practitioner", targets=("Practitioner",)),
            fields.reference("organization", "organization", targets=("Organization",)),
            fields.concept("role", "code"),
            fields.concept("specialty", "specialty"),
            fields.reference("location", "location", targets=("Location",)),
            fields.reference("service", "healthcareService", targets=("HealthcareService",)),
            fields.reference("endpoint", "endpoint", targets=("Endpoint",)),
            *contact_parameters(),
        ],
    )


def organization_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Organization",
        parameters=[
            fields.identifier(),
            fields.boolean("active", "active"),
            fields.string("name", "name"),
            fields.string("name", "alias"),
            fields.string("phonetic", "name"),
            fields.concept("type", "type"),
            *fields.address_parts(),
            fields.reference("partof", "partOf", targets=("Organization",)),
            fields.reference("endpoint", "endpoint", targets=("Endpoint",)),
        ],
    )


def location_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Location",
        parameters=[
            fields.identifier(),
            fields.string("name", "name"),
            fields.string("name", "alias"),
            fields.token("status", "status"),
            fields.coding("operational-status", "operationalStatus"),
            fields.concept("type", "type"),
            *fields.address_parts(),
            fields.reference("organization", "managingOrganization", targets=("Organization",)),
            fields.reference("partof", "partOf", targets=("Location",)),
            fields.reference("endpoint", "endpoint", targets=("Endpoint",)),
        ],
    )


def related_person_index() -> IndexConfig:
    return IndexConfig(
        resource_type="RelatedPerson",
        parameters=[
            fields.identifier(),
            fields.boolean("active", "active"),
            *person_name_parameters(),
            *contact_parameters(),
            *fields.address_parts(),
            fields.token("gender", "gender", system="http://hl7.org/fhir/administrative-gender"),
            fields.date("birthdate", "birthDate"),
            fields.reference("patient", "patient", targets=("Patient",)),
            fields.concept("relationship", "relationship"),
        ],
    )


def person_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Person",
        parameters=[
            fields.identifier(),
            fields.human_name("name", "name"),
            fields.human_name("phonetic", "name"),
            *contact_parameters(),
            *fields.address_parts(),
            fields.token("gender", "gender", system="http://hl7.org/fhir/administrative-gender"),
            fields.date("birthdate", "birthDate"),
            fields.reference("organization", "managingOrganization", targets=("Organization",)),
            fields.reference(
                "link",
                "link.target",
                narrowing={
                    "Patient": "patient",
                    "Practitioner": "practitioner",
                    "RelatedPerson": "relatedperson",
                },
            ),
        ],
    )


def group_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Group",
        parameters=[
            fields.identifier(),
            fields.boolean("actual", "actual"),
            fields.token("type", "type"),
            fields.concept("code", "code"),
            fields.reference("member", "member.entity"),
            fields.concept("characteristic", "characteristic.code"),
            fields.boolean("exclude", "characteristic.exclude"),
            fields.reference("managing-entity", "managingEntity"),
        ],
    )


def device_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Device",
        parameters=[
            fields.identifier(),
            fields.string("device-name", "deviceName.name"),
            fields.string("manufacturer", "manufacturer"),
            fields.string("model", "modelNumber"),
            fields.concept("type", "type"),
            fields.token("status", "status"),
            fields.string("udi-carrier", "udiCarrier.carrierHRF"),
            fields.string("udi-di", "udiCarrier.deviceIdentifier"),
            fields.uri("url", "url"),
            fields.reference("patient", "patient", targets=("Patient",)),
            fields.reference("organization", "owner", targets=("Organization",)),
            fields.reference("location", "location", targets=("Location",)),
        ],
    )


def healthcare_service_index() -> IndexConfig:
    return IndexConfig(
        resource_type="HealthcareService",
        parameters=[
            fields.identifier(),
            fields.boolean("active", "active"),
            fields.string("name", "name"),
            fields.concept("service-category", "category"),
            fields.concept("service-type", "type"),
            fields.concept("specialty", "specialty"),
            fields.concept("characteristic", "characteristic"),
            fields.concept("program", "program"),
            fields.reference("coverage-area", "coverageArea", targets=("Location",)),
            fields.reference("organization", "providedBy", targets=("Organization",)),
            fields.reference("location", "location", targets=("Location",)),
            fields.reference("endpoint", "endpoint", targets=("Endpoint",)),
        ],
    )


def endpoint_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Endpoint",
        parameters=[
            fields.identifier(),
            fields.string("name", "name"),
            fields.token("status", "status"),
            fields.coding("connection-type", "connectionType"),
            fields.concept("payload-type", "payloadType"),
            fields.reference("organization", "managingOrganization", targets=("Organization",)),
        ],
    )


def register_administrative_indexes() -> None:
    """Register administrative resource tables."""
    for build in (
        patient_index,
        practitioner_index,
        practitioner_role_index,
        organization_index,
        location_index,
        related_person_index,
        person_index,
        group_index,
        device_index,
        healthcare_service_index,
        endpoint_index,
    ):
        config = build()
        IndexRegistry.register(config)
        logger.debug("Registered search index for %s", config.resource_type)
