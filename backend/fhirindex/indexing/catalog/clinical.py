"""Search parameter tables for clinical summary resources."""

import logging

from fhirindex.indexing import fields
from fhirindex.indexing.registry import IndexConfig, IndexRegistry

logger = logging.getLogger(__name__)


def condition_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Condition",
        parameters=[
            fields.identifier(),
            fields.concept("clinical-status", "clinicalStatus"),
            fields.concept("verification-status", "verificationStatus"),
            fields.concept("category", "category"),
            fields.concept("severity", "severity"),
            fields.concept("code", "code"),
            fields.concept("body-site", "bodySite"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date_choice("onset-date", "onset"),
            fields.quantity("onset-age", "onsetAge"),
            fields.string("onset-info", "onsetString"),
            fields.date_choice("abatement-date", "abatement"),
            fields.quantity("abatement-age", "abatementAge"),
            fields.string("abatement-string", "abatementString"),
            fields.date("recorded-date", "recordedDate"),
            fields.reference("asserter", "asserter"),
            fields.concept("stage", "stage.summary"),
            fields.concept("evidence", "evidence.code"),
            fields.reference("evidence-detail", "evidence.detail"),
        ],
    )


def allergy_intolerance_index() -> IndexConfig:
    return IndexConfig(
        resource_type="AllergyIntolerance",
        parameters=[
            fields.identifier(),
            fields.concept("clinical-status", "clinicalStatus"),
            fields.concept("verification-status", "verificationStatus"),
            fields.token("type", "type"),
            fields.token("category", "category"),
            fields.token("criticality", "criticality"),
            fields.concept("code", "code"),
            fields.concept("code", "reaction.substance"),
            fields.concept("manifestation", "reaction.manifestation"),
            fields.token("severity", "reaction.severity"),
            fields.concept("route", "reaction.exposureRoute"),
            fields.date("onset", "reaction.onset"),
            fields.date("date", "recordedDate"),
            fields.date("last-date", "lastOccurrence"),
            fields.reference("patient", "patient", targets=("Patient",)),
            fields.reference("recorder", "recorder"),
            fields.reference("asserter", "asserter"),
        ],
    )


def procedure_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Procedure",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("category", "category"),
            fields.concept("code", "code"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.date_choice("date", "performed"),
            fields.reference("performer", "performer.actor"),
            fields.reference("location", "location", targets=("Location",)),
            fields.concept("reason-code", "reasonCode"),
            fields.reference("reason-reference", "reasonReference"),
            fields.reference("based-on", "basedOn"),
            fields.reference("part-of", "partOf"),
            fields.uri("instantiates-canonical", "instantiatesCanonical"),
            fields.uri("instantiates-uri", "instantiatesUri"),
        ],
    )


def family_member_history_index() -> IndexConfig:
    return IndexConfig(
        resource_type="FamilyMemberHistory",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.reference("patient", "patient", targets=("Patient",)),
            fields.concept("relationship", "relationship"),
            fields.concept("sex", "sex"),
            fields.concept("code", "condition.code"),
            fields.date("date", "date"),
            fields.uri("instantiates-canonical", "instantiatesCanonical"),
            fields.uri("instantiates-uri", "instantiatesUri"),
        ],
    )


def care_plan_index() -> IndexConfig:
    return IndexConfig(
        resource_type="CarePlan",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.token("intent", "intent"),
            fields.concept("category", "category"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.period("date", "period"),
            fields.reference("care-team", "careTeam", targets=("CareTeam",)),
            fields.reference("condition", "addresses", targets=("Condition",)),
            fields.reference("goal", "goal", targets=("Goal",)),
            fields.reference("performer", "activity.detail.performer"),
            fields.concept("activity-code", "activity.detail.code"),
            fields.date_choice("activity-date", "scheduled", parent="activity.detail"),
            fields.reference("activity-reference", "activity.reference"),
            fields.reference("based-on", "basedOn", targets=("CarePlan",)),
            fields.reference("replaces", "replaces", targets=("CarePlan",)),
            fields.reference("part-of", "partOf", targets=("CarePlan",)),
            fields.uri("instantiates-canonical", "instantiatesCanonical"),
            fields.uri("instantiates-uri", "instantiatesUri"),
        ],
    )


def care_team_index() -> IndexConfig:
    return IndexConfig(
        resource_type="CareTeam",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("category", "category"),
            fields.subject(),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.period("date", "period"),
            fields.reference("participant", "participant.member"),
        ],
    )


def goal_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Goal",
        parameters=[
            fields.identifier(),
            fields.token("lifecycle-status", "lifecycleStatus"),
            fields.concept("achievement-status", "achievementStatus"),
            fields.concept("category", "category"),
            fields.subject(),
            fields.date("start-date", "startDate"),
            fields.date("target-date", "target.dueDate"),
        ],
    )


def flag_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Flag",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("category", "category"),
            fields.subject(),
            fields.period("date", "period"),
            fields.reference("encounter", "encounter", targets=("Encounter",)),
            fields.reference("author", "author"),
        ],
    )


def immunization_index() -> IndexConfig:
    return IndexConfig(
        resource_type="Immunization",
        parameters=[
            fields.identifier(),
            fields.token("status", "status"),
            fields.concept("status-reason", "statusReason"),
            fields.concept("vaccine-code", "vaccineCode"),
            fields.reference("patient", "patient", targets=("Patient",)),
            fields.date_choice("date", "occurrence"),
            fields.reference("location", "location", targets=("Location",)),
            fields.string("lot-number", "lotNumber"),
            fields.reference("manufacturer", "manufacturer", targets=("Organization",)),
            fields.reference("performer", "performer.actor"),
            fields.reference("reaction", "reaction.detail", targets=("Observation",)),
            fields.date("reaction-date", "reaction.date"),
            fields.concept("reason-code", "reasonCode"),
            fields.reference("reason-reference", "reasonReference"),
            fields.string("series", "protocolApplied.series"),
            fields.concept("target-disease", "protocolApplied.targetDisease"),
        ],
    )


def register_clinical_indexes() -> None:
    """Register clinical summary resource tables."""
    for build in (
        condition_index,
        allergy_intolerance_index,
        procedure_index,
        family_member_history_index,
        care_plan_index,
        care_team_index,
        goal_index,
        flag_index,
        immunization_index,
    ):
        config = build()
        IndexRegistry.register(config)
        logger.debug("Registered search index for %s", config.resource_type)
