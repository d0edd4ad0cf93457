"""FHIR reference parsing and qualification.

All functions are pure and handle missing/malformed data gracefully.
"""

from typing import Any, NamedTuple

from fhirindex.indexing.constants import ABSOLUTE_REFERENCE_PREFIXES

# FHIR R4 resource type names recognized in reference paths
RESOURCE_TYPES = frozenset({
    "Account", "ActivityDefinition", "AdverseEvent", "AllergyIntolerance", "Appointment",
    "AppointmentResponse", "AuditEvent", "Basic", "Binary", "BiologicallyDerivedProduct",
    "BodyStructure", "Bundle", "CapabilityStatement", "CarePlan", "CareTeam", "CatalogEntry",
    "ChargeItem", "ChargeItemDefinition", "Claim", "ClaimResponse", "ClinicalImpression",
    "CodeSystem", "Communication", "CommunicationRequest", "CompartmentDefinition",
    "Composition", "ConceptMap", "Condition", "Consent", "Contract", "Coverage",
    "CoverageEligibilityRequest", "CoverageEligibilityResponse", "DetectedIssue", "Device",
    "DeviceDefinition", "DeviceMetric", "DeviceRequest", "DeviceUseStatement",
    "DiagnosticReport", "DocumentManifest", "DocumentReference", "EffectEvidenceSynthesis",
    "Encounter", "Endpoint", "EnrollmentRequest", "EnrollmentResponse", "EpisodeOfCare",
    "EventDefinition", "Evidence", "EvidenceVariable", "ExampleScenario",
    "ExplanationOfBenefit", "FamilyMemberHistory", "Flag", "Goal", "GraphDefinition", "Group",
    "GuidanceResponse", "HealthcareService", "ImagingStudy", "Immunization",
    "ImmunizationEvaluation", "ImmunizationRecommendation", "ImplementationGuide",
    "InsurancePlan", "Invoice", "Library", "Linkage", "List", "Location", "Measure",
    "MeasureReport", "Media", "Medication", "MedicationAdministration", "MedicationDispense",
    "MedicationKnowledge", "MedicationRequest", "MedicationStatement", "MedicinalProduct",
    "MessageDefinition", "MessageHeader", "MolecularSequence", "NamingSystem",
    "NutritionOrder", "Observation", "ObservationDefinition", "OperationDefinition",
    "OperationOutcome", "Organization", "OrganizationAffiliation", "Parameters", "Patient",
    "PaymentNotice", "PaymentReconciliation", "Person", "PlanDefinition", "Practitioner",
    "PractitionerRole", "Procedure", "Provenance", "Questionnaire", "QuestionnaireResponse",
    "RelatedPerson", "RequestGroup", "ResearchDefinition", "ResearchElementDefinition",
    "ResearchStudy", "ResearchSubject", "RiskAssessment", "RiskEvidenceSynthesis", "Schedule",
    "SearchParameter", "ServiceRequest", "Slot", "Specimen", "SpecimenDefinition",
    "StructureDefinition", "StructureMap", "Subscription", "Substance", "SupplyDelivery",
    "SupplyRequest", "Task", "TerminologyCapabilities", "TestReport", "TestScript",
    "ValueSet", "VerificationResult", "VisionPrescription",
})


class ParsedReference(NamedTuple):
    """Resource type and id recovered from a reference string."""

    resource_type: str | None
    resource_id: str | None


def is_absolute_reference(reference: str | None) -> bool:
    """Check whether a reference is absolute (http(s) URL or URN)."""
    return bool(reference) and reference.startswith(ABSOLUTE_REFERENCE_PREFIXES)


def is_contained_reference(reference: str | None) -> bool:
    """Check whether a reference points at a contained resource ("#id")."""
    return bool(reference) and reference.startswith("#")


def _strip_history_and_query(reference: str) -> str:
    for marker in ("?", "/_history/"):
        index = reference.find(marker)
        if index != -1:
            reference = reference[:index]
    return reference.rstrip("/")


def parse_reference(reference: str | None) -> ParsedReference:
    """Extract resource type and id from a reference string.

    Handles relative ("Patient/42"), absolute ("http://host/fhir/Patient/42"),
    versioned ("Patient/42/_history/3") and URN ("urn:uuid:abc") forms.

    Args:
        reference: FHIR reference string.

    Returns:
        ParsedReference; either part is None when it cannot be determined.
    """
    if not reference or is_contained_reference(reference):
        return ParsedReference(None, reference[1:] if reference else None)

    if reference.startswith("urn:uuid:") or reference.startswith("urn:oid:"):
        return ParsedReference(None, reference.rsplit(":", 1)[-1] or None)

    segments = _strip_history_and_query(reference).split("/")
    resource_id = segments[-1] or None
    if resource_id in RESOURCE_TYPES:
        return ParsedReference(resource_id, None)
    if len(segments) >= 2 and segments[-2] in RESOURCE_TYPES:
        return ParsedReference(segments[-2], resource_id)
    return ParsedReference(None, resource_id)


def full_local_reference(
    reference: str | None,
    base_url: str | None,
    container_url: str | None = None,
) -> str | None:
    """Qualify a reference with the local server's base URL.

    Absolute references are returned unchanged. Contained references ("#id")
    are qualified against container_url, the owning resource's own URL.

    Args:
        reference: Raw reference string.
        base_url: Base URL of the local server (e.g. "http://host/fhir").
        container_url: Full URL of the resource holding the reference.

    Returns:
        The fully-qualified reference, or None for an empty reference.
    """
    if not reference:
        return None
    if is_absolute_reference(reference):
        return reference
    if is_contained_reference(reference):
        return f"{container_url}{reference}" if container_url else reference
    if not base_url:
        return reference

    base_url = base_url.rstrip("/")
    return f"{base_url}{reference}" if reference.startswith("/") else f"{base_url}/{reference}"


def reference_string(value: Any) -> str | None:
    """Pull the reference string out of a Reference element or plain string."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        reference = value.get("reference")
        if reference is not None and not isinstance(reference, str):
            raise TypeError(f"Reference.reference must be a string, not {type(reference).__name__}")
        return reference or None
    return None
