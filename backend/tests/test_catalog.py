"""Tests for the per-resource-type search parameter tables."""

import pytest

from fhirindex.indexing.catalog.genomics import is_zero_based
from fhirindex.indexing.registry import IndexRegistry
from fhirindex.indexing.rows import RowKind
from tests.conftest import as_stored, rows_named, values_of

REGISTERED_TYPES = [
    "Account", "AllergyIntolerance", "Appointment", "AppointmentResponse", "Basic", "Bundle",
    "CarePlan", "CareTeam", "Claim", "Communication", "Composition", "Condition", "Coverage",
    "Device", "DeviceRequest", "DiagnosticReport", "DocumentReference", "Encounter", "Endpoint",
    "EpisodeOfCare", "FamilyMemberHistory", "Flag", "Goal", "Group", "HealthcareService",
    "ImagingStudy", "Immunization", "List", "Location", "Medication", "MedicationAdministration",
    "MedicationDispense", "MedicationRequest", "MedicationStatement", "MessageHeader",
    "MolecularSequence", "Observation", "Organization", "Patient", "Person", "Practitioner",
    "PractitionerRole", "Procedure", "Provenance", "RelatedPerson", "Schedule", "ServiceRequest",
    "Slot", "Specimen", "Substance", "Task",
]

SYSTOLIC = "http://loinc.org|8480-6"


class TestRegistration:
    """Tests for catalog registration."""

    def test_every_type_registered(self):
        assert sorted(IndexRegistry.all_configs()) == sorted(REGISTERED_TYPES)

    @pytest.mark.parametrize("resource_type", REGISTERED_TYPES)
    def test_reference_parameters_have_reference_type(self, resource_type):
        """Every parameter declaring targets or narrowing is a reference parameter."""
        config = IndexRegistry.get(resource_type)
        for parameter in config.parameters:
            if parameter.targets or parameter.narrowing:
                assert parameter.is_reference, f"{resource_type}.{parameter.name}"


class TestObservationComposites:
    """Tests for Observation code/value composites."""

    @pytest.mark.asyncio
    async def test_code_value_quantity(self, bare_indexer, sample_observation):
        """Composite uses the first coding and the exact decimal."""
        rows = await bare_indexer.index(as_stored(sample_observation))

        expected = [f"{SYSTOLIC}$http://unitsofmeasure.org|140.5"]
        assert values_of(rows, "code-value-quantity") == expected
        assert values_of(rows, "combo-code-value-quantity") == expected
        assert rows_named(rows, "component-code-value-quantity") == []
        assert all(row.kind == RowKind.COMPOSITE for row in rows_named(rows, "code-value-quantity"))

    @pytest.mark.asyncio
    async def test_value_quantity(self, bare_indexer, sample_observation):
        rows = await bare_indexer.index(as_stored(sample_observation))

        row = rows_named(rows, "value-quantity")[0]
        assert (row.value, row.system, row.code) == ("140.5", "http://unitsofmeasure.org", "mm[Hg]")

    @pytest.mark.asyncio
    async def test_code_tokens_cover_every_coding(self, bare_indexer, sample_observation):
        rows = await bare_indexer.index(as_stored(sample_observation))
        assert values_of(rows, "code") == ["271649006", "8480-6"]

    @pytest.mark.asyncio
    async def test_components(self, bare_indexer):
        observation = {
            "resourceType": "Observation",
            "id": "bp-1",
            "status": "final",
            "code": {"coding": [{"system": "http://loinc.org", "code": "85354-9"}]},
            "component": [
                {
                    "code": {"coding": [{"system": "http://loinc.org", "code": "8480-6"}]},
                    "valueQuantity": {"value": 120, "system": "http://unitsofmeasure.org", "code": "mm[Hg]"},
                },
                {
                    "code": {"coding": [{"system": "http://loinc.org", "code": "8462-4"}]},
                    "valueQuantity": {"value": 80, "system": "http://unitsofmeasure.org", "code": "mm[Hg]"},
                },
            ],
        }
        rows = await bare_indexer.index(as_stored(observation))

        component_values = [
            "http://loinc.org|8462-4$http://unitsofmeasure.org|80",
            "http://loinc.org|8480-6$http://unitsofmeasure.org|120",
        ]
        assert values_of(rows, "component-code-value-quantity") == component_values
        assert values_of(rows, "combo-code-value-quantity") == component_values
        assert values_of(rows, "component-code") == ["8462-4", "8480-6"]
        assert values_of(rows, "combo-code") == ["8462-4", "8480-6", "85354-9"]
        assert values_of(rows, "component-value-quantity") == ["120", "80"]
        assert rows_named(rows, "code-value-quantity") == []

    @pytest.mark.asyncio
    async def test_code_value_concept_and_string(self, bare_indexer):
        observation = {
            "resourceType": "Observation",
            "id": "smoke-1",
            "status": "final",
            "code": {"coding": [{"system": "http://loinc.org", "code": "72166-2"}]},
            "valueCodeableConcept": {
                "coding": [{"system": "http://snomed.info/sct", "code": "266919005"}],
                "text": "Never smoker",
            },
        }
        rows = await bare_indexer.index(as_stored(observation))

        assert values_of(rows, "code-value-concept") == [
            "http://loinc.org|72166-2$http://snomed.info/sct|266919005"
        ]
        assert values_of(rows, "code-value-string") == ["http://loinc.org|72166-2$Never smoker"]
        assert values_of(rows, "value-concept") == ["266919005"]
        assert values_of(rows, "value-string") == ["Never smoker"]

    @pytest.mark.asyncio
    async def test_code_value_date(self, bare_indexer):
        observation = {
            "resourceType": "Observation",
            "id": "lmp-1",
            "status": "final",
            "code": {"coding": [{"system": "http://loinc.org", "code": "8665-2"}]},
            "valueDateTime": "2024-02-01",
        }
        rows = await bare_indexer.index(as_stored(observation))

        assert values_of(rows, "code-value-date") == ["http://loinc.org|8665-2$20240201000000"]
        assert values_of(rows, "value-date") == ["20240201000000"]

    @pytest.mark.asyncio
    async def test_missing_code_system_leaves_empty_component(self, bare_indexer):
        observation = {
            "resourceType": "Observation",
            "id": "local-1",
            "status": "final",
            "code": {"coding": [{"code": "LOCAL"}]},
            "valueString": "positive",
        }
        rows = await bare_indexer.index(as_stored(observation))
        assert values_of(rows, "code-value-string") == ["|LOCAL$positive"]

    @pytest.mark.asyncio
    async def test_data_absent_reason(self, bare_indexer):
        observation = {
            "resourceType": "Observation",
            "id": "absent-1",
            "status": "final",
            "code": {"coding": [{"system": "http://loinc.org", "code": "8480-6"}]},
            "dataAbsentReason": {"coding": [{"code": "asked-unknown"}]},
        }
        rows = await bare_indexer.index(as_stored(observation))

        assert values_of(rows, "data-absent-reason") == ["asked-unknown"]
        assert rows_named(rows, "code-value-quantity") == []


class TestMolecularSequence:
    """Tests for genomic coordinate composites."""

    @pytest.mark.asyncio
    async def test_window_coordinates(self, bare_indexer, sample_molecular_sequence):
        rows = await bare_indexer.index(as_stored(sample_molecular_sequence))

        assert values_of(rows, "chromosome-window-coordinate") == ["1:022125500$022125510"]
        assert values_of(rows, "referenceseqid-window-coordinate") == ["NC_000001.11:022125500$022125510"]

    @pytest.mark.asyncio
    async def test_variant_coordinates(self, bare_indexer, sample_molecular_sequence):
        rows = await bare_indexer.index(as_stored(sample_molecular_sequence))

        assert values_of(rows, "chromosome-variant-coordinate") == ["1:022125503$022125504"]
        assert values_of(rows, "variant-start") == ["22125503"]

    @pytest.mark.asyncio
    async def test_zero_based_shifts_start(self, bare_indexer, sample_molecular_sequence):
        sample_molecular_sequence["coordinateSystem"] = 0
        rows = await bare_indexer.index(as_stored(sample_molecular_sequence))
        assert values_of(rows, "chromosome-window-coordinate") == ["1:022125499$022125510"]

    @pytest.mark.asyncio
    async def test_open_window_end(self, bare_indexer, sample_molecular_sequence):
        del sample_molecular_sequence["referenceSeq"]["windowEnd"]
        rows = await bare_indexer.index(as_stored(sample_molecular_sequence))
        assert values_of(rows, "chromosome-window-coordinate") == ["1:022125500$999999999"]

    def test_absent_coordinate_system_is_zero_based(self):
        assert is_zero_based({}) is True
        assert is_zero_based({"coordinateSystem": 1}) is False


class TestOtherTables:
    """Spot checks across the remaining tables."""

    @pytest.mark.asyncio
    async def test_task_subject_reads_for(self, bare_indexer):
        task = {
            "resourceType": "Task",
            "id": "t1",
            "status": "requested",
            "intent": "order",
            "for": {"reference": "Patient/42"},
        }
        rows = await bare_indexer.index(as_stored(task))

        assert values_of(rows, "subject") == ["http://host/fhir/Patient/42"]
        assert values_of(rows, "patient") == ["http://host/fhir/Patient/42"]

    @pytest.mark.asyncio
    async def test_appointment_actor_narrows_by_type(self, bare_indexer):
        appointment = {
            "resourceType": "Appointment",
            "id": "a1",
            "status": "booked",
            "participant": [
                {"actor": {"reference": "Patient/42"}, "status": "accepted"},
                {"actor": {"reference": "Practitioner/dr-1"}, "status": "accepted"},
            ],
        }
        rows = await bare_indexer.index(as_stored(appointment))

        assert values_of(rows, "patient") == ["http://host/fhir/Patient/42"]
        assert values_of(rows, "practitioner") == ["http://host/fhir/Practitioner/dr-1"]
        assert len(rows_named(rows, "actor")) == 2

    @pytest.mark.asyncio
    async def test_patient_deceased_from_date(self, bare_indexer):
        patient = {"resourceType": "Patient", "id": "p2", "deceasedDateTime": "2020-01-01"}
        rows = await bare_indexer.index(as_stored(patient))

        assert values_of(rows, "deceased") == ["true"]
        assert values_of(rows, "death-date") == ["20200101000000"]

    @pytest.mark.asyncio
    async def test_message_bundle_chains_header(self, bare_indexer):
        bundle = {
            "resourceType": "Bundle",
            "id": "msg-1",
            "type": "message",
            "entry": [
                {
                    "resource": {
                        "resourceType": "MessageHeader",
                        "id": "hdr-1",
                        "eventCoding": {"system": "http://example.org/events", "code": "admit"},
                    }
                }
            ],
        }
        rows = await bare_indexer.index(as_stored(bundle))

        assert values_of(rows, "message") == ["http://host/fhir/MessageHeader/hdr-1"]
        assert values_of(rows, "message.event") == ["admit"]
