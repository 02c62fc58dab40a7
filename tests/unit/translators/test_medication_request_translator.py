"""Tests for translation between drug orders and MedicationRequest resources."""

import pytest
from fhirclient.models.medicationrequest import MedicationRequest

from clinic_fhir.api.exceptions import InvalidRequestException
from clinic_fhir.dao.patient_identifier_system_dao import (
    FhirPatientIdentifierSystemDao,
)
from clinic_fhir.dao.reference_dao import ClinicalReferenceDao
from clinic_fhir.models import DrugOrder
from clinic_fhir.services.patient_identifier_system_service import (
    FhirPatientIdentifierSystemService,
)
from clinic_fhir.translators.medication_request_translator import (
    MedicationRequestTranslator,
    to_instant,
)
from clinic_fhir.translators.reference_translator import ReferenceTranslator
from tests.sample_data import (
    CONCEPT_CODE,
    CONCEPT_SYSTEM,
    DATE_CREATED,
    DRUG_UUID,
    ENCOUNTER_UUID,
    IDENTIFIER_SYSTEM_URL,
    MEDICATION_REQUEST_UUID,
    PATIENT_IDENTIFIER,
    PATIENT_UUID,
    PRACTITIONER_UUID,
    WRONG_UUID,
)


@pytest.fixture
def translator(db_session):
    """Translator resolving references against the test database."""
    identifier_system_service = FhirPatientIdentifierSystemService(
        FhirPatientIdentifierSystemDao(db_session)
    )
    return MedicationRequestTranslator(
        ReferenceTranslator(ClinicalReferenceDao(db_session), identifier_system_service)
    )


def medication_request_json(**overrides):
    data = {
        "resourceType": "MedicationRequest",
        "status": "active",
        "intent": "order",
        "priority": "urgent",
        "subject": {"reference": f"Patient/{PATIENT_UUID}"},
        "requester": {"reference": f"Practitioner/{PRACTITIONER_UUID}"},
        "encounter": {"reference": f"Encounter/{ENCOUNTER_UUID}"},
        "medicationCodeableConcept": {
            "coding": [
                {
                    "system": CONCEPT_SYSTEM,
                    "code": CONCEPT_CODE,
                    "display": "Aspirin 81 MG Oral Tablet",
                }
            ]
        },
        "authoredOn": "2020-09-03T10:30:00+00:00",
        "dosageInstruction": [{"text": "One tablet daily"}],
    }
    data.update(overrides)
    return data


def test_to_instant_treats_naive_values_as_utc():
    assert to_instant(DATE_CREATED.replace(tzinfo=None)) == "2020-09-03T10:30:00+00:00"
    assert to_instant(None) is None


def test_to_fhir_resource(translator, drug_order):
    resource = translator.to_fhir_resource(drug_order)
    data = resource.as_json()

    assert data["id"] == MEDICATION_REQUEST_UUID
    assert data["status"] == "active"
    assert data["intent"] == "order"
    assert data["priority"] == "routine"
    assert data["subject"]["reference"] == f"Patient/{PATIENT_UUID}"
    assert data["subject"]["display"] == (
        f"Amina Okafor (Identifier: {PATIENT_IDENTIFIER})"
    )
    assert data["subject"]["identifier"] == {
        "system": IDENTIFIER_SYSTEM_URL,
        "value": PATIENT_IDENTIFIER,
    }
    assert data["requester"]["reference"] == f"Practitioner/{PRACTITIONER_UUID}"
    assert data["encounter"]["reference"] == f"Encounter/{ENCOUNTER_UUID}"
    assert data["medicationReference"]["reference"] == f"Medication/{DRUG_UUID}"
    assert data["medicationReference"]["display"] == "Aspirin 81mg"
    assert data["authoredOn"] == "2020-09-03T10:30:00+00:00"
    assert data["meta"]["lastUpdated"] == "2020-09-03T10:30:00+00:00"
    assert data["dosageInstruction"] == [{"text": "One tablet daily"}]


def test_to_fhir_resource_without_drug_uses_coded_concept(translator, patient):
    drug_order = DrugOrder(
        uuid=WRONG_UUID,
        status="draft",
        intent="plan",
        patient=patient,
        concept_system=CONCEPT_SYSTEM,
        concept_code=CONCEPT_CODE,
    )

    data = translator.to_fhir_resource(drug_order).as_json()

    assert "medicationReference" not in data
    concept = data["medicationCodeableConcept"]
    assert concept["coding"] == [{"system": CONCEPT_SYSTEM, "code": CONCEPT_CODE}]
    assert concept["text"] == CONCEPT_CODE
    assert "requester" not in data
    assert "meta" not in data


def test_to_record_creates_drug_order(
    translator, patient, practitioner, encounter
):
    resource = MedicationRequest(medication_request_json(id=WRONG_UUID))

    drug_order = translator.to_record(resource)

    assert drug_order.uuid == WRONG_UUID
    assert drug_order.status == "active"
    assert drug_order.intent == "order"
    assert drug_order.priority == "urgent"
    assert drug_order.patient is patient
    assert drug_order.orderer is practitioner
    assert drug_order.encounter is encounter
    assert drug_order.drug is None
    assert drug_order.concept_system == CONCEPT_SYSTEM
    assert drug_order.concept_code == CONCEPT_CODE
    assert drug_order.concept_display == "Aspirin 81 MG Oral Tablet"
    assert drug_order.date_activated == DATE_CREATED
    assert drug_order.dosing_instructions == "One tablet daily"


def test_to_record_generates_uuid_for_new_resources(translator, patient):
    data = medication_request_json()
    del data["requester"]
    del data["encounter"]

    drug_order = translator.to_record(MedicationRequest(data))

    assert drug_order.uuid
    assert drug_order.orderer is None
    assert drug_order.encounter is None


def test_to_record_updates_existing_drug_order(translator, drug_order, drug):
    data = medication_request_json(
        id=MEDICATION_REQUEST_UUID,
        status="completed",
        medicationReference={"reference": f"Medication/{DRUG_UUID}"},
    )
    del data["medicationCodeableConcept"]

    updated = translator.to_record(MedicationRequest(data), drug_order)

    assert updated is drug_order
    assert updated.uuid == MEDICATION_REQUEST_UUID
    assert updated.status == "completed"
    assert updated.drug is drug
    assert updated.concept_code is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"status": "paused"},
        {"intent": "wish"},
        {"subject": {"reference": f"Patient/{WRONG_UUID}"}},
        {"subject": {"reference": f"Practitioner/{PRACTITIONER_UUID}"}},
        {"requester": {"reference": f"Practitioner/{WRONG_UUID}"}},
        {"medicationCodeableConcept": {"text": "aspirin"}},
    ],
)
def test_to_record_rejects_invalid_resources(
    translator, patient, practitioner, encounter, overrides
):
    resource = MedicationRequest(medication_request_json(**overrides))

    with pytest.raises(InvalidRequestException):
        translator.to_record(resource)


def test_authored_on_offset_is_stored_as_utc(
    translator, db_session, patient, practitioner, encounter
):
    resource = MedicationRequest(
        medication_request_json(authoredOn="2020-09-03T12:00:00+02:00")
    )
    drug_order = translator.to_record(resource)
    db_session.add(drug_order)
    db_session.flush()
    db_session.expire(drug_order)

    data = translator.to_fhir_resource(drug_order).as_json()

    assert data["authoredOn"] == "2020-09-03T10:00:00+00:00"
