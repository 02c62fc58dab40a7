"""Tests for the MedicationRequest REST endpoints."""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from clinic_fhir import constants
from clinic_fhir.api.app import create_app
from clinic_fhir.config import Settings
from clinic_fhir.core.database import get_db
from tests.sample_data import (
    CONCEPT_CODE,
    CONCEPT_SYSTEM,
    DRUG_UUID,
    MEDICATION_REQUEST_UUID,
    PATIENT_IDENTIFIER,
    PATIENT_UUID,
    PRACTITIONER_UUID,
    WRONG_UUID,
)

BASE = "/ws/fhir2/R4"
URL = f"{BASE}/MedicationRequest"


@pytest.fixture(scope="function")
def client(db_session):
    """Create test client with database dependency override."""
    app = create_app(
        Settings(database_url="sqlite://", default_page_size=10, max_page_size=50),
        init_database=False,
    )

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def new_medication_request(**overrides):
    data = {
        "resourceType": "MedicationRequest",
        "status": "active",
        "intent": "order",
        "subject": {"reference": f"Patient/{PATIENT_UUID}"},
        "requester": {"reference": f"Practitioner/{PRACTITIONER_UUID}"},
        "medicationCodeableConcept": {
            "coding": [{"system": CONCEPT_SYSTEM, "code": CONCEPT_CODE}],
            "text": "Aspirin 81 MG Oral Tablet",
        },
    }
    data.update(overrides)
    return data


def assert_operation_outcome(response, status_code, issue_code):
    assert response.status_code == status_code
    assert response.headers["content-type"].startswith(constants.FHIR_MEDIA_TYPE)
    body = response.json()
    assert body["resourceType"] == "OperationOutcome"
    assert body["issue"][0]["code"] == issue_code
    return body


def test_read_medication_request(client, drug_order):
    response = client.get(f"{URL}/{MEDICATION_REQUEST_UUID}")

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith(constants.FHIR_MEDIA_TYPE)
    body = response.json()
    assert body["resourceType"] == "MedicationRequest"
    assert body["id"] == MEDICATION_REQUEST_UUID
    assert body["subject"]["reference"] == f"Patient/{PATIENT_UUID}"


def test_read_unknown_medication_request_returns_not_found(client, drug_order):
    response = client.get(f"{URL}/{WRONG_UUID}")

    body = assert_operation_outcome(response, status.HTTP_404_NOT_FOUND, "not-found")
    assert WRONG_UUID in body["issue"][0]["diagnostics"]


def test_search_by_patient_identifier(client, drug_order):
    response = client.get(URL, params={"patient.identifier": PATIENT_IDENTIFIER})

    assert response.status_code == status.HTTP_200_OK
    bundle = response.json()
    assert bundle["resourceType"] == "Bundle"
    assert bundle["type"] == "searchset"
    assert bundle["total"] == 1
    [entry] = bundle["entry"]
    assert entry["resource"]["id"] == MEDICATION_REQUEST_UUID
    assert entry["fullUrl"] == (
        f"http://testserver{URL}/{MEDICATION_REQUEST_UUID}"
    )


def test_search_combines_filters(client, drug_order):
    response = client.get(
        URL,
        params=[
            ("code", f"{CONCEPT_SYSTEM}|{CONCEPT_CODE}"),
            ("medication", f"Medication/{DRUG_UUID}"),
            ("_lastUpdated", "ge2020-09-03"),
        ],
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["total"] == 1


def test_search_without_matches_returns_empty_bundle(client, drug_order):
    response = client.get(URL, params={"patient.name": "Nobody"})

    bundle = response.json()
    assert bundle["total"] == 0
    assert bundle["entry"] == []


def test_search_paging(client, drug_order):
    for _ in range(3):
        client.post(URL, json=new_medication_request())

    response = client.get(URL, params={"_count": 2, "_getpagesoffset": 2})

    bundle = response.json()
    assert bundle["total"] == 4
    assert len(bundle["entry"]) == 2
    relations = {link["relation"] for link in bundle["link"]}
    assert relations == {"self", "previous"}


def test_search_with_unknown_parameter_returns_invalid(client):
    response = client.get(URL, params={"status": "active"})

    assert_operation_outcome(response, status.HTTP_400_BAD_REQUEST, "invalid")


def test_create_medication_request(client, patient, practitioner):
    response = client.post(
        URL,
        json=new_medication_request(),
        headers={"Content-Type": constants.FHIR_MEDIA_TYPE},
    )

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["id"]
    assert body["requester"]["reference"] == f"Practitioner/{PRACTITIONER_UUID}"
    assert response.headers["location"].endswith(f"/MedicationRequest/{body['id']}")

    read = client.get(f"{URL}/{body['id']}")
    assert read.status_code == status.HTTP_200_OK


def test_create_with_unknown_patient_returns_invalid(client, patient):
    response = client.post(
        URL,
        json=new_medication_request(subject={"reference": f"Patient/{WRONG_UUID}"}),
    )

    assert_operation_outcome(response, status.HTTP_400_BAD_REQUEST, "invalid")


def test_create_with_malformed_body_returns_invalid(client, patient):
    missing_subject = new_medication_request()
    del missing_subject["subject"]

    for body in (missing_subject, {"resourceType": "Patient"}, ["not", "a", "dict"]):
        response = client.post(URL, json=body)
        assert_operation_outcome(response, status.HTTP_400_BAD_REQUEST, "invalid")


def test_update_medication_request(client, drug_order):
    body = client.get(f"{URL}/{MEDICATION_REQUEST_UUID}").json()
    body["status"] = "completed"

    response = client.put(f"{URL}/{MEDICATION_REQUEST_UUID}", json=body)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "completed"
    assert client.get(f"{URL}/{MEDICATION_REQUEST_UUID}").json()["status"] == (
        "completed"
    )


def test_update_with_mismatched_id_returns_invalid(client, drug_order):
    body = new_medication_request(id=MEDICATION_REQUEST_UUID)

    response = client.put(f"{URL}/{WRONG_UUID}", json=body)

    assert_operation_outcome(response, status.HTTP_400_BAD_REQUEST, "invalid")


def test_update_nonexistent_returns_method_not_allowed(client, patient, practitioner):
    response = client.put(f"{URL}/{WRONG_UUID}", json=new_medication_request())

    assert_operation_outcome(
        response, status.HTTP_405_METHOD_NOT_ALLOWED, "not-supported"
    )


def test_delete_medication_request(client, drug_order):
    response = client.delete(f"{URL}/{MEDICATION_REQUEST_UUID}")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["resourceType"] == "OperationOutcome"
    issue = body["issue"][0]
    assert issue["severity"] == "information"
    assert issue["details"]["coding"][0]["code"] == constants.MSG_DELETED

    read = client.get(f"{URL}/{MEDICATION_REQUEST_UUID}")
    assert read.status_code == status.HTTP_404_NOT_FOUND


def test_delete_unknown_returns_not_found(client):
    response = client.delete(f"{URL}/{WRONG_UUID}")

    assert_operation_outcome(response, status.HTTP_404_NOT_FOUND, "not-found")


def test_unknown_route_returns_operation_outcome(client):
    response = client.get(f"{BASE}/Observation/123")

    assert_operation_outcome(response, status.HTTP_404_NOT_FOUND, "not-found")


def test_capability_statement(client):
    response = client.get(f"{BASE}/metadata")

    assert response.status_code == status.HTTP_200_OK
    statement = response.json()
    assert statement["resourceType"] == "CapabilityStatement"
    [resource] = statement["rest"][0]["resource"]
    assert resource["type"] == "MedicationRequest"
    names = {param["name"] for param in resource["searchParam"]}
    assert {"patient", "code", "_lastUpdated"} <= names


def test_health_and_metrics(client):
    health = client.get("/health")
    assert health.status_code == status.HTTP_200_OK
    assert health.json()["database"] == "healthy"

    client.get(f"{BASE}/metadata")
    metrics = client.get("/metrics")
    assert metrics.status_code == status.HTTP_200_OK
    assert "clinic_fhir_requests_total" in metrics.text


def test_search_by_last_updated_with_offset(client, drug_order):
    encoded = client.get(URL, params={"_lastUpdated": "ge2020-09-03T12:00:00+02:00"})
    unencoded = client.get(f"{URL}?_lastUpdated=lt2020-09-03T12:20:00+02:00")

    assert encoded.status_code == status.HTTP_200_OK
    assert encoded.json()["total"] == 1
    assert unencoded.status_code == status.HTTP_200_OK
    assert unencoded.json()["total"] == 0
