"""Test configuration for the Clinic FHIR project.

Every test gets a fresh in-memory SQLite database; the seed fixtures below
create one patient, practitioner, encounter, drug and drug order that the
DAO, translator and endpoint tests search and update.
"""

import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment BEFORE importing the application
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

from clinic_fhir.models import (  # noqa: E402
    Base,
    Drug,
    DrugOrder,
    Encounter,
    FhirPatientIdentifierSystem,
    Patient,
    PatientIdentifierType,
    Practitioner,
)
from tests.sample_data import (  # noqa: E402
    CONCEPT_CODE,
    CONCEPT_SYSTEM,
    DATE_CREATED,
    DRUG_CODE,
    DRUG_UUID,
    ENCOUNTER_UUID,
    IDENTIFIER_SYSTEM_URL,
    MEDICATION_REQUEST_UUID,
    PATIENT_IDENTIFIER,
    PATIENT_UUID,
    PRACTITIONER_IDENTIFIER,
    PRACTITIONER_UUID,
)


@pytest.fixture(scope="function")
def engine():
    """Create a fresh in-memory database for each test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    """Database session bound to the test database."""
    session = sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def identifier_type(db_session):
    """Medical record number identifier type with a configured system URL."""
    mrn = PatientIdentifierType(name="Medical Record Number")
    db_session.add(mrn)
    db_session.add(
        FhirPatientIdentifierSystem(
            patient_identifier_type=mrn, url=IDENTIFIER_SYSTEM_URL
        )
    )
    db_session.flush()
    return mrn


@pytest.fixture
def patient(db_session, identifier_type):
    """Create a sample patient."""
    record = Patient(
        uuid=PATIENT_UUID,
        given_name="Amina",
        family_name="Okafor",
        identifier=PATIENT_IDENTIFIER,
        identifier_type=identifier_type,
    )
    db_session.add(record)
    db_session.flush()
    return record


@pytest.fixture
def practitioner(db_session):
    """Create a sample ordering practitioner."""
    record = Practitioner(
        uuid=PRACTITIONER_UUID,
        given_name="Grace",
        family_name="Mensah",
        identifier=PRACTITIONER_IDENTIFIER,
    )
    db_session.add(record)
    db_session.flush()
    return record


@pytest.fixture
def encounter(db_session, patient):
    """Create a sample encounter for the patient."""
    record = Encounter(
        uuid=ENCOUNTER_UUID,
        patient=patient,
        encounter_type="Outpatient",
        encounter_datetime=DATE_CREATED,
    )
    db_session.add(record)
    db_session.flush()
    return record


@pytest.fixture
def drug(db_session):
    """Create a sample formulary drug."""
    record = Drug(uuid=DRUG_UUID, name="Aspirin 81mg", code=DRUG_CODE)
    db_session.add(record)
    db_session.flush()
    return record


@pytest.fixture
def drug_order(db_session, patient, practitioner, encounter, drug):
    """Create a sample drug order exposed as a MedicationRequest."""
    record = DrugOrder(
        uuid=MEDICATION_REQUEST_UUID,
        status="active",
        intent="order",
        priority="routine",
        patient=patient,
        orderer=practitioner,
        encounter=encounter,
        drug=drug,
        concept_system=CONCEPT_SYSTEM,
        concept_code=CONCEPT_CODE,
        concept_display="Aspirin 81 MG Oral Tablet",
        dosing_instructions="One tablet daily",
        date_activated=DATE_CREATED,
        date_created=DATE_CREATED,
    )
    db_session.add(record)
    db_session.flush()
    return record
