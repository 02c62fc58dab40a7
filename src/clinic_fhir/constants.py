"""FHIR constants shared across providers, services and DAOs."""

FHIR_MEDIA_TYPE = "application/fhir+json"

# Resource types
MEDICATION_REQUEST = "MedicationRequest"
MEDICATION = "Medication"
PATIENT = "Patient"
PRACTITIONER = "Practitioner"
ENCOUNTER = "Encounter"
OPERATION_OUTCOME = "OperationOutcome"
BUNDLE = "Bundle"

# Search parameter names
SP_ID = "_id"
SP_LAST_UPDATED = "_lastUpdated"
SP_CODE = "code"
SP_PATIENT = "patient"
SP_SUBJECT = "subject"
SP_ENCOUNTER = "encounter"
SP_REQUESTER = "requester"
SP_MEDICATION = "medication"

# Reference chains
SP_IDENTIFIER = "identifier"
SP_NAME = "name"
SP_GIVEN = "given"
SP_FAMILY = "family"

# Paging
SP_COUNT = "_count"
SP_PAGES_OFFSET = "_getpagesoffset"

# Keys of the search parameter map
PATIENT_REFERENCE_SEARCH_HANDLER = "patient.reference.search.handler"
ENCOUNTER_REFERENCE_SEARCH_HANDLER = "encounter.reference.search.handler"
PARTICIPANT_REFERENCE_SEARCH_HANDLER = "participant.reference.search.handler"
MEDICATION_REFERENCE_SEARCH_HANDLER = "medication.reference.search.handler"
CODED_SEARCH_HANDLER = "coded.search.handler"
COMMON_SEARCH_HANDLER = "common.search.handler"
ID_PROPERTY = "_id.property"
LAST_UPDATED_PROPERTY = "_lastUpdated.property"

# Operation outcome details
OPERATION_OUTCOME_CODE_SYSTEM = (
    "https://clinic-fhir.org/fhir/CodeSystem/operation-outcome"
)
MSG_DELETED = "MSG_DELETED"
MSG_DELETED_DISPLAY = "This resource has been deleted"
