"""Data access objects."""

from .base import BaseFhirDao
from .medication_request_dao import FhirMedicationRequestDao
from .patient_identifier_system_dao import FhirPatientIdentifierSystemDao
from .reference_dao import ClinicalReferenceDao

__all__ = [
    "BaseFhirDao",
    "ClinicalReferenceDao",
    "FhirMedicationRequestDao",
    "FhirPatientIdentifierSystemDao",
]
