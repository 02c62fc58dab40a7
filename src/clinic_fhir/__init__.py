"""Clinic FHIR server: MedicationRequest resources over FHIR R4 REST."""

__version__ = "0.1.0"
