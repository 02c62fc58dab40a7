"""Database models."""

from .base import Base, BaseModel, SoftDeleteMixin, TimestampMixin
from .clinical import Drug, DrugOrder, Encounter, Practitioner
from .patient import FhirPatientIdentifierSystem, Patient, PatientIdentifierType

__all__ = [
    "Base",
    "BaseModel",
    "Drug",
    "DrugOrder",
    "Encounter",
    "FhirPatientIdentifierSystem",
    "Patient",
    "PatientIdentifierType",
    "Practitioner",
    "SoftDeleteMixin",
    "TimestampMixin",
]
