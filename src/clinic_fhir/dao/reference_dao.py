"""Lookups of the records that MedicationRequest references point to."""

from typing import Optional, Type, TypeVar

from sqlalchemy.orm import Session

from clinic_fhir.models import Drug, Encounter, Patient, Practitioner
from clinic_fhir.models.base import BaseModel

M = TypeVar("M", bound=BaseModel)


class ClinicalReferenceDao:
    """Resolves referenced records by uuid, ignoring voided ones."""

    def __init__(self, session: Session):
        """Initialize DAO with database session."""
        self.session = session

    def _get(self, model: Type[M], uuid: Optional[str]) -> Optional[M]:
        if not uuid:
            return None
        record: Optional[M] = (
            self.session.query(model)
            .filter(model.uuid == uuid, model.voided.is_(False))  # type: ignore[attr-defined]
            .one_or_none()
        )
        return record

    def get_patient(self, uuid: Optional[str]) -> Optional[Patient]:
        return self._get(Patient, uuid)

    def get_practitioner(self, uuid: Optional[str]) -> Optional[Practitioner]:
        return self._get(Practitioner, uuid)

    def get_encounter(self, uuid: Optional[str]) -> Optional[Encounter]:
        return self._get(Encounter, uuid)

    def get_drug(self, uuid: Optional[str]) -> Optional[Drug]:
        return self._get(Drug, uuid)
