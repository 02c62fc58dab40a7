"""DAO for the FHIR system URLs of patient identifier types."""

from typing import Optional

from sqlalchemy.orm import Session

from clinic_fhir.models import FhirPatientIdentifierSystem, PatientIdentifierType


class FhirPatientIdentifierSystemDao:
    """Reads and writes identifier type to system URL mappings."""

    def __init__(self, session: Session):
        """Initialize DAO with database session."""
        self.session = session

    def get_url_by_patient_identifier_type(
        self, patient_identifier_type: Optional[PatientIdentifierType]
    ) -> Optional[str]:
        """Return the configured system URL, or None if unconfigured."""
        if patient_identifier_type is None or patient_identifier_type.id is None:
            return None
        url: Optional[str] = (
            self.session.query(FhirPatientIdentifierSystem.url)
            .filter(
                FhirPatientIdentifierSystem.patient_identifier_type_id
                == patient_identifier_type.id
            )
            .scalar()
        )
        return url

    def get_fhir_patient_identifier_system(
        self, patient_identifier_type: PatientIdentifierType
    ) -> Optional[FhirPatientIdentifierSystem]:
        """Return the full mapping row for an identifier type."""
        if patient_identifier_type.id is None:
            return None
        system: Optional[FhirPatientIdentifierSystem] = (
            self.session.query(FhirPatientIdentifierSystem)
            .filter(
                FhirPatientIdentifierSystem.patient_identifier_type_id
                == patient_identifier_type.id
            )
            .one_or_none()
        )
        return system

    def save_fhir_patient_identifier_system(
        self, system: FhirPatientIdentifierSystem
    ) -> FhirPatientIdentifierSystem:
        """Persist a mapping row."""
        self.session.add(system)
        self.session.flush()
        return system
