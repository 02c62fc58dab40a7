"""Patient identifier system lookups."""

from typing import Optional

from clinic_fhir.dao.patient_identifier_system_dao import FhirPatientIdentifierSystemDao
from clinic_fhir.models import FhirPatientIdentifierSystem, PatientIdentifierType
from clinic_fhir.utils.logging import get_logger

logger = get_logger(__name__)


class FhirPatientIdentifierSystemService:
    """Maps patient identifier types to their FHIR ``Identifier.system`` URL."""

    def __init__(self, dao: Optional[FhirPatientIdentifierSystemDao] = None):
        """Initialize service, optionally with its DAO."""
        self.dao = dao

    def set_dao(self, dao: FhirPatientIdentifierSystemDao) -> None:
        """Replace the DAO collaborator."""
        self.dao = dao

    def _require_dao(self) -> FhirPatientIdentifierSystemDao:
        if self.dao is None:
            raise RuntimeError("FhirPatientIdentifierSystemService has no DAO")
        return self.dao

    def get_url_by_patient_identifier_type(
        self, patient_identifier_type: Optional[PatientIdentifierType]
    ) -> Optional[str]:
        """Return the system URL for the identifier type, or None."""
        return self._require_dao().get_url_by_patient_identifier_type(
            patient_identifier_type
        )

    def get_fhir_patient_identifier_system(
        self, patient_identifier_type: PatientIdentifierType
    ) -> Optional[FhirPatientIdentifierSystem]:
        """Return the mapping row for the identifier type, or None."""
        return self._require_dao().get_fhir_patient_identifier_system(
            patient_identifier_type
        )

    def save_fhir_patient_identifier_system(
        self, patient_identifier_type: PatientIdentifierType, url: str
    ) -> FhirPatientIdentifierSystem:
        """Configure (or reconfigure) the system URL of an identifier type."""
        dao = self._require_dao()
        system = dao.get_fhir_patient_identifier_system(patient_identifier_type)
        if system is None:
            system = FhirPatientIdentifierSystem(
                patient_identifier_type=patient_identifier_type, url=url
            )
        else:
            system.url = url
        logger.info(
            "identifier_system_configured",
            identifier_type=patient_identifier_type.name,
            url=url,
        )
        return dao.save_fhir_patient_identifier_system(system)
