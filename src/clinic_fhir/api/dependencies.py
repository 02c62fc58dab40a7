"""Request-scoped wiring of DAOs, services and providers."""

from fastapi import Depends
from sqlalchemy.orm import Session

from clinic_fhir.config import Settings, get_settings
from clinic_fhir.core.database import get_db
from clinic_fhir.dao.medication_request_dao import FhirMedicationRequestDao
from clinic_fhir.dao.patient_identifier_system_dao import (
    FhirPatientIdentifierSystemDao,
)
from clinic_fhir.dao.reference_dao import ClinicalReferenceDao
from clinic_fhir.providers.medication_request_provider import (
    MedicationRequestFhirResourceProvider,
)
from clinic_fhir.services.medication_request_service import (
    FhirMedicationRequestService,
)
from clinic_fhir.services.patient_identifier_system_service import (
    FhirPatientIdentifierSystemService,
)
from clinic_fhir.translators.medication_request_translator import (
    MedicationRequestTranslator,
)
from clinic_fhir.translators.reference_translator import ReferenceTranslator

# Dependency injection
db_dependency = Depends(get_db)
settings_dependency = Depends(get_settings)


def get_patient_identifier_system_service(
    db: Session = db_dependency,
) -> FhirPatientIdentifierSystemService:
    """Identifier system service bound to the request session."""
    return FhirPatientIdentifierSystemService(FhirPatientIdentifierSystemDao(db))


identifier_system_dependency = Depends(get_patient_identifier_system_service)


def get_medication_request_service(
    db: Session = db_dependency,
    identifier_system_service: (
        FhirPatientIdentifierSystemService
    ) = identifier_system_dependency,
    settings: Settings = settings_dependency,
) -> FhirMedicationRequestService:
    """MedicationRequest service bound to the request session."""
    reference_translator = ReferenceTranslator(
        ClinicalReferenceDao(db), identifier_system_service
    )
    return FhirMedicationRequestService(
        FhirMedicationRequestDao(db),
        MedicationRequestTranslator(reference_translator),
        page_size=settings.default_page_size,
    )


medication_request_service_dependency = Depends(get_medication_request_service)


def get_medication_request_provider(
    service: FhirMedicationRequestService = medication_request_service_dependency,
) -> MedicationRequestFhirResourceProvider:
    """MedicationRequest resource provider for the request."""
    return MedicationRequestFhirResourceProvider(service)
