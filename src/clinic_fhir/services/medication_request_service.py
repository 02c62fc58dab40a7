"""MedicationRequest service."""

from typing import Optional

from fhirclient.models.medicationrequest import MedicationRequest

from clinic_fhir import constants
from clinic_fhir.dao.medication_request_dao import FhirMedicationRequestDao
from clinic_fhir.healthcare.bundle_provider import BundleProvider
from clinic_fhir.healthcare.fhir_params import (
    DateRangeParam,
    ReferenceAndListParam,
    TokenAndListParam,
)
from clinic_fhir.healthcare.search_params import SearchParameterMap
from clinic_fhir.translators.medication_request_translator import (
    MedicationRequestTranslator,
)

from .base import BaseFhirService


class FhirMedicationRequestService(BaseFhirService[MedicationRequest]):
    """CRUD and search for MedicationRequest resources backed by drug orders."""

    resource_type_name = constants.MEDICATION_REQUEST

    def __init__(
        self,
        dao: FhirMedicationRequestDao,
        translator: MedicationRequestTranslator,
        page_size: Optional[int] = None,
    ):
        """Initialize service with DAO and translator."""
        super().__init__(dao, translator, page_size)

    def search_for_medication_requests(
        self,
        patient_reference: Optional[ReferenceAndListParam] = None,
        encounter_reference: Optional[ReferenceAndListParam] = None,
        code: Optional[TokenAndListParam] = None,
        participant_reference: Optional[ReferenceAndListParam] = None,
        medication_reference: Optional[ReferenceAndListParam] = None,
        id: Optional[TokenAndListParam] = None,
        last_updated: Optional[DateRangeParam] = None,
    ) -> BundleProvider:
        """Search drug orders; every parameter is optional."""
        search_params = (
            SearchParameterMap()
            .add_parameter(
                constants.PATIENT_REFERENCE_SEARCH_HANDLER, patient_reference
            )
            .add_parameter(
                constants.ENCOUNTER_REFERENCE_SEARCH_HANDLER, encounter_reference
            )
            .add_parameter(constants.CODED_SEARCH_HANDLER, code)
            .add_parameter(
                constants.PARTICIPANT_REFERENCE_SEARCH_HANDLER, participant_reference
            )
            .add_parameter(
                constants.MEDICATION_REFERENCE_SEARCH_HANDLER, medication_reference
            )
            .add_parameter(constants.COMMON_SEARCH_HANDLER, id, constants.ID_PROPERTY)
            .add_parameter(
                constants.COMMON_SEARCH_HANDLER,
                last_updated,
                constants.LAST_UPDATED_PROPERTY,
            )
        )
        return self.search(search_params)
