"""MedicationRequest resource provider.

Entry points for the FHIR read, create, update, delete and search
interactions. Each one validates identifiers, delegates to the
MedicationRequest service and wraps the result.
"""

from typing import Optional, Type

from fhirclient.models.medicationrequest import MedicationRequest
from fhirclient.models.operationoutcome import OperationOutcome

from clinic_fhir import constants
from clinic_fhir.api.exceptions import (
    InvalidRequestException,
    ResourceNotFoundException,
)
from clinic_fhir.healthcare import fhir_utils
from clinic_fhir.healthcare.bundle_provider import BundleProvider
from clinic_fhir.healthcare.fhir_params import (
    DateRangeParam,
    IdType,
    ReferenceAndListParam,
    TokenAndListParam,
)
from clinic_fhir.healthcare.fhir_utils import MethodOutcome
from clinic_fhir.services.medication_request_service import (
    FhirMedicationRequestService,
)


class MedicationRequestFhirResourceProvider:
    """Resource provider for MedicationRequest."""

    def __init__(
        self,
        fhir_medication_request_service: Optional[
            FhirMedicationRequestService
        ] = None,
    ):
        """Initialize provider, optionally with its service."""
        self.fhir_medication_request_service = fhir_medication_request_service

    def set_fhir_medication_request_service(
        self, service: FhirMedicationRequestService
    ) -> None:
        """Replace the service collaborator."""
        self.fhir_medication_request_service = service

    @property
    def service(self) -> FhirMedicationRequestService:
        if self.fhir_medication_request_service is None:
            raise RuntimeError("MedicationRequestFhirResourceProvider has no service")
        return self.fhir_medication_request_service

    def get_resource_type(self) -> Type[MedicationRequest]:
        """The resource class served by this provider."""
        return MedicationRequest

    def get_medication_request_by_uuid(self, id: IdType) -> MedicationRequest:
        """Read a MedicationRequest.

        Raises:
            ResourceNotFoundException: If no MedicationRequest has this id
        """
        medication_request = self.service.get(id.id_part)
        if medication_request is None:
            raise ResourceNotFoundException.for_id(
                constants.MEDICATION_REQUEST, id.id_part
            )
        return medication_request

    def create_medication_request(
        self, medication_request: MedicationRequest
    ) -> MethodOutcome:
        """Create a MedicationRequest."""
        return fhir_utils.build_create(self.service.create(medication_request))

    def update_medication_request(
        self, id: Optional[IdType], medication_request: MedicationRequest
    ) -> MethodOutcome:
        """Update a MedicationRequest.

        A body without an id takes the id from the path; a body whose id
        differs from the path is rejected.

        Raises:
            InvalidRequestException: If the path id is missing or differs
                from the body id
            MethodNotAllowedException: If the MedicationRequest does not exist
        """
        if id is None or not id.has_id_part():
            raise InvalidRequestException("id must be specified to update")

        if medication_request.id is None:
            medication_request.id = id.id_part
        elif IdType(medication_request.id).id_part != id.id_part:
            raise InvalidRequestException(
                f"{constants.MEDICATION_REQUEST} id {medication_request.id} does not "
                f"match the id in the request path {id.id_part}"
            )

        return fhir_utils.build_update(
            self.service.update(id.id_part, medication_request)
        )

    def delete_medication_request(self, id: IdType) -> OperationOutcome:
        """Delete a MedicationRequest.

        Raises:
            ResourceNotFoundException: If no MedicationRequest has this id
        """
        medication_request = self.service.delete(id.id_part)
        if medication_request is None:
            raise ResourceNotFoundException.for_id(
                constants.MEDICATION_REQUEST, id.id_part
            )
        return fhir_utils.build_delete(medication_request)

    def search_for_medication_requests(
        self,
        patient_reference: Optional[ReferenceAndListParam] = None,
        subject_reference: Optional[ReferenceAndListParam] = None,
        encounter_reference: Optional[ReferenceAndListParam] = None,
        code: Optional[TokenAndListParam] = None,
        participant_reference: Optional[ReferenceAndListParam] = None,
        medication_reference: Optional[ReferenceAndListParam] = None,
        id: Optional[TokenAndListParam] = None,
        last_updated: Optional[DateRangeParam] = None,
    ) -> BundleProvider:
        """Search MedicationRequests.

        ``subject`` is used as the patient filter when ``patient`` is absent.
        """
        if patient_reference is None:
            patient_reference = subject_reference

        return self.service.search_for_medication_requests(
            patient_reference,
            encounter_reference,
            code,
            participant_reference,
            medication_reference,
            id,
            last_updated,
        )
