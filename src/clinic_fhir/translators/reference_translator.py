"""Translation between stored records and FHIR references."""

from typing import Any, Dict, Optional

from fhirclient.models.fhirreference import FHIRReference

from clinic_fhir import constants
from clinic_fhir.api.exceptions import InvalidRequestException
from clinic_fhir.dao.reference_dao import ClinicalReferenceDao
from clinic_fhir.healthcare.fhir_params import IdType
from clinic_fhir.models import Drug, Encounter, Patient, Practitioner
from clinic_fhir.services.patient_identifier_system_service import (
    FhirPatientIdentifierSystemService,
)


class ReferenceTranslator:
    """Builds references to, and resolves references from, clinical records."""

    def __init__(
        self,
        reference_dao: ClinicalReferenceDao,
        identifier_system_service: FhirPatientIdentifierSystemService,
    ):
        """Initialize with the lookups references depend on."""
        self.reference_dao = reference_dao
        self.identifier_system_service = identifier_system_service

    # Record -> reference

    def to_patient_reference(self, patient: Patient) -> Dict[str, Any]:
        """Reference to a patient, with its identifier when one is recorded."""
        display = patient.display_name
        if patient.identifier:
            display = f"{display} (Identifier: {patient.identifier})".strip()

        reference: Dict[str, Any] = {
            "reference": f"{constants.PATIENT}/{patient.uuid}",
            "type": constants.PATIENT,
        }
        if display:
            reference["display"] = display
        if patient.identifier:
            identifier: Dict[str, Any] = {"value": patient.identifier}
            system = self.identifier_system_service.get_url_by_patient_identifier_type(
                patient.identifier_type
            )
            if system:
                identifier["system"] = system
            reference["identifier"] = identifier
        return reference

    def to_practitioner_reference(self, practitioner: Practitioner) -> Dict[str, Any]:
        """Reference to an ordering practitioner."""
        reference: Dict[str, Any] = {
            "reference": f"{constants.PRACTITIONER}/{practitioner.uuid}",
            "type": constants.PRACTITIONER,
        }
        display = practitioner.display_name
        if practitioner.identifier:
            display = f"{display} (Identifier: {practitioner.identifier})".strip()
        if display:
            reference["display"] = display
        return reference

    def to_encounter_reference(self, encounter: Encounter) -> Dict[str, Any]:
        """Reference to an encounter."""
        reference: Dict[str, Any] = {
            "reference": f"{constants.ENCOUNTER}/{encounter.uuid}",
            "type": constants.ENCOUNTER,
        }
        if encounter.encounter_type:
            reference["display"] = encounter.encounter_type
        return reference

    def to_medication_reference(self, drug: Drug) -> Dict[str, Any]:
        """Reference to a formulary drug."""
        return {
            "reference": f"{constants.MEDICATION}/{drug.uuid}",
            "type": constants.MEDICATION,
            "display": drug.name,
        }

    # Reference -> record

    @staticmethod
    def _reference_id(
        reference: Optional[FHIRReference], expected_type: str
    ) -> Optional[str]:
        if reference is None or not reference.reference:
            return None
        id_type = IdType(reference.reference)
        resource_type = id_type.resource_type or reference.type
        if resource_type and resource_type != expected_type:
            raise InvalidRequestException(
                f"Reference {reference.reference} must point to a {expected_type}"
            )
        return id_type.id_part

    def _resolve(
        self, reference: Optional[FHIRReference], expected_type: str, lookup: Any
    ) -> Any:
        uuid = self._reference_id(reference, expected_type)
        if uuid is None:
            return None
        record = lookup(uuid)
        if record is None:
            raise InvalidRequestException(f"{expected_type}/{uuid} does not exist")
        return record

    def get_patient(self, reference: Optional[FHIRReference]) -> Optional[Patient]:
        """Resolve a patient reference; unknown patients are rejected."""
        patient: Optional[Patient] = self._resolve(
            reference, constants.PATIENT, self.reference_dao.get_patient
        )
        return patient

    def get_practitioner(
        self, reference: Optional[FHIRReference]
    ) -> Optional[Practitioner]:
        """Resolve a practitioner reference; unknown practitioners are rejected."""
        practitioner: Optional[Practitioner] = self._resolve(
            reference, constants.PRACTITIONER, self.reference_dao.get_practitioner
        )
        return practitioner

    def get_encounter(self, reference: Optional[FHIRReference]) -> Optional[Encounter]:
        """Resolve an encounter reference; unknown encounters are rejected."""
        encounter: Optional[Encounter] = self._resolve(
            reference, constants.ENCOUNTER, self.reference_dao.get_encounter
        )
        return encounter

    def get_drug(self, reference: Optional[FHIRReference]) -> Optional[Drug]:
        """Resolve a medication reference; unknown drugs are rejected."""
        drug: Optional[Drug] = self._resolve(
            reference, constants.MEDICATION, self.reference_dao.get_drug
        )
        return drug
