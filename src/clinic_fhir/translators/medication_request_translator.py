"""Translation between drug orders and FHIR MedicationRequest resources."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fhirclient.models.medicationrequest import MedicationRequest

from clinic_fhir import constants
from clinic_fhir.api.exceptions import InvalidRequestException
from clinic_fhir.models import DrugOrder

from .reference_translator import ReferenceTranslator


class MedicationRequestStatus(Enum):
    """MedicationRequest status codes."""

    ACTIVE = "active"
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    ENTERED_IN_ERROR = "entered-in-error"
    STOPPED = "stopped"
    DRAFT = "draft"
    UNKNOWN = "unknown"


class MedicationRequestIntent(Enum):
    """MedicationRequest intent codes."""

    PROPOSAL = "proposal"
    PLAN = "plan"
    ORDER = "order"
    ORIGINAL_ORDER = "original-order"
    REFLEX_ORDER = "reflex-order"
    FILLER_ORDER = "filler-order"
    INSTANCE_ORDER = "instance-order"
    OPTION = "option"


class MedicationRequestPriority(Enum):
    """Request priority codes."""

    ROUTINE = "routine"
    URGENT = "urgent"
    ASAP = "asap"
    STAT = "stat"


def to_instant(value: Optional[datetime]) -> Optional[str]:
    """Format a stored timestamp as a FHIR instant (naive values are UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.replace(microsecond=0).isoformat()


def from_fhir_datetime(value: Any) -> Optional[datetime]:
    """Parse a fhirclient date/dateTime into an aware datetime."""
    if value is None:
        return None
    raw = value.as_json() if hasattr(value, "as_json") else str(value)
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidRequestException(f"Unsupported date value '{raw}'") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _checked(enum_type: Any, value: Optional[str], field: str) -> Optional[str]:
    if value is None:
        return None
    allowed = {member.value for member in enum_type}
    if value not in allowed:
        raise InvalidRequestException(
            f"Invalid {field} '{value}'; expected one of {sorted(allowed)}"
        )
    return value


class MedicationRequestTranslator:
    """Converts between ``DrugOrder`` rows and ``MedicationRequest`` resources."""

    def __init__(self, reference_translator: ReferenceTranslator):
        """Initialize with the reference translator."""
        self.reference_translator = reference_translator

    def to_fhir_resource(self, drug_order: DrugOrder) -> MedicationRequest:
        """Render a stored drug order as a MedicationRequest."""
        refs = self.reference_translator
        data: Dict[str, Any] = {
            "id": drug_order.uuid,
            "status": drug_order.status,
            "intent": drug_order.intent,
            "subject": refs.to_patient_reference(drug_order.patient),
        }

        last_updated = to_instant(drug_order.date_changed or drug_order.date_created)
        if last_updated:
            data["meta"] = {"lastUpdated": last_updated}
        if drug_order.priority:
            data["priority"] = drug_order.priority
        if drug_order.orderer is not None:
            data["requester"] = refs.to_practitioner_reference(drug_order.orderer)
        if drug_order.encounter is not None:
            data["encounter"] = refs.to_encounter_reference(drug_order.encounter)

        if drug_order.drug is not None:
            data["medicationReference"] = refs.to_medication_reference(drug_order.drug)
        else:
            coding = {
                key: value
                for key, value in (
                    ("system", drug_order.concept_system),
                    ("code", drug_order.concept_code),
                    ("display", drug_order.concept_display),
                )
                if value
            }
            concept: Dict[str, Any] = {"coding": [coding]} if coding else {}
            concept["text"] = (
                drug_order.concept_display or drug_order.concept_code or "unknown"
            )
            data["medicationCodeableConcept"] = concept

        authored_on = to_instant(drug_order.date_activated)
        if authored_on:
            data["authoredOn"] = authored_on
        if drug_order.dosing_instructions:
            data["dosageInstruction"] = [{"text": drug_order.dosing_instructions}]

        return MedicationRequest(data)

    def to_record(
        self, resource: MedicationRequest, existing: Optional[DrugOrder] = None
    ) -> DrugOrder:
        """Apply a MedicationRequest to a new or existing drug order.

        Raises:
            InvalidRequestException: If codes are invalid or references point
                to records that do not exist
        """
        refs = self.reference_translator
        drug_order = existing or DrugOrder(uuid=resource.id or str(uuid.uuid4()))

        drug_order.status = (
            _checked(MedicationRequestStatus, resource.status, "status")
            or MedicationRequestStatus.ACTIVE.value
        )
        drug_order.intent = (
            _checked(MedicationRequestIntent, resource.intent, "intent")
            or MedicationRequestIntent.ORDER.value
        )
        drug_order.priority = _checked(
            MedicationRequestPriority, resource.priority, "priority"
        )

        patient = refs.get_patient(resource.subject)
        if patient is None:
            raise InvalidRequestException(
                f"{constants.MEDICATION_REQUEST} must have a "
                f"{constants.PATIENT} subject"
            )
        drug_order.patient = patient
        drug_order.orderer = refs.get_practitioner(resource.requester)
        drug_order.encounter = refs.get_encounter(resource.encounter)

        drug_order.drug = refs.get_drug(resource.medicationReference)
        concept = resource.medicationCodeableConcept
        coding = concept.coding[0] if concept is not None and concept.coding else None
        drug_order.concept_system = coding.system if coding else None
        drug_order.concept_code = coding.code if coding else None
        drug_order.concept_display = (
            (coding.display if coding else None) or (concept.text if concept else None)
        )
        if drug_order.drug is None and drug_order.concept_code is None:
            raise InvalidRequestException(
                f"{constants.MEDICATION_REQUEST} must reference a medication "
                "or carry a code"
            )

        drug_order.date_activated = from_fhir_datetime(resource.authoredOn)
        dosage = resource.dosageInstruction[0] if resource.dosageInstruction else None
        drug_order.dosing_instructions = dosage.text if dosage else None

        return drug_order
