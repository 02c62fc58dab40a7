"""DAO for drug orders exposed as MedicationRequest resources."""

from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.sql.elements import ColumnElement

from clinic_fhir import constants
from clinic_fhir.healthcare.fhir_params import ReferenceAndListParam, ReferenceParam
from clinic_fhir.healthcare.search_params import SearchParameterMap
from clinic_fhir.models import Drug, DrugOrder, Encounter, Patient, Practitioner

from .base import BaseFhirDao


def _prefix(column: Any, value: str) -> ColumnElement:
    return column.ilike(f"{value}%")


def _person_criterion(model: Any, param: ReferenceParam) -> Optional[ColumnElement]:
    """Match a patient or practitioner on id or a chained name/identifier."""
    chain = param.chain or ""
    if not chain:
        return model.uuid == param.id_part if param.id_part else None
    if param.value is None:
        return None
    if chain == constants.SP_IDENTIFIER:
        return model.identifier == param.value
    if chain == constants.SP_GIVEN:
        return _prefix(model.given_name, param.value)
    if chain == constants.SP_FAMILY:
        return _prefix(model.family_name, param.value)
    if chain == constants.SP_NAME:
        return or_(
            _prefix(model.given_name, param.value),
            _prefix(model.family_name, param.value),
        )
    return None


def _uuid_criterion(model: Any, param: ReferenceParam) -> Optional[ColumnElement]:
    """Match on id; the identifier chain is the uuid for these resources."""
    if param.chain in (None, "", constants.SP_IDENTIFIER):
        value = param.id_part if not param.chain else param.value
        return model.uuid == value if value else None
    return None


class FhirMedicationRequestDao(BaseFhirDao[DrugOrder]):
    """Searchable store of drug orders."""

    model_class = DrugOrder

    def search_criteria(self, search_params: SearchParameterMap) -> List[ColumnElement]:
        """Criteria for every MedicationRequest search parameter."""
        criteria = super().search_criteria(search_params)

        reference_handlers: Dict[str, tuple] = {
            constants.PATIENT_REFERENCE_SEARCH_HANDLER: (
                DrugOrder.patient_id,
                Patient,
                _person_criterion,
            ),
            constants.PARTICIPANT_REFERENCE_SEARCH_HANDLER: (
                DrugOrder.orderer_id,
                Practitioner,
                _person_criterion,
            ),
            constants.ENCOUNTER_REFERENCE_SEARCH_HANDLER: (
                DrugOrder.encounter_id,
                Encounter,
                _uuid_criterion,
            ),
            constants.MEDICATION_REFERENCE_SEARCH_HANDLER: (
                DrugOrder.drug_id,
                Drug,
                _uuid_criterion,
            ),
        }
        for key, (fk_column, model, build) in reference_handlers.items():
            for entry in search_params.get_parameters(key):
                criteria.extend(
                    self._reference_criteria(entry.param, fk_column, model, build)
                )

        for entry in search_params.get_parameters(constants.CODED_SEARCH_HANDLER):
            criteria.extend(self._code_criteria(entry.param))

        for entry in search_params.get_parameters(constants.COMMON_SEARCH_HANDLER):
            if entry.property_name == constants.ID_PROPERTY:
                criteria.extend(self.token_criteria(entry.param, DrugOrder.uuid))
            elif entry.property_name == constants.LAST_UPDATED_PROPERTY:
                criteria.extend(
                    self.date_range_criteria(entry.param, self.last_updated_column())
                )

        return criteria

    @staticmethod
    def _reference_criteria(
        and_list: ReferenceAndListParam,
        fk_column: Any,
        model: Any,
        build: Callable[[Any, ReferenceParam], Optional[ColumnElement]],
    ) -> List[ColumnElement]:
        criteria: List[ColumnElement] = []
        for or_list in and_list.values:
            alternatives = [
                criterion
                for criterion in (build(model, param) for param in or_list.values)
                if criterion is not None
            ]
            if alternatives:
                criteria.append(
                    fk_column.in_(
                        select(model.id).where(
                            model.voided.is_(False), or_(*alternatives)
                        )
                    )
                )
        return criteria

    def _code_criteria(self, and_list: Any) -> List[ColumnElement]:
        """Codes match the order concept or the code of the ordered drug."""
        concept = self.token_criteria(
            and_list, DrugOrder.concept_code, DrugOrder.concept_system
        )
        drug = self.token_criteria(and_list, Drug.code)
        return [
            or_(
                concept_criterion,
                DrugOrder.drug_id.in_(select(Drug.id).where(drug_criterion)),
            )
            for concept_criterion, drug_criterion in zip(concept, drug)
        ]
