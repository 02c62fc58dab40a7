"""FHIR search parameter definitions and query string parsing."""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from clinic_fhir import constants
from clinic_fhir.api.exceptions import InvalidRequestException
from clinic_fhir.healthcare.fhir_params import (
    DateParam,
    DateRangeParam,
    ReferenceAndListParam,
    ReferenceOrListParam,
    ReferenceParam,
    TokenAndListParam,
    TokenOrListParam,
    TokenParam,
)

_PERSON_CHAINS = [
    "",
    constants.SP_IDENTIFIER,
    constants.SP_GIVEN,
    constants.SP_FAMILY,
    constants.SP_NAME,
]


class FHIRSearchParameters:
    """Supported search parameters per resource type."""

    MEDICATION_REQUEST_SEARCH_PARAMS: Dict[str, Dict[str, Any]] = {
        constants.SP_PATIENT: {
            "type": "reference",
            "target": constants.PATIENT,
            "chains": _PERSON_CHAINS,
            "description": "Patient the medication is for",
        },
        constants.SP_SUBJECT: {
            "type": "reference",
            "target": constants.PATIENT,
            "chains": _PERSON_CHAINS,
            "description": "Subject of the request, used when patient is absent",
        },
        constants.SP_ENCOUNTER: {
            "type": "reference",
            "target": constants.ENCOUNTER,
            "chains": ["", constants.SP_IDENTIFIER],
            "description": "Encounter during which the request was created",
        },
        constants.SP_REQUESTER: {
            "type": "reference",
            "target": constants.PRACTITIONER,
            "chains": _PERSON_CHAINS,
            "description": "Practitioner who ordered the medication",
        },
        constants.SP_MEDICATION: {
            "type": "reference",
            "target": constants.MEDICATION,
            "chains": ["", constants.SP_IDENTIFIER],
            "description": "Medication being ordered",
        },
        constants.SP_CODE: {
            "type": "token",
            "description": "Code of the ordered medication",
        },
        constants.SP_ID: {
            "type": "token",
            "description": "Logical id of the medication request",
        },
        constants.SP_LAST_UPDATED: {
            "type": "date",
            "description": "When the resource last changed",
        },
    }

    # Accepted but not used for filtering
    RESULT_PARAMS = {constants.SP_COUNT, constants.SP_PAGES_OFFSET, "_format"}


def split_param_name(name: str) -> Tuple[str, Optional[str], Optional[str]]:
    """Split ``patient:Patient.name`` into ``("patient", "name", "Patient")``."""
    chain: Optional[str] = None
    if "." in name:
        name, chain = name.split(".", 1)
    modifier: Optional[str] = None
    if ":" in name:
        name, modifier = name.split(":", 1)
    return name, chain, modifier


def split_or_values(raw: str) -> List[str]:
    """Split comma separated alternatives, honoring ``\\,`` escapes."""
    values: List[str] = []
    current: List[str] = []
    escaped = False
    for char in raw:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == ",":
            values.append("".join(current))
            current = []
        else:
            current.append(char)
    values.append("".join(current))
    return [v for v in values if v]


class MedicationRequestSearchQuery:
    """Typed MedicationRequest search parameters parsed from a query string."""

    definitions = FHIRSearchParameters.MEDICATION_REQUEST_SEARCH_PARAMS

    def __init__(self) -> None:
        """Initialize an empty query."""
        self.patient_reference: Optional[ReferenceAndListParam] = None
        self.subject_reference: Optional[ReferenceAndListParam] = None
        self.encounter_reference: Optional[ReferenceAndListParam] = None
        self.participant_reference: Optional[ReferenceAndListParam] = None
        self.medication_reference: Optional[ReferenceAndListParam] = None
        self.code: Optional[TokenAndListParam] = None
        self.id: Optional[TokenAndListParam] = None
        self.last_updated: Optional[DateRangeParam] = None

    @classmethod
    def from_query_items(
        cls, items: Iterable[Tuple[str, str]]
    ) -> "MedicationRequestSearchQuery":
        """Parse repeated ``(name, value)`` query pairs.

        Raises:
            InvalidRequestException: On unknown parameters, unsupported chains
                or malformed values
        """
        query = cls()
        dates: List[DateParam] = []

        for raw_name, raw_value in items:
            name, chain, modifier = split_param_name(raw_name)
            if name in FHIRSearchParameters.RESULT_PARAMS:
                continue
            definition = cls.definitions.get(name)
            if definition is None:
                raise InvalidRequestException(
                    f"Unknown search parameter '{raw_name}' for resource type "
                    f"{constants.MEDICATION_REQUEST}"
                )

            values = split_or_values(raw_value)
            if not values:
                continue

            if definition["type"] == "reference":
                query._add_reference(name, chain, modifier, values, definition)
            elif definition["type"] == "token":
                if chain:
                    raise InvalidRequestException(
                        f"Search parameter '{name}' does not support chaining"
                    )
                query._add_token(name, values)
            else:
                try:
                    dates.extend(DateParam.parse(v) for v in values)
                except ValueError as exc:
                    raise InvalidRequestException(str(exc)) from exc

        if dates:
            try:
                query.last_updated = DateRangeParam.from_params(dates)
            except ValueError as exc:
                raise InvalidRequestException(str(exc)) from exc

        return query

    def _add_reference(
        self,
        name: str,
        chain: Optional[str],
        modifier: Optional[str],
        values: List[str],
        definition: Dict[str, Any],
    ) -> None:
        if (chain or "") not in definition["chains"]:
            raise InvalidRequestException(
                f"Unsupported chain '{chain}' for search parameter '{name}'"
            )
        if modifier and modifier != definition["target"]:
            raise InvalidRequestException(
                f"Search parameter '{name}' only references {definition['target']}"
            )

        or_list = ReferenceOrListParam()
        for value in values:
            or_list.add(
                ReferenceParam(value=value, chain=chain, resource_type=modifier)
            )

        attribute = {
            constants.SP_PATIENT: "patient_reference",
            constants.SP_SUBJECT: "subject_reference",
            constants.SP_ENCOUNTER: "encounter_reference",
            constants.SP_REQUESTER: "participant_reference",
            constants.SP_MEDICATION: "medication_reference",
        }[name]
        current = getattr(self, attribute) or ReferenceAndListParam()
        setattr(self, attribute, current.add_value(or_list))

    def _add_token(self, name: str, values: List[str]) -> None:
        or_list = TokenOrListParam([TokenParam.parse(v) for v in values])
        attribute = "code" if name == constants.SP_CODE else "id"
        current = getattr(self, attribute) or TokenAndListParam()
        setattr(self, attribute, current.add_value(or_list))


def parse_paging(
    items: Iterable[Tuple[str, str]], default_count: int, max_count: int
) -> Tuple[int, int]:
    """Read ``_count`` and ``_getpagesoffset`` as ``(count, offset)``.

    Raises:
        InvalidRequestException: If either value is not a non-negative integer
    """
    params = dict(items)
    try:
        count = int(params.get(constants.SP_COUNT, default_count))
        offset = int(params.get(constants.SP_PAGES_OFFSET, 0))
    except ValueError as exc:
        raise InvalidRequestException(
            f"{constants.SP_COUNT} and {constants.SP_PAGES_OFFSET} must be integers"
        ) from exc
    if count < 0 or offset < 0:
        raise InvalidRequestException(
            f"{constants.SP_COUNT} and {constants.SP_PAGES_OFFSET} must not be negative"
        )
    return min(count, max_count), offset
