"""MedicationRequest FHIR REST endpoints.

Read, create, update, delete and search interactions for MedicationRequest,
served as ``application/fhir+json``. Errors are returned as OperationOutcome
resources by the application exception handlers.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse

from clinic_fhir import constants
from clinic_fhir.api.dependencies import (
    get_medication_request_provider,
    settings_dependency,
)
from clinic_fhir.api.responses import (
    fhir_base_url,
    fhir_response,
    parse_medication_request,
)
from clinic_fhir.config import Settings
from clinic_fhir.healthcare.fhir_params import IdType
from clinic_fhir.healthcare.fhir_search import (
    MedicationRequestSearchQuery,
    parse_paging,
)
from clinic_fhir.healthcare.fhir_utils import build_search_bundle
from clinic_fhir.providers.medication_request_provider import (
    MedicationRequestFhirResourceProvider,
)
from clinic_fhir.utils.logging import get_logger

router = APIRouter(
    prefix=f"/{constants.MEDICATION_REQUEST}",
    tags=[constants.MEDICATION_REQUEST],
)
logger = get_logger(__name__)

provider_dependency = Depends(get_medication_request_provider)
resource_body = Body(..., media_type=constants.FHIR_MEDIA_TYPE)

_PAGING_PARAMS = {constants.SP_COUNT, constants.SP_PAGES_OFFSET}


@router.get("/{resource_id}")
def read_medication_request(
    resource_id: str,
    provider: MedicationRequestFhirResourceProvider = provider_dependency,
) -> JSONResponse:
    """Read a MedicationRequest by id."""
    resource = provider.get_medication_request_by_uuid(IdType(resource_id))
    return fhir_response(resource.as_json())


@router.get("")
def search_medication_requests(
    request: Request,
    provider: MedicationRequestFhirResourceProvider = provider_dependency,
    settings: Settings = settings_dependency,
) -> JSONResponse:
    """Search MedicationRequests and return one page as a searchset Bundle."""
    items = list(request.query_params.multi_items())
    query = MedicationRequestSearchQuery.from_query_items(items)
    count, offset = parse_paging(
        items, settings.default_page_size, settings.max_page_size
    )

    results = provider.search_for_medication_requests(
        patient_reference=query.patient_reference,
        subject_reference=query.subject_reference,
        encounter_reference=query.encounter_reference,
        code=query.code,
        participant_reference=query.participant_reference,
        medication_reference=query.medication_reference,
        id=query.id,
        last_updated=query.last_updated,
    )

    search_params: Dict[str, List[str]] = {}
    for name, value in items:
        if name not in _PAGING_PARAMS:
            search_params.setdefault(name, []).append(value)

    bundle = build_search_bundle(
        results,
        constants.MEDICATION_REQUEST,
        fhir_base_url(request),
        search_params,
        count,
        offset,
    )
    logger.info(
        "medication_request_search",
        parameters=sorted(search_params),
        total=bundle.get("total"),
        returned=len(bundle["entry"]),
    )
    return fhir_response(bundle)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_medication_request(
    request: Request,
    body: Dict[str, Any] = resource_body,
    provider: MedicationRequestFhirResourceProvider = provider_dependency,
) -> JSONResponse:
    """Create a MedicationRequest."""
    outcome = provider.create_medication_request(parse_medication_request(body))
    location = f"{fhir_base_url(request)}/{outcome.id}"
    return fhir_response(
        outcome.resource.as_json(),
        status_code=status.HTTP_201_CREATED,
        headers={"Location": location},
    )


@router.put("/{resource_id}")
def update_medication_request(
    resource_id: str,
    body: Dict[str, Any] = resource_body,
    provider: MedicationRequestFhirResourceProvider = provider_dependency,
) -> JSONResponse:
    """Update a MedicationRequest."""
    outcome = provider.update_medication_request(
        IdType(resource_id), parse_medication_request(body)
    )
    return fhir_response(outcome.resource.as_json())


@router.delete("/{resource_id}")
def delete_medication_request(
    resource_id: str,
    provider: MedicationRequestFhirResourceProvider = provider_dependency,
) -> JSONResponse:
    """Delete a MedicationRequest."""
    outcome = provider.delete_medication_request(IdType(resource_id))
    return fhir_response(outcome.as_json())
