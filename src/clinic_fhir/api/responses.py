"""FHIR JSON responses and request body parsing."""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from fhirclient.models.fhirabstractbase import FHIRValidationError
from fhirclient.models.medicationrequest import MedicationRequest

from clinic_fhir import constants
from clinic_fhir.api.exceptions import InvalidRequestException


def fhir_response(
    content: Dict[str, Any],
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """JSON response with the FHIR media type."""
    return JSONResponse(
        content=content,
        status_code=status_code,
        headers=headers,
        media_type=constants.FHIR_MEDIA_TYPE,
    )


def fhir_base_url(request: Request) -> str:
    """Absolute base URL of the FHIR endpoints for this request."""
    base_path = request.app.state.settings.fhir_base_path
    return str(request.base_url).rstrip("/") + base_path


def parse_medication_request(body: Any) -> MedicationRequest:
    """Parse a request body into a MedicationRequest.

    Raises:
        InvalidRequestException: If the body is not a valid MedicationRequest
    """
    if not isinstance(body, dict):
        raise InvalidRequestException("Request body must be a JSON object")
    resource_type = body.get("resourceType")
    if resource_type != constants.MEDICATION_REQUEST:
        raise InvalidRequestException(
            f"Expected resourceType {constants.MEDICATION_REQUEST}, "
            f"got {resource_type}"
        )
    try:
        return MedicationRequest(body)
    except FHIRValidationError as exc:
        raise InvalidRequestException(
            f"Invalid {constants.MEDICATION_REQUEST}: {exc}"
        ) from exc
