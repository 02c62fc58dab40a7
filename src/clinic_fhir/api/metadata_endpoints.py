"""FHIR capability statement endpoint."""

from typing import Any, Dict, List

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from clinic_fhir import constants
from clinic_fhir.api.responses import fhir_base_url, fhir_response
from clinic_fhir.healthcare.fhir_search import FHIRSearchParameters
from clinic_fhir.models.base import utcnow

router = APIRouter(tags=["metadata"])

_INTERACTIONS = ["read", "create", "update", "delete", "search-type"]


def _search_params() -> List[Dict[str, Any]]:
    params = FHIRSearchParameters.MEDICATION_REQUEST_SEARCH_PARAMS
    return [
        {
            "name": name,
            "type": definition["type"],
            "documentation": definition["description"],
        }
        for name, definition in params.items()
    ]


@router.get("/metadata")
def capability_statement(request: Request) -> JSONResponse:
    """Describe the resources and interactions this server supports."""
    settings = request.app.state.settings
    statement = {
        "resourceType": "CapabilityStatement",
        "status": "active",
        "date": utcnow().date().isoformat(),
        "kind": "instance",
        "software": {"name": settings.app_name, "version": settings.app_version},
        "implementation": {
            "description": settings.app_name,
            "url": fhir_base_url(request),
        },
        "fhirVersion": "4.0.1",
        "format": [constants.FHIR_MEDIA_TYPE, "json"],
        "rest": [
            {
                "mode": "server",
                "resource": [
                    {
                        "type": constants.MEDICATION_REQUEST,
                        "interaction": [
                            {"code": code} for code in _INTERACTIONS
                        ],
                        "searchParam": _search_params(),
                    }
                ],
            }
        ],
    }
    return fhir_response(statement)
