"""Helpers that wrap provider results into FHIR outcomes and bundles."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from fhirclient.models.domainresource import DomainResource
from fhirclient.models.operationoutcome import OperationOutcome

from clinic_fhir import constants
from clinic_fhir.healthcare.bundle_provider import BundleProvider
from clinic_fhir.healthcare.fhir_params import IdType


@dataclass
class MethodOutcome:
    """Result of a create or update interaction."""

    id: Optional[IdType] = None
    created: Optional[bool] = None
    resource: Optional[DomainResource] = None
    operation_outcome: Optional[OperationOutcome] = None


def build_create(resource: DomainResource) -> MethodOutcome:
    """Wrap a newly created resource."""
    return MethodOutcome(
        id=IdType.of(resource.resource_type, resource.id),
        created=True,
        resource=resource,
    )


def build_update(resource: DomainResource) -> MethodOutcome:
    """Wrap an updated resource."""
    return MethodOutcome(
        id=IdType.of(resource.resource_type, resource.id),
        created=False,
        resource=resource,
    )


def build_delete(resource: DomainResource) -> OperationOutcome:
    """Informational outcome returned after a successful delete."""
    return OperationOutcome(
        {
            "issue": [
                {
                    "severity": "information",
                    "code": "informational",
                    "details": {
                        "coding": [
                            {
                                "system": constants.OPERATION_OUTCOME_CODE_SYSTEM,
                                "code": constants.MSG_DELETED,
                                "display": constants.MSG_DELETED_DISPLAY,
                            }
                        ]
                    },
                    "diagnostics": (
                        f"Successfully deleted {resource.resource_type}/{resource.id}"
                    ),
                }
            ]
        }
    )


def _page_url(base_url: str, params: Dict[str, Any], count: int, offset: int) -> str:
    query = {**params, constants.SP_COUNT: count, constants.SP_PAGES_OFFSET: offset}
    return f"{base_url}?{urlencode(query, doseq=True)}"


def build_search_bundle(
    provider: BundleProvider,
    resource_type: str,
    base_url: str,
    query_params: Dict[str, List[str]],
    count: int,
    offset: int,
) -> Dict[str, Any]:
    """Render one page of a bundle provider as a ``searchset`` Bundle.

    Args:
        provider: Search results
        resource_type: Resource type of the entries
        base_url: Server base URL, e.g. ``http://host/ws/fhir2/R4``
        query_params: Search parameters of the request, without paging parameters
        count: Page size
        offset: Index of the first entry of the page
    """
    total = provider.size()
    resources = provider.get_resources(offset, offset + count) if count else []
    search_url = f"{base_url}/{resource_type}"

    links = [
        {
            "relation": "self",
            "url": _page_url(search_url, query_params, count, offset),
        }
    ]
    if count and total is not None and offset + count < total:
        links.append(
            {
                "relation": "next",
                "url": _page_url(search_url, query_params, count, offset + count),
            }
        )
    if count and offset > 0:
        links.append(
            {
                "relation": "previous",
                "url": _page_url(
                    search_url, query_params, count, max(offset - count, 0)
                ),
            }
        )

    bundle: Dict[str, Any] = {
        "resourceType": constants.BUNDLE,
        "id": provider.uuid,
        "meta": {"lastUpdated": provider.published.replace(microsecond=0).isoformat()},
        "type": "searchset",
        "link": links,
        "entry": [
            {
                "fullUrl": f"{base_url}/{resource.resource_type}/{resource.id}",
                "resource": resource.as_json(),
                "search": {"mode": "match"},
            }
            for resource in resources
        ],
    }
    if total is not None:
        bundle["total"] = total
    return bundle
