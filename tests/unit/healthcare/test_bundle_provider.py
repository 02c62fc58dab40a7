"""Tests for bundle providers and bundle/outcome builders."""

from unittest.mock import MagicMock

from fhirclient.models.medicationrequest import MedicationRequest

from clinic_fhir import constants
from clinic_fhir.healthcare.bundle_provider import (
    SearchQueryBundleProvider,
    SimpleBundleProvider,
)
from clinic_fhir.healthcare.fhir_params import DateRangeParam, TokenAndListParam
from clinic_fhir.healthcare.fhir_utils import (
    build_create,
    build_delete,
    build_search_bundle,
)
from clinic_fhir.healthcare.search_params import SearchParameterMap

BASE_URL = "http://testserver/ws/fhir2/R4"


def medication_request(resource_id):
    return MedicationRequest(
        {
            "id": resource_id,
            "status": "active",
            "intent": "order",
            "subject": {"reference": "Patient/p1"},
            "medicationCodeableConcept": {"text": "Aspirin"},
        }
    )


def test_simple_bundle_provider_slices_half_open_ranges():
    resources = [medication_request(f"mr{i}") for i in range(3)]
    provider = SimpleBundleProvider(resources)

    assert provider.size() == 3
    assert [r.id for r in provider.get_resources(0, 2)] == ["mr0", "mr1"]
    assert [r.id for r in provider.get_resources(2, 10)] == ["mr2"]
    assert provider.get_resources(3, 5) == []
    assert len(provider.get_all_resources()) == 3


def test_search_query_bundle_provider_is_lazy():
    dao = MagicMock()
    translate = MagicMock(side_effect=lambda row: medication_request(row))
    params = SearchParameterMap()

    provider = SearchQueryBundleProvider(params, dao, translate, page_size=5)

    dao.get_search_results_count.assert_not_called()
    dao.get_search_results.assert_not_called()
    assert provider.preferred_page_size() == 5

    dao.get_search_results_count.return_value = 2
    dao.get_search_results.return_value = ["a", "b"]

    assert provider.size() == 2
    assert provider.size() == 2
    dao.get_search_results_count.assert_called_once_with(params)

    resources = provider.get_resources(0, 5)
    assert [r.id for r in resources] == ["a", "b"]
    dao.get_search_results.assert_called_once_with(params, 0, 5)


def test_search_query_bundle_provider_empty_range_skips_query():
    dao = MagicMock()
    provider = SearchQueryBundleProvider(SearchParameterMap(), dao, MagicMock())

    assert provider.get_resources(4, 4) == []
    dao.get_search_results.assert_not_called()


def test_search_parameter_map_ignores_empty_parameters():
    params = (
        SearchParameterMap()
        .add_parameter("key", None)
        .add_parameter("key", TokenAndListParam())
        .add_parameter("key", DateRangeParam())
    )

    assert len(params) == 0
    assert "key" not in params


def test_build_create_wraps_resource():
    outcome = build_create(medication_request("mr1"))

    assert outcome.created is True
    assert str(outcome.id) == "MedicationRequest/mr1"


def test_build_delete_returns_informational_outcome():
    outcome = build_delete(medication_request("mr1")).as_json()

    [issue] = outcome["issue"]
    assert issue["severity"] == "information"
    assert issue["code"] == "informational"
    assert issue["details"]["coding"][0]["code"] == constants.MSG_DELETED
    assert issue["details"]["coding"][0]["system"] == (
        constants.OPERATION_OUTCOME_CODE_SYSTEM
    )


def test_build_search_bundle_pages_with_links():
    resources = [medication_request(f"mr{i}") for i in range(5)]
    provider = SimpleBundleProvider(resources)

    bundle = build_search_bundle(
        provider,
        constants.MEDICATION_REQUEST,
        BASE_URL,
        {"patient": ["Patient/p1"]},
        count=2,
        offset=2,
    )

    assert bundle["resourceType"] == "Bundle"
    assert bundle["type"] == "searchset"
    assert bundle["total"] == 5
    assert [e["resource"]["id"] for e in bundle["entry"]] == ["mr2", "mr3"]
    assert bundle["entry"][0]["fullUrl"] == f"{BASE_URL}/MedicationRequest/mr2"
    assert bundle["entry"][0]["search"] == {"mode": "match"}

    links = {link["relation"]: link["url"] for link in bundle["link"]}
    assert links["self"] == (
        f"{BASE_URL}/MedicationRequest?patient=Patient%2Fp1"
        "&_count=2&_getpagesoffset=2"
    )
    assert links["next"].endswith("_count=2&_getpagesoffset=4")
    assert links["previous"].endswith("_count=2&_getpagesoffset=0")


def test_build_search_bundle_last_page_has_no_next_link():
    provider = SimpleBundleProvider([medication_request("mr1")])

    bundle = build_search_bundle(
        provider, constants.MEDICATION_REQUEST, BASE_URL, {}, count=10, offset=0
    )

    assert [link["relation"] for link in bundle["link"]] == ["self"]
    assert len(bundle["entry"]) == 1
