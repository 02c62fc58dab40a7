"""Base service class for FHIR resource CRUD and search."""

from typing import Any, Generic, Optional, TypeVar

from fhirclient.models.domainresource import DomainResource

from clinic_fhir.api.exceptions import (
    InvalidRequestException,
    MethodNotAllowedException,
)
from clinic_fhir.dao.base import BaseFhirDao
from clinic_fhir.healthcare.bundle_provider import SearchQueryBundleProvider
from clinic_fhir.healthcare.fhir_params import IdType
from clinic_fhir.healthcare.search_params import SearchParameterMap
from clinic_fhir.utils.logging import audit_logger, get_logger

R = TypeVar("R", bound=DomainResource)

logger = get_logger(__name__)


class BaseFhirService(Generic[R]):
    """Common CRUD operations over a DAO and a translator.

    The translator must provide ``to_fhir_resource(record)`` and
    ``to_record(resource, existing=None)``.
    """

    resource_type_name: str

    def __init__(
        self, dao: BaseFhirDao, translator: Any, page_size: Optional[int] = None
    ):
        """Initialize service with its collaborators."""
        self.dao = dao
        self.translator = translator
        self.page_size = page_size

    def get(self, uuid: str) -> Optional[R]:
        """Get a resource by uuid, or None if there is none."""
        if not uuid:
            raise InvalidRequestException("Uuid cannot be null.")

        record = self.dao.get(uuid)
        if record is None:
            return None

        audit_logger.log_access(self.resource_type_name, uuid, "read")
        resource: R = self.translator.to_fhir_resource(record)
        return resource

    def create(self, resource: R) -> R:
        """Create a new record from a resource."""
        if resource is None:
            raise InvalidRequestException(
                f"A {self.resource_type_name} resource is required"
            )
        if resource.id and self.dao.exists(IdType(resource.id).id_part):
            raise InvalidRequestException(
                f"{self.resource_type_name}/{resource.id} already exists"
            )

        record = self.translator.to_record(resource)
        self.dao.create_or_update(record)

        audit_logger.log_data_change(self.resource_type_name, record.uuid, "create")
        created: R = self.translator.to_fhir_resource(record)
        return created

    def update(self, uuid: Optional[str], resource: R) -> R:
        """Update an existing record.

        Raises:
            InvalidRequestException: If the uuid is missing, the resource has no
                id, or the two differ
            MethodNotAllowedException: If no record exists for the uuid
        """
        if uuid is None:
            raise InvalidRequestException("Uuid cannot be null.")
        if resource is None or not resource.id:
            raise InvalidRequestException(
                f"{self.resource_type_name} resource is missing id."
            )
        if IdType(resource.id).id_part != uuid:
            raise InvalidRequestException(
                f"{self.resource_type_name} id and provided uuid do not match"
            )

        existing = self.dao.get(uuid)
        if existing is None:
            raise MethodNotAllowedException(
                f"{self.resource_type_name} {uuid} does not exist"
            )

        record = self.translator.to_record(resource, existing)
        self.dao.create_or_update(record)

        audit_logger.log_data_change(self.resource_type_name, uuid, "update")
        updated: R = self.translator.to_fhir_resource(record)
        return updated

    def delete(self, uuid: str) -> Optional[R]:
        """Soft delete a record; returns the deleted resource or None."""
        if not uuid:
            raise InvalidRequestException("Uuid cannot be null.")

        record = self.dao.delete(uuid)
        if record is None:
            return None

        audit_logger.log_data_change(self.resource_type_name, uuid, "delete")
        deleted: R = self.translator.to_fhir_resource(record)
        return deleted

    def search(self, search_params: SearchParameterMap) -> SearchQueryBundleProvider:
        """Lazy search results for a parameter map."""
        provider = SearchQueryBundleProvider(
            search_params, self.dao, self.translator.to_fhir_resource, self.page_size
        )
        logger.debug(
            "search_prepared",
            resource_type=self.resource_type_name,
            parameters=provider.describe(),
        )
        return provider
