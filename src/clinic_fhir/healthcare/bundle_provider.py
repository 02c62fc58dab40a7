"""Bundle providers: paged, lazily materialized search results."""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from fhirclient.models.domainresource import DomainResource

from clinic_fhir.healthcare.search_params import SearchParameterMap


class BundleProvider(ABC):
    """A search result that is only materialized one page at a time."""

    def __init__(self, page_size: Optional[int] = None) -> None:
        """Initialize bundle provider."""
        self._uuid = str(uuid.uuid4())
        self._published = datetime.now(timezone.utc)
        self._page_size = page_size

    @property
    def uuid(self) -> str:
        """Identifier of this result set."""
        return self._uuid

    @property
    def published(self) -> datetime:
        """When the result set was created."""
        return self._published

    def preferred_page_size(self) -> Optional[int]:
        """Page size requested by the producer of this result set, if any."""
        return self._page_size

    @abstractmethod
    def size(self) -> Optional[int]:
        """Total number of matches, or None if unknown."""

    @abstractmethod
    def get_resources(self, from_index: int, to_index: int) -> List[DomainResource]:
        """Resources in the half-open range ``[from_index, to_index)``."""

    def get_all_resources(self) -> List[DomainResource]:
        """Materialize every match."""
        return self.get_resources(0, self.size() or 0)


class SimpleBundleProvider(BundleProvider):
    """Bundle provider over an in-memory list."""

    def __init__(
        self, resources: Sequence[DomainResource], page_size: Optional[int] = None
    ) -> None:
        """Initialize with a fixed list of resources."""
        super().__init__(page_size)
        self._resources = list(resources)

    def size(self) -> Optional[int]:
        """Number of resources in the list."""
        return len(self._resources)

    def get_resources(self, from_index: int, to_index: int) -> List[DomainResource]:
        """Slice of the list."""
        from_index = max(from_index, 0)
        to_index = min(to_index, len(self._resources))
        if from_index >= to_index:
            return []
        return self._resources[from_index:to_index]


class SearchDao(Protocol):
    """Search operations a DAO must provide to back a bundle provider."""

    def get_search_results_count(self, search_params: SearchParameterMap) -> int:
        """Count the matches."""

    def get_search_results(
        self, search_params: SearchParameterMap, from_index: int, to_index: int
    ) -> List[Any]:
        """Fetch matches in ``[from_index, to_index)``."""


class SearchQueryBundleProvider(BundleProvider):
    """Bundle provider that queries the DAO only when results are requested."""

    def __init__(
        self,
        search_params: SearchParameterMap,
        dao: SearchDao,
        translate: Callable[[Any], DomainResource],
        page_size: Optional[int] = None,
    ) -> None:
        """Initialize lazy search results.

        Args:
            search_params: Filters to apply
            dao: DAO executing the search
            translate: Converts a DAO row into a FHIR resource
            page_size: Preferred page size
        """
        super().__init__(page_size)
        self.search_params = search_params
        self.dao = dao
        self.translate = translate
        self._count: Optional[int] = None

    def size(self) -> Optional[int]:
        """Total matches, counted once on first use."""
        if self._count is None:
            self._count = self.dao.get_search_results_count(self.search_params)
        return self._count

    def get_resources(self, from_index: int, to_index: int) -> List[DomainResource]:
        """Fetch and translate one offset range."""
        from_index = max(from_index, 0)
        if from_index >= to_index:
            return []
        rows = self.dao.get_search_results(self.search_params, from_index, to_index)
        return [self.translate(row) for row in rows]

    def describe(self) -> Dict[str, Any]:
        """Parameter keys used by this search, for logging."""
        return {key: len(values) for key, values in self.search_params.items()}
