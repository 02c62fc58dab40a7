"""Base DAO with the search plumbing shared by resource DAOs."""

from datetime import datetime
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import and_, false, func, or_
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import ColumnElement

from clinic_fhir.healthcare.fhir_params import DateRangeParam, TokenAndListParam
from clinic_fhir.healthcare.search_params import SearchParameterMap
from clinic_fhir.models.base import BaseModel
from clinic_fhir.utils.logging import get_logger

T = TypeVar("T", bound=BaseModel)

logger = get_logger(__name__)


class BaseFhirDao(Generic[T]):
    """Generic DAO over a soft-deletable model keyed by uuid."""

    model_class: Type[T]

    def __init__(self, session: Session):
        """Initialize DAO with database session."""
        self.session = session

    def _active_query(self) -> Query:
        return self.model_class.query_active(self.session)  # type: ignore[attr-defined]

    def get(self, uuid: str) -> Optional[T]:
        """Get an active record by uuid."""
        record: Optional[T] = (
            self._active_query().filter(self.model_class.uuid == uuid).one_or_none()
        )
        return record

    def exists(self, uuid: str) -> bool:
        """Whether any record, voided or not, uses this uuid."""
        query = self.session.query(self.model_class.id).filter(
            self.model_class.uuid == uuid
        )
        return bool(self.session.query(query.exists()).scalar())

    def create_or_update(self, record: T) -> T:
        """Persist a new or modified record."""
        self.session.add(record)
        self.session.flush()
        return record

    def delete(self, uuid: str) -> Optional[T]:
        """Soft delete a record; returns it, or None if there was none."""
        record = self.get(uuid)
        if record is None:
            return None
        record.void("Voided via FHIR API")  # type: ignore[attr-defined]
        self.session.flush()
        return record

    def get_search_results_count(self, search_params: SearchParameterMap) -> int:
        """Count records matching the search."""
        count: int = self._search_query(search_params).count()
        return count

    def get_search_results(
        self, search_params: SearchParameterMap, from_index: int, to_index: int
    ) -> List[T]:
        """Fetch records in ``[from_index, to_index)`` of the search."""
        query = (
            self._search_query(search_params)
            .order_by(self.model_class.id)
            .offset(from_index)
            .limit(max(to_index - from_index, 0))
        )
        results: List[T] = query.all()
        logger.debug(
            "search_results_fetched",
            model=self.model_class.__name__,
            from_index=from_index,
            to_index=to_index,
            returned=len(results),
        )
        return results

    def _search_query(self, search_params: SearchParameterMap) -> Query:
        query = self._active_query()
        for criterion in self.search_criteria(search_params):
            query = query.filter(criterion)
        return query

    def search_criteria(self, search_params: SearchParameterMap) -> List[ColumnElement]:
        """Translate the parameter map into filter criteria.

        Subclasses extend this with resource specific parameters.
        """
        return []

    # Criteria builders

    @staticmethod
    def token_criteria(
        and_list: TokenAndListParam,
        code_column: Any,
        system_column: Optional[Any] = None,
    ) -> List[ColumnElement]:
        """One OR criterion per AND clause of a token parameter."""
        criteria: List[ColumnElement] = []
        for or_list in and_list.values:
            alternatives = []
            for token in or_list.values:
                if token.value is None:
                    continue
                match = code_column == token.value
                if token.system and system_column is not None:
                    match = and_(match, system_column == token.system)
                elif token.system:
                    # no system column to match the system against
                    match = false()
                alternatives.append(match)
            if alternatives:
                criteria.append(or_(*alternatives))
        return criteria

    @staticmethod
    def date_range_criteria(
        date_range: DateRangeParam, column: Any
    ) -> List[ColumnElement]:
        """Half-open interval criteria for a date range."""
        criteria: List[ColumnElement] = []
        lower: Optional[datetime] = date_range.lower_bound_as_instant()
        upper: Optional[datetime] = date_range.upper_bound_as_instant()
        if lower is not None:
            criteria.append(column >= lower)
        if upper is not None:
            criteria.append(column < upper)
        return criteria

    def last_updated_column(self) -> Any:
        """Last modification time of a record."""
        return func.coalesce(
            self.model_class.date_changed,  # type: ignore[attr-defined]
            self.model_class.date_created,  # type: ignore[attr-defined]
        )
