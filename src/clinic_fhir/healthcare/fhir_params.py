"""FHIR search parameter types.

These mirror the FHIR search parameter kinds used by the resource providers:
token, reference (optionally chained) and date, plus the OR/AND list wrappers
that carry repeated and comma separated values. Values inside an OR list match
if any of them matches; every entry of an AND list must match.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional, Union

_HISTORY = "/_history/"


@dataclass
class IdType:
    """A resource id as it appears in a request path or a resource body.

    Accepts bare ids (``abc``), relative ids (``MedicationRequest/abc``),
    versioned ids (``MedicationRequest/abc/_history/2``) and absolute URLs.
    """

    value: Optional[str] = None

    def set_value(self, value: Optional[str]) -> "IdType":
        """Set the raw value and return self for chaining."""
        self.value = value
        return self

    @classmethod
    def of(cls, resource_type: str, id_part: str) -> "IdType":
        """Build a relative id from a resource type and an id."""
        return cls(f"{resource_type}/{id_part}")

    def _parts(self) -> List[str]:
        if not self.value:
            return []
        base = self.value.strip().split(_HISTORY, 1)[0]
        return [p for p in base.split("/") if p]

    @property
    def id_part(self) -> Optional[str]:
        """The logical id without resource type or version."""
        parts = self._parts()
        return parts[-1] if parts else None

    @property
    def resource_type(self) -> Optional[str]:
        """The resource type prefix, if any."""
        parts = self._parts()
        return parts[-2] if len(parts) >= 2 else None

    @property
    def version_id_part(self) -> Optional[str]:
        """The version after ``/_history/``, if any."""
        if not self.value or _HISTORY not in self.value:
            return None
        return self.value.split(_HISTORY, 1)[1].strip("/") or None

    def has_id_part(self) -> bool:
        """Whether a logical id is present."""
        return bool(self.id_part)

    def __str__(self) -> str:
        return self.value or ""


# Token parameters


@dataclass
class TokenParam:
    """A ``[system|]code`` token."""

    value: Optional[str] = None
    system: Optional[str] = None

    @classmethod
    def parse(cls, raw: str) -> "TokenParam":
        """Parse ``system|code``, ``|code`` or ``code``."""
        if "|" in raw:
            system, value = raw.split("|", 1)
            return cls(value=value or None, system=system or None)
        return cls(value=raw or None)


@dataclass
class TokenOrListParam:
    """Tokens of which any may match."""

    values: List[TokenParam] = field(default_factory=list)

    def add(self, token: Union[TokenParam, str]) -> "TokenOrListParam":
        """Add a token (or a raw token string) to the list."""
        if isinstance(token, str):
            token = TokenParam.parse(token)
        self.values.append(token)
        return self


@dataclass
class TokenAndListParam:
    """OR lists of tokens that must all match."""

    values: List[TokenOrListParam] = field(default_factory=list)

    def add_and(self, *tokens: Union[TokenParam, str]) -> "TokenAndListParam":
        """Add one AND clause made of the given alternatives."""
        or_list = TokenOrListParam()
        for token in tokens:
            or_list.add(token)
        self.values.append(or_list)
        return self

    def add_value(self, or_list: TokenOrListParam) -> "TokenAndListParam":
        """Add an existing OR list as an AND clause."""
        self.values.append(or_list)
        return self


# Reference parameters


@dataclass
class ReferenceParam:
    """A reference search value, optionally chained (``patient.name=...``)."""

    value: Optional[str] = None
    chain: Optional[str] = None
    resource_type: Optional[str] = None

    def set_chain(self, chain: Optional[str]) -> "ReferenceParam":
        """Set the chained property and return self for chaining."""
        self.chain = chain
        return self

    def set_value(self, value: Optional[str]) -> "ReferenceParam":
        """Set the value and return self for chaining."""
        self.value = value
        return self

    @property
    def id_part(self) -> Optional[str]:
        """The id part of an unchained value such as ``Patient/123``."""
        if self.value is None:
            return None
        return IdType(self.value).id_part

    @property
    def target_type(self) -> Optional[str]:
        """Explicit resource type modifier, or the type prefix of the value."""
        if self.resource_type:
            return self.resource_type
        if self.value and not self.chain:
            return IdType(self.value).resource_type
        return None


@dataclass
class ReferenceOrListParam:
    """References of which any may match."""

    values: List[ReferenceParam] = field(default_factory=list)

    def add(self, reference: ReferenceParam) -> "ReferenceOrListParam":
        """Add a reference to the list."""
        self.values.append(reference)
        return self


@dataclass
class ReferenceAndListParam:
    """OR lists of references that must all match."""

    values: List[ReferenceOrListParam] = field(default_factory=list)

    def add_value(self, or_list: ReferenceOrListParam) -> "ReferenceAndListParam":
        """Add an OR list as an AND clause."""
        self.values.append(or_list)
        return self

    def add_and(self, *references: ReferenceParam) -> "ReferenceAndListParam":
        """Add one AND clause made of the given alternatives."""
        return self.add_value(ReferenceOrListParam(list(references)))


# Date parameters


class ParamPrefix(Enum):
    """Comparison prefixes for ordered search values."""

    EQUAL = "eq"
    GREATERTHAN = "gt"
    GREATERTHAN_OR_EQUALS = "ge"
    LESSTHAN = "lt"
    LESSTHAN_OR_EQUALS = "le"


class TemporalPrecision(Enum):
    """Precision of a date search value."""

    YEAR = "year"
    MONTH = "month"
    DAY = "day"
    MINUTE = "minute"
    SECOND = "second"


_PREFIX_RE = re.compile(r"^(eq|gt|ge|lt|le)(?=\d)")
_YEAR_RE = re.compile(r"^\d{4}$")
_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"T\d{2}:\d{2}(:\d{2})?")
_DECODED_OFFSET_RE = re.compile(r"(T[\d:.]+) (\d{2}:\d{2})$")


@dataclass
class DateParam:
    """A date search value with prefix and precision."""

    value: datetime
    precision: TemporalPrecision
    prefix: ParamPrefix = ParamPrefix.EQUAL

    @classmethod
    def parse(
        cls, raw: str, default_prefix: ParamPrefix = ParamPrefix.EQUAL
    ) -> "DateParam":
        """Parse values like ``2020``, ``ge2020-09``, ``lt2020-09-03T10:00:00Z``.

        Raises:
            ValueError: If the value is not a FHIR date or dateTime
        """
        raw = raw.strip()
        prefix = default_prefix
        match = _PREFIX_RE.match(raw)
        if match:
            prefix = ParamPrefix(match.group(1))
            raw = raw[match.end():]

        if _YEAR_RE.match(raw):
            return cls(
                datetime(int(raw), 1, 1, tzinfo=timezone.utc),
                TemporalPrecision.YEAR,
                prefix,
            )
        if _MONTH_RE.match(raw):
            year, month = raw.split("-")
            return cls(
                datetime(int(year), int(month), 1, tzinfo=timezone.utc),
                TemporalPrecision.MONTH,
                prefix,
            )
        if _DAY_RE.match(raw):
            value = datetime.strptime(raw, "%Y-%m-%d").replace(tzinfo=timezone.utc)
            return cls(value, TemporalPrecision.DAY, prefix)

        # An unencoded "+" in a query string arrives as a space
        raw = _DECODED_OFFSET_RE.sub(r"\1+\2", raw)
        try:
            value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"Invalid date search value: {raw!r}") from exc
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)

        time_match = _TIME_RE.search(raw)
        precision = (
            TemporalPrecision.MINUTE
            if time_match and time_match.group(1) is None
            else TemporalPrecision.SECOND
        )
        return cls(value, precision, prefix)

    @property
    def period_start(self) -> datetime:
        """First instant covered by the value at its precision."""
        return self.value

    @property
    def period_end(self) -> datetime:
        """First instant after the value at its precision (exclusive)."""
        value = self.value
        if self.precision == TemporalPrecision.YEAR:
            return value.replace(year=value.year + 1)
        if self.precision == TemporalPrecision.MONTH:
            if value.month == 12:
                return value.replace(year=value.year + 1, month=1)
            return value.replace(month=value.month + 1)
        if self.precision == TemporalPrecision.DAY:
            return value + timedelta(days=1)
        if self.precision == TemporalPrecision.MINUTE:
            return value + timedelta(minutes=1)
        return value + timedelta(seconds=1)


@dataclass
class DateRangeParam:
    """A date range made of an optional lower and upper bound.

    Bounds are resolved to a half-open interval ``[lower, upper)`` of instants.
    """

    lower_bound: Optional[DateParam] = None
    upper_bound: Optional[DateParam] = None

    def set_lower_bound(self, bound: Union[str, DateParam]) -> "DateRangeParam":
        """Set the lower bound; strings without a prefix default to ``ge``."""
        if isinstance(bound, str):
            bound = DateParam.parse(bound, ParamPrefix.GREATERTHAN_OR_EQUALS)
        self.lower_bound = bound
        return self

    def set_upper_bound(self, bound: Union[str, DateParam]) -> "DateRangeParam":
        """Set the upper bound; strings without a prefix default to ``le``."""
        if isinstance(bound, str):
            bound = DateParam.parse(bound, ParamPrefix.LESSTHAN_OR_EQUALS)
        self.upper_bound = bound
        return self

    @classmethod
    def from_params(cls, params: List[DateParam]) -> "DateRangeParam":
        """Build a range from repeated date parameters.

        Raises:
            ValueError: If two parameters set the same bound
        """
        date_range = cls()
        for param in params:
            if param.prefix == ParamPrefix.EQUAL:
                if date_range.lower_bound or date_range.upper_bound:
                    raise ValueError(
                        "An eq date value cannot be combined with other bounds"
                    )
                date_range.lower_bound = param
                date_range.upper_bound = param
            elif param.prefix in (
                ParamPrefix.GREATERTHAN,
                ParamPrefix.GREATERTHAN_OR_EQUALS,
            ):
                if date_range.lower_bound:
                    raise ValueError("Only one lower bound may be specified")
                date_range.lower_bound = param
            else:
                if date_range.upper_bound:
                    raise ValueError("Only one upper bound may be specified")
                date_range.upper_bound = param
        return date_range

    def is_empty(self) -> bool:
        """Whether neither bound is set."""
        return self.lower_bound is None and self.upper_bound is None

    def lower_bound_as_instant(self) -> Optional[datetime]:
        """Inclusive lower instant, or None when unbounded."""
        if self.lower_bound is None:
            return None
        if self.lower_bound.prefix == ParamPrefix.GREATERTHAN:
            return self.lower_bound.period_end
        return self.lower_bound.period_start

    def upper_bound_as_instant(self) -> Optional[datetime]:
        """Exclusive upper instant, or None when unbounded."""
        if self.upper_bound is None:
            return None
        if self.upper_bound.prefix == ParamPrefix.LESSTHAN:
            return self.upper_bound.period_start
        return self.upper_bound.period_end
