"""Search parameter map passed from services to DAOs."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple


@dataclass
class PropertyParam:
    """A search value together with the property or chain it applies to."""

    property_name: Optional[str]
    param: Any


@dataclass
class SearchParameterMap:
    """Search parameters keyed by handler name.

    Services fill the map with whatever parameters the caller supplied; absent
    or empty parameters are simply not added, so the DAO never sees them.
    """

    params: Dict[str, List[PropertyParam]] = field(default_factory=dict)

    def add_parameter(
        self, key: str, param: Any, property_name: Optional[str] = None
    ) -> "SearchParameterMap":
        """Add a parameter under ``key``; ``None`` and empty params are ignored."""
        if param is None or _is_empty(param):
            return self
        self.params.setdefault(key, []).append(PropertyParam(property_name, param))
        return self

    def get_parameters(self, key: str) -> List[PropertyParam]:
        """All parameters registered under ``key``."""
        return list(self.params.get(key, []))

    def items(self) -> Iterator[Tuple[str, List[PropertyParam]]]:
        """Iterate over ``(key, parameters)`` pairs."""
        return iter(self.params.items())

    def __contains__(self, key: str) -> bool:
        return key in self.params

    def __len__(self) -> int:
        return sum(len(v) for v in self.params.values())


def _is_empty(param: Any) -> bool:
    if hasattr(param, "is_empty"):
        return bool(param.is_empty())
    values = getattr(param, "values", None)
    return isinstance(values, list) and not values
