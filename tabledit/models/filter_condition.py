from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Filter condition model for the paged table view."""

__all__ = [
    "FilterCondition",
    "FilterOperator",
]


class FilterOperator(Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    LIKE = "like"
    NOT_LIKE = "not_like"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"

    @property
    def takes_value(self) -> bool:
        return self not in (FilterOperator.IS_NULL, FilterOperator.IS_NOT_NULL)


@dataclass(frozen=True)
class FilterCondition:
    """User-entered filter: column name is untrusted input until validated."""
    column: str
    operator: FilterOperator
    value: str = ""
