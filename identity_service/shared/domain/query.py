"""
Structured query specifications.

Repositories accept filters as plain data rather than code so that the
store adapter can translate them safely into SQL. Filters compose with
``&`` and ``|``::

    Filter.eq("email", email) | Filter.eq("username", username)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class Operator(str, Enum):
    """Comparison operators understood by every repository adapter."""
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    IN = "in"
    LIKE = "like"


class FilterSpec:
    """Base node of a filter tree."""

    def __and__(self, other: "FilterSpec") -> "And":
        return And((self, other))

    def __or__(self, other: "FilterSpec") -> "Or":
        return Or((self, other))


@dataclass(frozen=True)
class Filter(FilterSpec):
    """A single ``field <operator> value`` condition."""

    field: str
    operator: Operator
    value: Any

    def __post_init__(self):
        # Accept plain strings ("eq") as well as Operator members.
        object.__setattr__(self, "operator", Operator(self.operator))
        if self.operator is Operator.IN and isinstance(self.value, (str, bytes)):
            raise ValueError("'in' filters need a collection of values")

    @classmethod
    def eq(cls, field: str, value: Any) -> "Filter":
        return cls(field, Operator.EQ, value)

    @classmethod
    def ne(cls, field: str, value: Any) -> "Filter":
        return cls(field, Operator.NE, value)

    @classmethod
    def in_(cls, field: str, values: Any) -> "Filter":
        return cls(field, Operator.IN, tuple(values))


@dataclass(frozen=True)
class And(FilterSpec):
    clauses: Tuple[FilterSpec, ...]


@dataclass(frozen=True)
class Or(FilterSpec):
    clauses: Tuple[FilterSpec, ...]


def all_of(*clauses: FilterSpec) -> And:
    return And(tuple(clauses))


def any_of(*clauses: FilterSpec) -> Or:
    return Or(tuple(clauses))


__all__ = ["Operator", "FilterSpec", "Filter", "And", "Or", "all_of", "any_of"]
