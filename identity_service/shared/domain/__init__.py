"""Domain building blocks shared by every module: entity base, repository contract, filters."""

from .entity import ANONYMOUS_ACTOR, SYSTEM_ACTOR, BaseEntity
from .query import And, Filter, FilterSpec, Operator, Or, all_of, any_of
from .repository import BaseRepository

__all__ = [
    "ANONYMOUS_ACTOR",
    "SYSTEM_ACTOR",
    "BaseEntity",
    "BaseRepository",
    "FilterSpec",
    "Filter",
    "Operator",
    "And",
    "Or",
    "all_of",
    "any_of",
]
