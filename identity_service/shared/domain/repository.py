# 📄 File: identity_service/shared/domain/repository.py
# 🧭 Purpose (Layman Explanation):
# Defines the contract for how to save, find, update, and delete any kind of record
# without saying which database technology is used underneath.
# 🧪 Purpose (Technical Summary):
# Generic repository interface over entity types derived from BaseEntity, following
# the Repository pattern and dependency inversion principle.
# 🔗 Dependencies:
# abc, typing, BaseEntity, query specifications
# 🔄 Connected Modules / Calls From:
# Domain services, infrastructure implementations

import uuid
from abc import ABC, abstractmethod
from typing import Generic, List, Optional, Sequence, TypeVar

from .entity import SYSTEM_ACTOR, BaseEntity
from .query import FilterSpec

T = TypeVar("T", bound=BaseEntity)


class BaseRepository(ABC, Generic[T]):
    """
    Repository interface for entity data access operations.

    Implementation Notes:
    - Every read excludes soft-deleted rows; there is no way to opt out
    - Every write flushes exactly once and is audit-stamped with ``actor``
    - Writes never erase rows: ``delete`` only flips ``is_deleted``
    """

    @abstractmethod
    async def get_all(self, order_by: Optional[Sequence[str]] = None) -> List[T]:
        """
        Get all live entities.

        Args:
            order_by: Field names, ``-`` prefix for descending order

        Returns:
            List of entities (possibly empty)
        """

    @abstractmethod
    async def get_by_id(self, entity_id: uuid.UUID) -> T:
        """
        Get a live entity by ID.

        Raises:
            NotFoundError: If no live entity has this id
        """

    @abstractmethod
    async def get(
        self,
        spec: FilterSpec,
        order_by: Optional[Sequence[str]] = None
    ) -> List[T]:
        """
        Get all live entities matching a filter specification.

        Raises:
            BadRequestError: If the specification names unknown fields
        """

    @abstractmethod
    async def add(self, entity: T, actor: str = SYSTEM_ACTOR) -> T:
        """
        Persist a new entity.

        Returns:
            The stored entity with audit fields populated

        Raises:
            ConflictError: If the store rejects it as a duplicate
        """

    @abstractmethod
    async def update(self, entity: T, actor: str = SYSTEM_ACTOR) -> T:
        """
        Mark an entity as modified and persist it (last write wins).

        Raises:
            NotFoundError: If the entity does not exist or was deleted
            ConflictError: If the change violates a uniqueness constraint
        """

    @abstractmethod
    async def delete(self, entity: T, actor: str = SYSTEM_ACTOR) -> None:
        """
        Soft delete an entity. Deleting twice is not an error.
        """
