# 📄 File: identity_service/shared/infrastructure/database/repository.py
# 🧭 Purpose (Layman Explanation):
# The piece that actually talks to the database for any kind of record: finding,
# saving, changing, and "deleting" (hiding) rows on behalf of the business logic.
# 🧪 Purpose (Technical Summary):
# SQLAlchemy async implementation of BaseRepository. Translates FilterSpec trees into
# WHERE clauses against mapped columns, binds the audit actor around a single flush per
# write, and maps store errors onto the service exception taxonomy.
# 🔗 Dependencies:
# SQLAlchemy (AsyncSession, select, and_/or_), audit.py, shared domain and exceptions
# 🔄 Connected Modules / Calls From:
# Module repository implementations (e.g. UserRepositoryImpl), tests

import logging
import uuid
from typing import Any, List, Optional, Sequence, Type

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import attributes

from identity_service.shared.core.exceptions import (
    BadRequestError,
    ConflictError,
    DatabaseError,
    NotFoundError,
)
from identity_service.shared.domain.entity import SYSTEM_ACTOR
from identity_service.shared.domain.query import And, Filter, FilterSpec, Operator, Or
from identity_service.shared.domain.repository import BaseRepository, T

from .audit import audit_actor

logger = logging.getLogger(__name__)


class SQLAlchemyRepository(BaseRepository[T]):
    """
    Generic repository over a mapped BaseEntity subtype.

    The session is owned by the caller (request scope); this class flushes
    but never commits.
    """

    def __init__(self, session: AsyncSession, model: Type[T]):
        self._session = session
        self._model = model

    @property
    def resource_type(self) -> str:
        return self._model.__name__.removesuffix("Model")

    # ============================================================================
    # FILTER TRANSLATION
    # ============================================================================

    def _column(self, name: str):
        columns = self._model.__mapper__.columns
        if name not in columns:
            raise BadRequestError(f"Unknown filter field '{name}'", field=name)
        return getattr(self._model, columns[name].key)

    def _to_clause(self, spec: FilterSpec):
        if isinstance(spec, And):
            return and_(*(self._to_clause(clause) for clause in spec.clauses))
        if isinstance(spec, Or):
            return or_(*(self._to_clause(clause) for clause in spec.clauses))
        if not isinstance(spec, Filter):
            raise BadRequestError(f"Unsupported filter node: {type(spec).__name__}")

        column = self._column(spec.field)
        value: Any = spec.value
        op = spec.operator

        if op is Operator.EQ:
            return column.is_(None) if value is None else column == value
        if op is Operator.NE:
            return column.is_not(None) if value is None else column != value
        if op is Operator.LT:
            return column < value
        if op is Operator.LE:
            return column <= value
        if op is Operator.GT:
            return column > value
        if op is Operator.GE:
            return column >= value
        if op is Operator.IN:
            return column.in_(list(value))
        if op is Operator.LIKE:
            return column.like(value)

        raise BadRequestError(f"Unsupported operator '{op}'", field=spec.field)

    def _apply_order(self, stmt: Select, order_by: Optional[Sequence[str]]) -> Select:
        for name in order_by or ():
            descending = name.startswith("-")
            column = self._column(name.lstrip("-"))
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        return stmt

    # ============================================================================
    # READS
    # ============================================================================

    async def _fetch(self, stmt: Select) -> List[T]:
        try:
            result = await self._session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error querying {self.resource_type}: {e}")
            raise DatabaseError(f"Failed to query {self.resource_type}", operation="select")

    async def _find(self, entity_id: uuid.UUID) -> Optional[T]:
        rows = await self._fetch(select(self._model).where(self._model.id == entity_id))
        return rows[0] if rows else None

    async def get_all(self, order_by: Optional[Sequence[str]] = None) -> List[T]:
        stmt = self._apply_order(select(self._model), order_by)
        return await self._fetch(stmt)

    async def get_by_id(self, entity_id: uuid.UUID) -> T:
        entity = await self._find(entity_id)
        if entity is None:
            logger.debug(f"{self.resource_type} not found: {entity_id}")
            raise NotFoundError(
                f"{self.resource_type} not found",
                resource_type=self.resource_type,
                resource_id=str(entity_id)
            )
        return entity

    async def get(self, spec: FilterSpec, order_by: Optional[Sequence[str]] = None) -> List[T]:
        stmt = self._apply_order(select(self._model).where(self._to_clause(spec)), order_by)
        return await self._fetch(stmt)

    # ============================================================================
    # WRITES
    # ============================================================================

    async def _flush(self, actor: str, operation: str) -> None:
        try:
            with audit_actor(self._session.sync_session, actor):
                await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            logger.warning(f"Integrity violation during {self.resource_type} {operation}: {e.orig}")
            raise ConflictError(
                f"{self.resource_type} conflicts with an existing record",
                resource_type=self.resource_type
            )
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error(f"Error during {self.resource_type} {operation}: {e}")
            raise DatabaseError(f"Failed to {operation} {self.resource_type}", operation=operation)

    async def add(self, entity: T, actor: str = SYSTEM_ACTOR) -> T:
        if entity.id is None:
            entity.id = uuid.uuid4()
        self._session.add(entity)
        await self._flush(actor, "insert")
        logger.info(f"{self.resource_type} created: {entity.id} by {actor}")
        return entity

    async def update(self, entity: T, actor: str = SYSTEM_ACTOR) -> T:
        current = await self._find(entity.id)
        if current is None:
            raise NotFoundError(
                f"{self.resource_type} not found",
                resource_type=self.resource_type,
                resource_id=str(entity.id)
            )

        if current is not entity:
            entity = await self._session.merge(entity)

        # Updates are unconditional: every call produces a modification stamp.
        attributes.flag_dirty(entity)
        await self._flush(actor, "update")
        logger.info(f"{self.resource_type} updated: {entity.id} by {actor}")
        return entity

    async def delete(self, entity: T, actor: str = SYSTEM_ACTOR) -> None:
        current = await self._find(entity.id)
        if current is None:
            logger.debug(f"{self.resource_type} {entity.id} already deleted or missing")
            return

        current.is_deleted = True
        attributes.flag_dirty(current)
        await self._flush(actor, "delete")
        logger.info(f"{self.resource_type} soft-deleted: {current.id} by {actor}")
