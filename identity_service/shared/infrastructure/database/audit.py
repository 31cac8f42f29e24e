# 📄 File: identity_service/shared/infrastructure/database/audit.py
# 🧭 Purpose (Layman Explanation):
# Quietly writes down who created or changed each record and when, every time
# something is saved, and hides "deleted" records from every normal lookup.
# 🧪 Purpose (Technical Summary):
# SQLAlchemy session event listeners attached to AuditedSession: a before_flush hook
# stamping audit fields on BaseEntity instances in the pending changeset, and a
# do_orm_execute hook adding a soft-delete loader criteria to every ORM SELECT.
# 🔗 Dependencies:
# SQLAlchemy ORM events, with_loader_criteria, BaseEntity
# 🔄 Connected Modules / Calls From:
# session.py (session factory), repository.py (actor binding around flushes)

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import event, inspect
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria

from identity_service.shared.core.exceptions import BadRequestError
from identity_service.shared.domain.entity import SYSTEM_ACTOR, BaseEntity

logger = logging.getLogger(__name__)

ACTOR_INFO_KEY = "audit_actor"


class AuditedSession(Session):
    """
    Session class used behind every AsyncSession of the service.

    Audit stamping and the soft-delete read filter are attached to this
    class, so any session created by the session factory carries them.
    """


@contextmanager
def audit_actor(session: Session, actor: str) -> Iterator[None]:
    """Bind the acting principal to ``session`` for the duration of one flush."""
    previous = session.info.get(ACTOR_INFO_KEY)
    session.info[ACTOR_INFO_KEY] = actor
    try:
        yield
    finally:
        if previous is None:
            session.info.pop(ACTOR_INFO_KEY, None)
        else:
            session.info[ACTOR_INFO_KEY] = previous


def current_actor(session: Session) -> str:
    return session.info.get(ACTOR_INFO_KEY) or SYSTEM_ACTOR


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@event.listens_for(AuditedSession, "before_flush")
def stamp_audit_fields(session: Session, flush_context, instances) -> None:
    """Stamp creation metadata on new entities and modification metadata on dirty ones."""
    actor = current_actor(session)
    now = _utcnow()

    for entity in session.new:
        if isinstance(entity, BaseEntity):
            entity.created_at = now
            entity.created_by = actor

    for entity in session.dirty:
        if not isinstance(entity, BaseEntity):
            continue

        state = inspect(entity)
        if state.attrs.id.history.deleted:
            raise BadRequestError("Entity id is immutable", field="id")

        # Creation stamps are written once; undo any later overwrite.
        for name in ("created_at", "created_by"):
            original = state.attrs[name].history.deleted
            if original:
                setattr(entity, name, original[0])

        entity.modified_at = now
        entity.modified_by = actor

    logger.debug(
        f"Audit stamps applied by {actor}: "
        f"{len(session.new)} new, {len(session.dirty)} modified"
    )


@event.listens_for(AuditedSession, "do_orm_execute")
def exclude_soft_deleted(execute_state: ORMExecuteState) -> None:
    """Restrict every ORM read of a BaseEntity subtype to ``is_deleted = false``."""
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.is_relationship_load
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                BaseEntity,
                lambda cls: cls.is_deleted.is_(False),
                include_aliases=True,
            )
        )
