# 📄 File: identity_service/shared/infrastructure/database/session.py
#
# 🧭 Purpose (Layman Explanation):
# Gives each request its own private "conversation" with the database and makes sure
# the conversation is either saved completely or undone completely.
#
# 🧪 Purpose (Technical Summary):
# Async SQLAlchemy session factory built on AuditedSession (audit stamping + soft-delete
# filter), request-scoped transaction handling, and the FastAPI session dependency.
#
# 🔗 Dependencies:
# - sqlalchemy.ext.asyncio (AsyncSession, async_sessionmaker)
# - identity_service/shared/infrastructure/database/audit.py (AuditedSession)
# - identity_service/shared/core/exceptions.py (DatabaseError)
#
# 🔄 Connected Modules / Calls From:
# - identity_service/main.py (initialized in lifespan)
# - identity_service/modules/users/presentation/dependencies.py (repository wiring)

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import exc
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from identity_service.shared.core.exceptions import DatabaseError, IdentityServiceException

from .audit import AuditedSession

logger = logging.getLogger(__name__)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory whose sessions carry the audit and soft-delete listeners."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        sync_session_class=AuditedSession,
        expire_on_commit=False,  # Keep objects accessible after commit
        autoflush=False,         # Repositories flush explicitly, once per write
    )


class DatabaseSessionManager:
    """
    Manages database sessions with transaction handling and automatic cleanup.
    """

    def __init__(self):
        self._session_factory: Optional[async_sessionmaker] = None

    def initialize(self, engine: AsyncEngine) -> None:
        """Bind the session factory to an initialized engine."""
        self._session_factory = build_session_factory(engine)
        logger.info("Database session factory initialized successfully")

    def reset(self) -> None:
        self._session_factory = None

    def is_initialized(self) -> bool:
        return self._session_factory is not None

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async database session with automatic transaction management.

        Yields:
            AsyncSession: Database session

        Raises:
            DatabaseError: If the session manager is not initialized or the store fails
        """
        if self._session_factory is None:
            raise DatabaseError("Session manager not initialized")

        session: AsyncSession = self._session_factory()

        try:
            logger.debug("Database session created")
            yield session

            await session.commit()
            logger.debug("Database transaction committed successfully")

        except IdentityServiceException:
            await session.rollback()
            logger.debug("Transaction rolled back after service error")
            raise

        except exc.SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database error occurred, transaction rolled back: {e}")
            raise DatabaseError("Database operation failed", operation="transaction")

        except Exception as e:
            await session.rollback()
            logger.error(f"Unexpected error occurred, transaction rolled back: {e}")
            raise

        finally:
            await session.close()
            logger.debug("Database session closed")


# Global session manager instance
session_manager = DatabaseSessionManager()


# FastAPI dependency for getting database sessions
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides one transactional session per request.

    Usage:
        @router.get("/")
        async def list_users(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with session_manager.get_session() as session:
        yield session
