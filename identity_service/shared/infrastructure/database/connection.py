# 📄 File: identity_service/shared/infrastructure/database/connection.py
# 🧭 Purpose (Layman Explanation):
# Opens and closes the service's connection to its database, checks the database is
# reachable at startup, and creates the tables when they don't exist yet.
# 🧪 Purpose (Technical Summary):
# Async SQLAlchemy engine lifecycle manager with a startup health check using the
# configured retry policy, metadata-driven schema creation, and disposal.
# 🔗 Dependencies:
# SQLAlchemy asyncio, identity_service.shared.config (settings, engine kwargs, DatabaseBase)
# 🔄 Connected Modules / Calls From:
# identity_service.main (lifespan), session.py (session factory), health endpoint

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from identity_service.shared.config.database import DatabaseBase, build_engine_kwargs
from identity_service.shared.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class DatabaseConnectionManager:
    """
    Manages the async database engine with health monitoring and
    bounded startup retries.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._health_check_query = text("SELECT 1")

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database engine not initialized")
        return self._engine

    def is_initialized(self) -> bool:
        return self._engine is not None

    async def initialize(self) -> None:
        """Create the engine and verify the store is reachable."""
        if self._engine is not None:
            logger.warning("Database engine already initialized")
            return

        settings = self.settings
        logger.info("Initializing database engine...")
        self._engine = create_async_engine(settings.DATABASE_URL, **build_engine_kwargs(settings))

        status = await self.health_check(retries=settings.DB_CONNECT_RETRY_ATTEMPTS)
        if status["status"] != "healthy":
            await self.dispose()
            raise ConnectionError(f"Database unreachable: {status.get('error')}")

        if settings.AUTO_CREATE_SCHEMA:
            await self.create_schema()

        logger.info(f"Database engine initialized ({self._engine.url.render_as_string(hide_password=True)})")

    async def create_schema(self) -> None:
        """Create all tables known to DatabaseBase.metadata that are missing."""
        # Models must be imported so their tables are registered on the metadata.
        from identity_service.modules.users.infrastructure.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(DatabaseBase.metadata.create_all)
        logger.info("Database schema ensured")

    async def health_check(self, retries: int = 1) -> Dict[str, Any]:
        """
        Perform database health check and return structured status.

        Args:
            retries: Attempts before reporting unhealthy (backoff doubles each time)
        """
        if self._engine is None:
            return {
                "status": "unhealthy",
                "error": "Database engine not initialized",
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

        attempts = max(retries, 1)
        last_error = None
        for attempt in range(attempts):
            try:
                async with self._engine.connect() as conn:
                    result = await conn.execute(self._health_check_query)
                    result.scalar()

                logger.debug("Database health check passed")
                return {
                    "status": "healthy",
                    "timestamp": datetime.now(timezone.utc).isoformat()
                }

            except Exception as e:
                last_error = str(e)
                logger.warning(
                    f"Database health check failed (attempt {attempt + 1}/{attempts}): {e}"
                )
                if attempt < attempts - 1:
                    await asyncio.sleep(self.settings.DB_CONNECT_RETRY_DELAY * (2 ** attempt))

        logger.error("Database health check failed after all retry attempts")
        return {
            "status": "unhealthy",
            "error": last_error,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    async def dispose(self) -> None:
        """Close the engine and its pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info("Database engine disposed")


# Global connection manager instance
db_manager = DatabaseConnectionManager()


async def init_database() -> None:
    await db_manager.initialize()


async def close_database() -> None:
    await db_manager.dispose()


def get_database_engine() -> AsyncEngine:
    return db_manager.engine
