# 📄 File: identity_service/shared/config/database.py
#
# 🧭 Purpose (Layman Explanation):
# Describes how the Identity service talks to its database: which tables share
# a common base and how connections are opened for SQLite or PostgreSQL.
#
# 🧪 Purpose (Technical Summary):
# SQLAlchemy declarative base with a constraint naming convention, plus
# environment-specific engine keyword arguments (pooling, driver timeouts).
#
# 🔗 Dependencies:
# - SQLAlchemy (DeclarativeBase, MetaData, pool classes)
# - identity_service.shared.config.settings
#
# 🔄 Connected Modules / Calls From:
# - identity_service.shared.infrastructure.database.connection
# - identity_service.modules.users.infrastructure.database.models

from typing import Any, Dict

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from .settings import Settings


# =============================================================================
# DATABASE MODELS BASE CLASS
# =============================================================================

# Naming convention for database constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=convention)


class DatabaseBase(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Provides shared metadata so every table of the Identity service
    is created and named consistently.
    """
    metadata = metadata


# =============================================================================
# ENGINE CONFIGURATION
# =============================================================================

def build_engine_kwargs(settings: Settings) -> Dict[str, Any]:
    """
    Get SQLAlchemy engine configuration based on the configured store.

    SQLite runs without a pool so that connections are never shared across
    event loops; PostgreSQL gets a bounded pool and a statement timeout.
    """
    base_config: Dict[str, Any] = {
        "echo": settings.DB_ECHO,
    }

    if settings.is_sqlite:
        base_config.update({
            "poolclass": NullPool,
            "connect_args": {"timeout": settings.DB_STATEMENT_TIMEOUT_SECONDS},
        })
        return base_config

    base_config.update({
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
        "connect_args": {
            "command_timeout": settings.DB_STATEMENT_TIMEOUT_SECONDS,
            "server_settings": {
                "application_name": f"identity_service_{settings.ENVIRONMENT}",
                "statement_timeout": str(int(settings.DB_STATEMENT_TIMEOUT_SECONDS * 1000)),
            },
        },
    })
    return base_config
