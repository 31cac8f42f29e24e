from .audit import AuditedSession, audit_actor
from .connection import DatabaseConnectionManager, close_database, db_manager, init_database
from .repository import SQLAlchemyRepository
from .session import DatabaseSessionManager, build_session_factory, get_db_session, session_manager

__all__ = [
    "AuditedSession",
    "audit_actor",
    "DatabaseConnectionManager",
    "DatabaseSessionManager",
    "SQLAlchemyRepository",
    "build_session_factory",
    "close_database",
    "db_manager",
    "get_db_session",
    "init_database",
    "session_manager",
]
