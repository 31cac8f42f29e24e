# 📄 File: identity_service/shared/utils/logging.py

# 🧭 Purpose (Layman Explanation):
# Sets up how the service writes its diary: either machine-readable JSON lines or plain
# text, with every line tagged with the request and the user it belongs to.

# 🧪 Purpose (Technical Summary):
# Structured logging with python-json-logger, request context propagation through
# contextvars, and a logging filter that injects request_id/user_id into every record.

# 🔗 Dependencies:
# - python-json-logger: JSON log formatting
# - logging: Python standard logging
# - contextvars: Request context tracking

# 🔄 Connected Modules / Calls From:
# identity_service.main (setup at startup), API middleware (request context binding),
# dependencies (authenticated user binding)

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from pythonjsonlogger.json import JsonFormatter

from identity_service.shared.config.settings import get_settings

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")

SERVICE_NAME = "identity-service"

_logging_configured = False


class RequestContextFilter(logging.Filter):
    """Attach the current request id, user id and service name to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.user_id = user_id_var.get()
        record.service = SERVICE_NAME
        return True


class JSONFormatter(JsonFormatter):
    """JSON lines with stable key names for log aggregation."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        # Empty context values are noise in JSON output.
        for key in ("request_id", "user_id"):
            if not log_record.get(key):
                log_record.pop(key, None)


TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
JSON_FORMAT = "%(asctime)s %(message)s %(request_id)s %(user_id)s %(service)s"


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure the root logger once per process.

    Args:
        log_level: Overrides LOG_LEVEL from settings
        log_format: ``json`` or ``text``; overrides LOG_FORMAT from settings
    """
    global _logging_configured

    if _logging_configured:
        return

    settings = get_settings()
    log_level = log_level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format.lower() == "json":
        formatter: logging.Formatter = JSONFormatter(JSON_FORMAT)
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)
    handler.addFilter(RequestContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    # Engine echo is controlled by DB_ECHO, not by the root level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)

    _logging_configured = True
    logging.getLogger(__name__).debug(f"Logging configured ({log_format}, {log_level})")


@contextmanager
def log_context(request_id: Optional[str] = None, user_id: Optional[str] = None) -> Iterator[None]:
    """
    Bind request context for every log record emitted inside the block.

    Usage:
        with log_context(request_id="abc"):
            logger.info("handled")
    """
    tokens = []
    if request_id is not None:
        tokens.append((request_id_var, request_id_var.set(request_id)))
    if user_id is not None:
        tokens.append((user_id_var, user_id_var.set(user_id)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def bind_user(user_id: str) -> None:
    """Tag the rest of the current request's log records with ``user_id``."""
    user_id_var.set(user_id)


def get_request_id() -> str:
    return request_id_var.get()
