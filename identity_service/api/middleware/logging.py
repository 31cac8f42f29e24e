# 📄 File: identity_service/api/middleware/logging.py
# 🧭 Purpose (Layman Explanation):
# Writes one line in the service's diary for every request: what was asked, what the
# answer was, and how long it took, without ever writing down passwords or tokens.
# 🧪 Purpose (Technical Summary):
# Request logging middleware emitting one structured record per request (method, path,
# status, duration) with sensitive headers and query parameters redacted.
# 🔗 Dependencies:
# FastAPI/Starlette BaseHTTPMiddleware, logging
# 🔄 Connected Modules / Calls From:
# identity_service.main (middleware registration)

import logging
import time
from typing import Any, Dict, Mapping

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware for API monitoring.

    Runs inside ErrorHandlingMiddleware, so the request id is already
    bound to the logging context when this middleware logs.
    """

    def __init__(self, app: ASGIApp, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

        # Sensitive headers that should not be logged
        self.sensitive_headers = {
            "authorization",
            "cookie",
            "x-api-key",
            "x-auth-token",
        }

        # Sensitive query parameters
        self.sensitive_params = {
            "password",
            "token",
            "secret",
        }

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        request_data = {
            "method": request.method,
            "path": request.url.path,
            "query_params": self._redact(request.query_params, self.sensitive_params),
            "headers": self._redact(request.headers, self.sensitive_headers),
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.debug(f"Request started: {request.method} {request.url.path}", extra=request_data)

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.error(
                f"Request failed: {request.method} {request.url.path} - "
                f"{type(e).__name__} - {duration_ms}ms",
                extra={"method": request.method, "path": request.url.path, "duration_ms": duration_ms}
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        level = logging.INFO
        if response.status_code >= 500:
            level = logging.ERROR
        elif duration_ms / 1000 > self.slow_request_threshold:
            level = logging.WARNING

        logger.log(
            level,
            f"{request.method} {request.url.path} - {response.status_code} - {duration_ms}ms",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
        )
        return response

    @staticmethod
    def _redact(values: Mapping[str, str], sensitive: set) -> Dict[str, Any]:
        return {
            key: REDACTED if key.lower() in sensitive else value
            for key, value in values.items()
        }
