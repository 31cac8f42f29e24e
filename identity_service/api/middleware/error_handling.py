# 📄 File: identity_service/api/middleware/error_handling.py
# 🧭 Purpose (Layman Explanation):
# Gives every request a tracking number, stops requests that take too long, and turns
# any unexpected crash into a tidy error message instead of a broken response.
# 🧪 Purpose (Technical Summary):
# Outermost middleware: X-Request-ID correlation (honoring an inbound header), request
# context binding for logs, the per-request deadline (504), X-Response-Time reporting,
# and conversion of unhandled exceptions into the standard JSON error envelope (500).
# 🔗 Dependencies:
# FastAPI/Starlette BaseHTTPMiddleware, asyncio, identity_service.shared.utils.logging
# 🔄 Connected Modules / Calls From:
# identity_service.main (middleware registration)

import asyncio
import logging
import time
import traceback
import uuid
from typing import Any, Dict

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from identity_service.shared.config.settings import get_settings
from identity_service.shared.utils.logging import log_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def error_body(
    code: str,
    message: str,
    details: Dict[str, Any],
    request_id: str
) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": request_id,
        }
    }


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware for the Identity API.

    Service exceptions are rendered by the application's exception handlers;
    this middleware only sees what escapes them.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.settings = get_settings()

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        with log_context(request_id=request_id):
            try:
                timeout = self.settings.request_timeout
                if timeout is None:
                    response = await call_next(request)
                else:
                    response = await asyncio.wait_for(call_next(request), timeout=timeout)

            except asyncio.TimeoutError:
                logger.error(
                    f"Request deadline exceeded: {request.method} {request.url.path} "
                    f"after {self.settings.REQUEST_TIMEOUT_SECONDS}s"
                )
                response = JSONResponse(
                    status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                    content=error_body(
                        "REQUEST_TIMEOUT",
                        "Request timeout",
                        {"timeout_seconds": self.settings.REQUEST_TIMEOUT_SECONDS},
                        request_id
                    )
                )

            except Exception as exc:
                logger.error(
                    f"Unhandled exception on {request.method} {request.url.path}: "
                    f"{type(exc).__name__}: {exc}",
                    exc_info=True
                )
                details: Dict[str, Any] = {}
                if self.settings.DEBUG and not self.settings.is_production:
                    details = {
                        "exception_type": type(exc).__name__,
                        "exception_message": str(exc),
                        "traceback": traceback.format_exc().split("\n"),
                    }
                response = JSONResponse(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    content=error_body(
                        "INTERNAL_SERVER_ERROR",
                        "An unexpected error occurred",
                        details,
                        request_id
                    )
                )

        processing_time = time.perf_counter() - start_time
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{processing_time:.3f}s"
        return response
