# 📄 File: identity_service/main.py
#
# 🧭 Purpose (Layman Explanation):
# Starts the Identity service: connects to the database, switches on logging and the
# safety nets, and plugs in the user account endpoints.
#
# 🧪 Purpose (Technical Summary):
# FastAPI application factory with lifespan-managed engine and session factory,
# middleware stack, exception handlers rendering the standard error envelope, router
# registration, and a uvicorn entry point.
#
# 🔗 Dependencies:
# - FastAPI framework, uvicorn
# - identity_service.shared.config.settings
# - identity_service.shared.infrastructure.database (connection, session)
# - identity_service.modules.users.presentation.api (users router)
#
# 🔄 Connected Modules / Calls From:
# - uvicorn server startup
# - `identity-service` console script
# - tests (TestClient)

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from identity_service.api.health import health_router
from identity_service.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from identity_service.api.middleware.error_handling import error_body
from identity_service.modules.users.presentation.api import users_router
from identity_service.shared.config.settings import get_settings
from identity_service.shared.core.exceptions import IdentityServiceException
from identity_service.shared.infrastructure.database.connection import (
    close_database,
    db_manager,
    init_database,
)
from identity_service.shared.infrastructure.database.session import session_manager
from identity_service.shared.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Opens the database engine (with the startup connectivity check and optional
    schema creation) and binds the session factory; disposes both on shutdown.
    """
    setup_logging()
    logger.info("Identity service starting up...")

    await init_database()
    session_manager.initialize(db_manager.engine)
    logger.info("Identity service startup complete")

    try:
        yield
    finally:
        logger.info("Identity service shutting down...")
        session_manager.reset()
        await close_database()
        logger.info("Identity service shutdown complete")


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


def create_application() -> FastAPI:
    """
    Application factory function.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
        debug=settings.DEBUG,
    )

    # =========================================================================
    # MIDDLEWARE CONFIGURATION
    # =========================================================================

    # Last added runs outermost.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time", "Location"],
    )
    app.add_middleware(ErrorHandlingMiddleware)

    # =========================================================================
    # ROUTER REGISTRATION
    # =========================================================================

    app.include_router(health_router)
    app.include_router(users_router, prefix="/api/users", tags=["Users"])

    # =========================================================================
    # EXCEPTION HANDLERS
    # =========================================================================

    @app.exception_handler(IdentityServiceException)
    async def identity_exception_handler(
        request: Request,
        exc: IdentityServiceException
    ) -> JSONResponse:
        """Render service exceptions with their own status code."""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.error_code, exc.message, exc.details, _request_id(request)),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies, paths and queries are reported as 400."""
        logger.info(f"Request validation failed on {request.method} {request.url.path}")
        errors = [
            {"loc": error.get("loc"), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                {"errors": jsonable_encoder(errors)},
                _request_id(request)
            ),
        )

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "health_check": "/health",
            "api_base": "/api/users",
        }

    return app


def main():
    """
    Run the application with uvicorn.

    Used by the ``identity-service`` console script and ``python -m identity_service.main``.
    """
    settings = get_settings()
    uvicorn.run(
        "identity_service.main:create_application",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD and settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
        workers=1 if settings.RELOAD else settings.WORKERS,
    )


if __name__ == "__main__":
    main()
