# 📄 File: identity_service/api/health.py
# 🧭 Purpose (Layman Explanation):
# A quick "are you alive?" page that also checks whether the database answers.
# 🧪 Purpose (Technical Summary):
# Health check endpoint reporting store connectivity (SELECT 1) for load balancers
# and monitoring; 503 when the store is unreachable.
# 🔗 Dependencies:
# FastAPI, identity_service.shared.infrastructure.database.connection
# 🔄 Connected Modules / Calls From:
# identity_service.main (router inclusion), monitoring systems, load balancers

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from identity_service.shared.config.settings import get_settings
from identity_service.shared.infrastructure.database.connection import db_manager

logger = logging.getLogger(__name__)

# Create router for health endpoints
health_router = APIRouter()


@health_router.get(
    "/health",
    summary="Health Check",
    description="Service and database health for load balancers and monitoring",
    tags=["Health Check"]
)
async def health_check() -> JSONResponse:
    database = await db_manager.health_check()
    healthy = database["status"] == "healthy"
    if not healthy:
        logger.warning(f"Health check reports unhealthy database: {database.get('error')}")

    settings = get_settings()
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "identity-service",
            "version": settings.APP_VERSION,
            "components": {"database": database},
        }
    )
