"""
Health check endpoints for monitoring and orchestration.

- /health: Basic liveness check (always returns 200)
- /health/db: Database connectivity check
- /health/ready: Readiness check (all dependencies healthy)
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from castbooking.api.deps import AsyncSessionLocal
from castbooking.config import Settings, get_settings
from castbooking.infrastructure.circuit_breaker import stripe_breaker

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "castbooking-api"


async def _database_healthy(settings: Settings) -> bool | None:
    """None when the app runs on in-memory storage."""
    if settings.use_in_memory:
        return None
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
        return True
    except Exception as e:
        logger.error("Database health check failed", exc_info=e)
        return False


@router.get("/health")
async def health_check():
    """Basic liveness check."""
    return {"status": "ok", "service": SERVICE_NAME}


@router.get("/health/db")
async def health_check_db(settings: Settings = Depends(get_settings)):
    """
    Database connectivity health check.

    Returns 503 Service Unavailable if the database is down.
    """
    healthy = await _database_healthy(settings)
    if healthy is None:
        return {"status": "healthy", "component": "database", "mode": "in_memory"}
    if healthy:
        return {"status": "healthy", "component": "database"}
    return JSONResponse(
        status_code=503,
        content={
            "status": "unhealthy",
            "component": "database",
            "error": "Database connection failed",
        },
    )


@router.get("/health/ready")
async def health_check_ready(settings: Settings = Depends(get_settings)):
    """
    Readiness check.

    Fails on an unreachable database. An open Stripe circuit is reported
    but does not fail readiness, since reservations without payment still work.
    """
    health_status = {"status": "ready", "checks": {}}

    healthy = await _database_healthy(settings)
    health_status["checks"]["database"] = (
        "in_memory" if healthy is None else "healthy" if healthy else "unhealthy"
    )
    health_status["checks"]["stripe_circuit"] = stripe_breaker.current_state

    if healthy is False:
        health_status["status"] = "not_ready"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
