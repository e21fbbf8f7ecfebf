"""Health check endpoints for container probes and monitoring."""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from musiclt import __version__
from musiclt.infrastructure.persistence.retry import DatabaseLockMetrics

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


class HealthStatus(BaseModel):
    """Overall health status response."""

    status: str = Field(description="healthy or unhealthy")
    timestamp: str = Field(description="ISO timestamp of health check")
    version: str = Field(default=__version__, description="Application version")
    uptime_seconds: float | None = Field(
        default=None, description="Seconds since app started"
    )
    checks: dict[str, Any] = Field(
        default_factory=dict, description="Individual component checks"
    )


# A failing database is reported in the body with 503, not raised: probes need an answer.
@router.get("", response_model=HealthStatus)
async def health_check(request: Request) -> JSONResponse:
    """Check the database connection."""
    checks: dict[str, Any] = {}

    db = getattr(request.app.state, "db", None)
    if db is None:
        checks["database"] = {"status": "error", "error": "Not initialized"}
    else:
        try:
            async with db.session_scope() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = {"status": "ok"}
        except SQLAlchemyError as e:
            logger.warning("Health check database ping failed: %s", e)
            checks["database"] = {"status": "error", "error": str(e)[:200]}

    settings = getattr(request.app.state, "settings", None)
    checks["translation"] = {
        "status": "ok"
        if settings is not None and settings.translation.api_key
        else "not_configured"
    }

    uptime = None
    startup_time = getattr(request.app.state, "startup_time", None)
    if startup_time is not None:
        uptime = (datetime.now(UTC) - startup_time).total_seconds()

    healthy = checks["database"]["status"] == "ok"
    response = HealthStatus(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(UTC).isoformat(),
        uptime_seconds=uptime,
        checks=checks,
    )
    return JSONResponse(
        content=response.model_dump(),
        status_code=status.HTTP_200_OK
        if healthy
        else status.HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.get("/db-metrics")
async def database_metrics(request: Request) -> dict[str, Any]:
    """Lock/conflict retry counters and connection pool statistics."""
    db = getattr(request.app.state, "db", None)
    return {
        "retries": DatabaseLockMetrics.get_instance().get_stats(),
        "pool": db.get_pool_stats() if db is not None else {},
    }
