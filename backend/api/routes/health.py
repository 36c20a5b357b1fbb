"""Health check endpoints.

Provides:
- Liveness probe (/health)
- Dependency check (/health/ready)
"""

import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
import structlog

from app.config import get_settings

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_start_time = time.monotonic()
_start_datetime = datetime.now(timezone.utc).isoformat()


@router.get("", response_model=dict[str, Any])
async def health() -> dict[str, Any]:
    """
    Liveness probe.
    """
    settings = get_settings()
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "ok",
        "started_at": _start_datetime,
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
    }


@router.get("/ready", response_model=dict[str, Any])
async def readiness():
    """
    Readiness probe. Pings the database when the SQL store is in use;
    returns 503 if it is unreachable.
    """
    checks: dict[str, str] = {}

    if get_settings().uses_sql_store:
        try:
            from db.database import engine

            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            checks["database"] = "unavailable"

    healthy = all(v == "ok" for v in checks.values())
    body = {"status": "ok" if healthy else "degraded", "checks": checks}
    return body if healthy else JSONResponse(status_code=503, content=body)
