"""Aggregated health check endpoint.

Reports database connectivity and overall application readiness.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


def _check_database() -> dict[str, str]:
    """Check database connectivity via SELECT 1."""
    try:
        from sqlalchemy import text

        from custodia.infra.persistence.database import get_database_manager

        engine = get_database_manager().get_sync_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as exc:
        logger.warning("health_check: database unhealthy: %s", type(exc).__name__)
        return {"status": "error", "detail": type(exc).__name__}


@router.get("/healthz")
async def healthz() -> Any:
    """Aggregated health check endpoint.

    Returns HTTP 200 when all subsystems are healthy, HTTP 503 otherwise.
    """
    checks: dict[str, dict[str, str]] = {
        "database": await run_in_threadpool(_check_database),
    }

    all_ok = all(c["status"] == "ok" for c in checks.values())
    result = {
        "status": "ok" if all_ok else "degraded",
        "checks": checks,
    }
    return JSONResponse(content=result, status_code=200 if all_ok else 503)
