"""Health & Readiness Probes.

Invariants:
    - GET /health/ always returns 200 if the process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable (readiness)
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from formulary.api.dependencies import get_runtime
from formulary.runtime import Runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {"status": "healthy", "service": "formulary-api"}


@router.get("/ready")
async def readiness_check(runtime: Runtime = Depends(get_runtime)):
    """Readiness probe — database connectivity plus watcher state."""
    if not await runtime.db.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    if runtime.watcher is None:
        watcher = "disabled"
    else:
        watcher = "running" if runtime.watcher.running else "stopped"
    return {
        "status": "ready",
        "checks": {"database": "healthy", "watcher": watcher},
    }
