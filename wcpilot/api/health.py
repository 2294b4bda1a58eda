"""
wcpilot/api/health.py

Purpose: Service info and orchestration probes

- /        basic info
- /health  database check, 503 unless healthy
- /ready   readiness (database reachable)
- /live    liveness (process up)
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import time

from wcpilot.core.config import settings
from wcpilot.core.logging import get_logger
from wcpilot.db.mongo import check_database_health

logger = get_logger(__name__)
router = APIRouter()

VERSION = "1.0.0"


@router.get("/")
async def root():
    return {
        "name": "WCPilot API",
        "version": VERSION,
        "description": "Multi-tenant WhatsApp instance management",
        "environment": settings.ENVIRONMENT,
    }


@router.get("/health")
async def health_check():
    database = "healthy" if await check_database_health() else "unhealthy"
    status = "healthy" if database == "healthy" else "degraded"

    return JSONResponse(
        status_code=200 if status == "healthy" else 503,
        content={
            "status": status,
            "timestamp": time.time(),
            "environment": settings.ENVIRONMENT,
            "version": VERSION,
            "checks": {
                "database": database,
                # Credentials are per tenant, so there is no shared provider probe
                "provider": "not_checked",
            },
        },
    )


@router.get("/ready")
async def readiness_check():
    if await check_database_health():
        return {"status": "ready"}
    return JSONResponse(status_code=503, content={"status": "not_ready", "reason": "database_unavailable"})


@router.get("/live")
async def liveness_check():
    return {"status": "alive"}
