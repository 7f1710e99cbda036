"""Liveness and readiness probes."""

import logging
from datetime import datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from legalhub.config import settings
from legalhub.database import engine
from legalhub.utils import cache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_database() -> str:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return "ok"


async def _check_redis() -> str:
    client = await cache.get_redis()
    await client.ping()
    return "ok"


@router.get("/health")
async def health_check():
    """Process is up; touches neither the database nor Redis."""
    return {
        "status": "ok",
        "service": "LegalHub",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check():
    """200 when the database and Redis both answer, 503 otherwise."""
    checks = {}
    for name, probe in (("database", _check_database), ("redis", _check_redis)):
        try:
            checks[name] = await probe()
        except Exception as e:
            logger.warning("Readiness check %s failed: %s", name, e)
            checks[name] = f"error: {str(e)[:100]}"

    healthy = all(result == "ok" for result in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "LegalHub",
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
