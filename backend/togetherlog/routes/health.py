"""
TogetherLog Backend - Health Check Route
=========================================

What:  GET /health for container and load balancer health checks.
How:   Runs `SELECT 1` against the pool. The geocoding provider is not
       called: Nominatim's usage policy counts every request, and a health
       check every few seconds would eat into the one-per-second budget.

Status levels:
    - healthy:  database reachable
    - degraded: database unreachable (workers and CRUD will fail with 500)
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from togetherlog import __version__
from togetherlog.database import engine
from togetherlog.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "degraded"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
