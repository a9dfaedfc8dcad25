"""Liveness and readiness endpoints.

  /health  is the process alive?  Always 200; ``status`` says whether a
           dependency is impaired ("ok" or "degraded").
  /ready   can this instance serve traffic?  503 when the configured
           table store cannot be reached.

An unreachable Redis only degrades /health.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response
from sqlalchemy import text

from institute.db.engine import engine
from institute.db.redis import redis_pool
from institute.repos.backends import table_store
from institute.repos.table_store import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except Exception:
        logger.exception("Redis health check failed")
        return "degraded"
    return "ok"


async def _check_database() -> str:
    if engine is not None:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Database health check failed")
            return "degraded"
        return "ok"
    try:
        await table_store.select("site_settings", {"key": "home_content"})
    except StoreError:
        logger.exception("Table store health check failed")
        return "degraded"
    return "ok"


@router.get("/health")
async def health() -> dict:
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    if await _check_database() != "ok":
        return Response(status_code=503)
    return Response(status_code=200)
