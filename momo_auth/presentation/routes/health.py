import logging

import psycopg
from fastapi import APIRouter, HTTPException, status
from psycopg_pool import PoolTimeout
from redis.exceptions import RedisError

from momo_auth.infrastructure.db.pool import ping_postgres
from momo_auth.infrastructure.redis_cache.pool import ping_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/healthz")
async def healthz() -> dict:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz() -> dict:
    """Both backing stores must answer: Redis holds codes and sessions, Postgres holds users."""
    try:
        await ping_redis()
    except RedisError as e:
        logger.warning("readiness: redis check failed", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="redis unavailable"
        )
    try:
        await ping_postgres()
    except (psycopg.Error, PoolTimeout) as e:
        logger.warning("readiness: postgres check failed", extra={"error": str(e)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="database unavailable",
        )
    return {"status": "ready"}
