"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health -- liveness plus a Redis ping (locks and
notifications stop working without it)
"""

import logging

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from redis.exceptions import RedisError

from driver_onboarding.api.dependencies import get_redis_client
from driver_onboarding.api.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(client: aioredis.Redis = Depends(get_redis_client)):
    try:
        redis_ok = bool(await client.ping())
    except (RedisError, OSError) as exc:
        logger.warning("Health check: Redis unreachable: %s", exc)
        redis_ok = False
    return HealthResponse(status="ok" if redis_ok else "degraded", redis=redis_ok)
