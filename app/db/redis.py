"""Redis connection management.

Mirrors engine.py: when REDIS_URL is configured a connection pool is
created at import time; when it is not, redis_pool is None and every
consumer falls back to an in-memory implementation.

What lives in Redis here is disposable or in flight:
  - cached progress views (cache:progress:...), rebuilt on a miss
  - queued collaborator commands (tasks:profile_points,
    tasks:certificate_issuance), drained by the worker

Nothing the grading rules depend on is read from Redis.

One pool is shared by all requests; each command borrows a connection
and returns it, so concurrent handlers do not queue behind each other
on the Python side.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from app.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,  # str, not bytes
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for Redis, mirrors lifespan_db().

    Verifies the connection on startup and closes the pool on shutdown.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured, cache and task queue are in-memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]  # redis stubs mistype async ping as bool
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    except Exception:
        logger.exception("Redis connection failed on startup")
        # Start anyway; /health reports redis as degraded.
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
