"""Health and readiness endpoints.

  /health (liveness):  "Is this process alive?"  A failure makes the
                       orchestrator restart the container, so it stays
                       200 and reports degradation in the body.
  /ready (readiness):  "Should traffic come here right now?"  A 503
                       only takes the instance out of rotation.

Redis is optional (cache and task queue fall back to memory), so an
unreachable Redis degrades /health without failing /ready.  The
``queues`` section shows how many collaborator commands are waiting
for the worker, which is the first thing to look at when students
report missing points or certificates.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from app.db.engine import ping_database
from app.db.redis import redis_pool
from app.services.events import CERTIFICATE_QUEUE, PROFILE_POINTS_QUEUE
from app.services.task_queue import task_queue

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    """Liveness probe plus dependency and queue status."""
    checks: dict[str, str] = {}
    overall = "ok"

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            checks["redis"] = "degraded"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    database = await ping_database()
    if database is None:
        checks["database"] = "not_configured"
    elif database:
        checks["database"] = "ok"
    else:
        checks["database"] = "degraded"
        overall = "degraded"

    queues: dict[str, int | None] = {}
    for name in (PROFILE_POINTS_QUEUE, CERTIFICATE_QUEUE):
        try:
            queues[name] = await task_queue.queue_length(name)
        except Exception:
            queues[name] = None
            overall = "degraded"

    return {"status": overall, "checks": checks, "queues": queues}


@router.get("/ready")
async def ready() -> Response:
    """Readiness probe.

    A configured database that does not answer makes the instance not
    ready.  No database at all means in-memory mode, which is always
    ready.
    """
    if await ping_database() is False:
        return Response(status_code=503)
    return Response(status_code=200)
