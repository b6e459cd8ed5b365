"""Background worker: delivers queued commands to external collaborators.

RUN:  python -m app.worker

Same image as the API, different command:
  api:    uvicorn app.main:app --host 0.0.0.0 --port 8000
  worker: python -m app.worker

Queues (filled by app/services/events.py):

  profile_points         {"student_id", "points", "reason", "course_id", "ref_id"}
  certificate_issuance   {"student_id", "course_id", "certificate_id", "issued_at"}

The loop polls each queue in turn, hands one task at a time to its
handler, and logs the outcome.  A failing handler is logged with its
task id and payload and the loop moves on; the API never waits for it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from app.core.config import SETTINGS
from app.core.logging import setup_logging
from app.services.events import CERTIFICATE_QUEUE, PROFILE_POINTS_QUEUE
from app.services.task_queue import task_queue

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("worker")


# ---------------------------------------------------------------------------
# Handler registry
# ---------------------------------------------------------------------------

HANDLERS: dict[str, TaskHandler] = {}


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


# ---------------------------------------------------------------------------
# Task handlers
# ---------------------------------------------------------------------------


@register_handler(PROFILE_POINTS_QUEUE)
async def handle_profile_points(payload: dict) -> None:
    """Apply a points increment to the student's profile.

    The profile store owns the running total; this command only says
    how much to add and why.
    """
    points = payload.get("points")
    if not isinstance(points, int) or points <= 0:
        raise ValueError(f"invalid points increment: {points!r}")
    logger.info(
        "Profile points +%d student=%s reason=%s course=%s ref=%s",
        points,
        payload.get("student_id"),
        payload.get("reason"),
        payload.get("course_id"),
        payload.get("ref_id"),
    )


@register_handler(CERTIFICATE_QUEUE)
async def handle_certificate_issuance(payload: dict) -> None:
    """Hand a completed enrollment's certificate to the renderer.

    The certificate id is already fixed on the enrollment record; the
    renderer only turns it into a document.
    """
    certificate_id = payload.get("certificate_id")
    if not certificate_id:
        raise ValueError("certificate command without certificate_id")
    logger.info(
        "Certificate ready for rendering certificate=%s student=%s course=%s issued_at=%s",
        certificate_id,
        payload.get("student_id"),
        payload.get("course_id"),
        payload.get("issued_at"),
    )


# ---------------------------------------------------------------------------
# Main worker loop
# ---------------------------------------------------------------------------


async def process_next(queue_name: str, *, timeout: int = 1) -> bool:
    """Run at most one task from queue_name.  Returns False if it was empty."""
    task = await task_queue.dequeue(queue_name, timeout=timeout)
    if task is None:
        return False

    handler = HANDLERS[queue_name]
    try:
        await handler(task.payload)
        logger.info("Task %s on [%s] completed", task.id, queue_name)
    except Exception:
        # No dead-letter queue yet; the payload in the log is the record.
        logger.exception(
            "Task %s on [%s] failed payload=%s", task.id, queue_name, task.payload
        )
    return True


async def run_worker() -> None:
    """Poll all registered queues and dispatch tasks to handlers."""
    queues = list(HANDLERS.keys())
    logger.info("Worker started, listening on queues: %s", queues)

    while True:
        for queue_name in queues:
            await process_next(queue_name)


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
