"""Outbound commands to external collaborators.

Two collaborators sit outside this service:

  user profile store     owns point totals; receives increment commands
                         (lesson completed, quiz passed)
  certificate renderer   turns a completed enrollment's certificate_id
                         into a document

Neither is called inline.  Each command goes onto a task queue and the
worker process (app/worker.py) delivers it.  The API path stays fast,
and the grading functions never mutate a shared counter themselves:
they only describe the increment.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass

from app.core.metrics import COLLABORATOR_COMMANDS
from app.models.enrollment import Enrollment
from app.services.task_queue import Task, task_queue

logger = logging.getLogger(__name__)

PROFILE_POINTS_QUEUE = "profile_points"
CERTIFICATE_QUEUE = "certificate_issuance"


@dataclass(frozen=True, slots=True)
class PointsAward:
    """Increment command for the user profile store."""

    student_id: str
    points: int
    reason: str  # lesson_completed|quiz_passed
    course_id: str | None = None
    ref_id: str | None = None  # lesson or quiz id


async def send_points_award(award: PointsAward) -> Task | None:
    if award.points <= 0:
        return None
    task = await task_queue.enqueue(PROFILE_POINTS_QUEUE, asdict(award))
    COLLABORATOR_COMMANDS.labels(queue_name=PROFILE_POINTS_QUEUE).inc()
    logger.info(
        "Queued points award student=%s points=%d reason=%s task=%s",
        award.student_id,
        award.points,
        award.reason,
        task.id,
    )
    return task


async def announce_certificate(enrollment: Enrollment) -> Task:
    task = await task_queue.enqueue(
        CERTIFICATE_QUEUE,
        {
            "student_id": enrollment.student_id,
            "course_id": enrollment.course_id,
            "certificate_id": enrollment.certificate_id,
            "issued_at": enrollment.certificate_issued_at,
        },
    )
    COLLABORATOR_COMMANDS.labels(queue_name=CERTIFICATE_QUEUE).inc()
    logger.info(
        "Queued certificate issuance certificate=%s student=%s course=%s",
        enrollment.certificate_id,
        enrollment.student_id,
        enrollment.course_id,
    )
    return task
