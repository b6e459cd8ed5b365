"""Enrollment and lesson completion endpoints.

  POST   /v1/courses/{course_id}/enroll                          -> 201
  DELETE /v1/courses/{course_id}/enroll                          -> 200
  POST   /v1/courses/{course_id}/lessons/{lesson_id}/complete    -> 200

Each write invalidates the student's cached progress views afterwards
(see app/services/cache.py).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.api.dependencies import Now, require_student
from app.api.schemas import EnrollmentOut, enrollment_out
from app.core.config import SETTINGS
from app.middleware.request_context import bind_log_fields
from app.models.principal import Principal
from app.repos.registry import course_repo, enrollment_repo
from app.services import enrollment_service
from app.services.cache import invalidate_progress

router = APIRouter(prefix="/v1/courses", tags=["enrollments"])


class LessonCompleteIn(BaseModel):
    time_spent: int = Field(default=0, ge=0, description="seconds spent on the lesson")


class LessonCompleteOut(BaseModel):
    enrollment: EnrollmentOut
    newly_completed: bool
    course_completed: bool
    points_awarded: int


@router.post(
    "/{course_id}/enroll",
    response_model=EnrollmentOut,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_course(
    course_id: str,
    principal: Annotated[Principal, Depends(require_student)],
    now: Now,
) -> EnrollmentOut:
    bind_log_fields(course_id=course_id)
    enrollment = enrollment_service.enroll(
        enrollment_repo,
        course_repo,
        student_id=principal.user_id,
        course_id=course_id,
        now=now,
    )
    await invalidate_progress(principal.user_id)
    return enrollment_out(enrollment)


@router.delete("/{course_id}/enroll", response_model=EnrollmentOut)
async def unenroll_from_course(
    course_id: str,
    principal: Annotated[Principal, Depends(require_student)],
) -> EnrollmentOut:
    bind_log_fields(course_id=course_id)
    removed = enrollment_service.unenroll(
        enrollment_repo,
        student_id=principal.user_id,
        course_id=course_id,
        progress_limit=SETTINGS.policy.unenroll_progress_limit,
    )
    await invalidate_progress(principal.user_id)
    return enrollment_out(removed)


@router.post(
    "/{course_id}/lessons/{lesson_id}/complete",
    response_model=LessonCompleteOut,
)
async def complete_lesson(
    course_id: str,
    lesson_id: str,
    principal: Annotated[Principal, Depends(require_student)],
    now: Now,
    body: LessonCompleteIn | None = None,
) -> LessonCompleteOut:
    bind_log_fields(course_id=course_id)
    lesson_points = SETTINGS.policy.lesson_completion_points
    result = await enrollment_service.complete_lesson(
        enrollment_repo,
        course_repo,
        student_id=principal.user_id,
        course_id=course_id,
        lesson_id=lesson_id,
        time_spent=body.time_spent if body is not None else 0,
        now=now,
        lesson_points=lesson_points,
    )
    if result.newly_completed:
        await invalidate_progress(principal.user_id)
    return LessonCompleteOut(
        enrollment=enrollment_out(result.enrollment),
        newly_completed=result.newly_completed,
        course_completed=result.course_completed,
        points_awarded=lesson_points if result.newly_completed else 0,
    )
