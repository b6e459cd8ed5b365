"""Blended course grades, computed on every request and never stored.

  GET /v1/courses/{course_id}/grade                        caller's own grade
  GET /v1/courses/{course_id}/grades                       gradebook (instructor, admin)
  GET /v1/courses/{course_id}/students/{student_id}/grade  one student (instructor, admin)
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.access import check_course_staff
from app.api.dependencies import require_staff, require_user
from app.core.errors import NotFoundError
from app.middleware.request_context import bind_log_fields
from app.models.principal import Principal
from app.repos.registry import (
    course_repo,
    enrollment_repo,
    forum_activity_repo,
    quiz_attempt_repo,
    submission_repo,
)
from app.services import grade_service
from app.services.grade_aggregator import CourseGrade

router = APIRouter(prefix="/v1/courses", tags=["grades"])


class CourseGradeOut(BaseModel):
    student_id: str
    course_id: str
    quiz_average: float
    assignment_average: float
    participation_score: int
    final_grade: int
    quizzes_counted: int
    assignments_counted: int


class GradebookRowOut(CourseGradeOut):
    overall_progress: int
    is_completed: bool


def _check_course_staff(principal: Principal, course_id: str) -> None:
    course = course_repo.get(course_id)
    if course is None:
        raise NotFoundError("Course not found")
    check_course_staff(principal, course)


def _grade_out(student_id: str, course_id: str, grade: CourseGrade) -> CourseGradeOut:
    return CourseGradeOut(
        student_id=student_id,
        course_id=course_id,
        quiz_average=grade.quiz_average,
        assignment_average=grade.assignment_average,
        participation_score=grade.participation_score,
        final_grade=grade.final_grade,
        quizzes_counted=grade.quizzes_counted,
        assignments_counted=grade.assignments_counted,
    )


@router.get("/{course_id}/grade", response_model=CourseGradeOut)
def get_my_grade(
    course_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> CourseGradeOut:
    bind_log_fields(course_id=course_id)
    grade = grade_service.enrolled_student_grade(
        enrollment_repo,
        quiz_attempt_repo,
        submission_repo,
        forum_activity_repo,
        student_id=principal.user_id,
        course_id=course_id,
    )
    return _grade_out(principal.user_id, course_id, grade)


@router.get("/{course_id}/grades", response_model=list[GradebookRowOut])
def get_gradebook(
    course_id: str,
    principal: Annotated[Principal, Depends(require_staff)],
) -> list[GradebookRowOut]:
    bind_log_fields(course_id=course_id)
    _check_course_staff(principal, course_id)
    rows = grade_service.course_gradebook(
        course_repo,
        enrollment_repo,
        quiz_attempt_repo,
        submission_repo,
        forum_activity_repo,
        course_id=course_id,
    )
    return [
        GradebookRowOut(
            **_grade_out(enrollment.student_id, course_id, grade).model_dump(),
            overall_progress=enrollment.overall_progress,
            is_completed=enrollment.is_completed,
        )
        for enrollment, grade in rows
    ]


@router.get("/{course_id}/students/{student_id}/grade", response_model=CourseGradeOut)
def get_student_grade(
    course_id: str,
    student_id: str,
    principal: Annotated[Principal, Depends(require_staff)],
) -> CourseGradeOut:
    bind_log_fields(course_id=course_id)
    _check_course_staff(principal, course_id)
    grade = grade_service.enrolled_student_grade(
        enrollment_repo,
        quiz_attempt_repo,
        submission_repo,
        forum_activity_repo,
        student_id=student_id,
        course_id=course_id,
    )
    return _grade_out(student_id, course_id, grade)
