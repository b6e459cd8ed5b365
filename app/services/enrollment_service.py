"""Enrollment lifecycle and lesson completion.

    Unenrolled -> Enrolled -> (InProgress) -> Completed

enroll() and unenroll() are the only ways in and out.  Completed is
reached only through the progress engine's recompute() and is never
left.  Every mutation of an enrollment runs as one repo.update() call,
so "is this lesson already done?" and the recompute that follows see
the same record.

Profile points and certificate commands are queued after the record is
stored, never before: a rejected request sends nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.errors import NotFoundError, PolicyViolationError
from app.core.metrics import COURSE_COMPLETIONS, LESSON_COMPLETIONS, POLICY_REJECTIONS
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.repos.course_repo import CourseRepo
from app.repos.enrollment_repo import CourseFullError, EnrollmentExistsError, EnrollmentRepo
from app.services import events
from app.services.progress_engine import recompute, record_lesson_completion

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LessonCompletion:
    enrollment: Enrollment
    newly_completed: bool  # False on an idempotent repeat
    course_completed: bool  # True only on the transition itself


def _require_course(courses: CourseRepo, course_id: str) -> Course:
    course = courses.get(course_id)
    if course is None:
        raise NotFoundError("Course not found")
    return course


def get_enrollment(
    enrollments: EnrollmentRepo, *, student_id: str, course_id: str
) -> Enrollment:
    enrollment = enrollments.get(student_id, course_id)
    if enrollment is None:
        raise NotFoundError("Not enrolled in this course")
    return enrollment


def list_enrollments(enrollments: EnrollmentRepo, *, student_id: str) -> list[Enrollment]:
    """All of a student's enrollments, most recently accessed first."""
    return sorted(
        enrollments.list_by_student(student_id),
        key=lambda e: e.last_accessed_at,
        reverse=True,
    )


def enroll(
    enrollments: EnrollmentRepo,
    courses: CourseRepo,
    *,
    student_id: str,
    course_id: str,
    now: int,
) -> Enrollment:
    course = _require_course(courses, course_id)
    if not course.is_published:
        POLICY_REJECTIONS.labels(rule="course_unpublished").inc()
        logger.warning("Enroll rejected: course=%s not published", course_id)
        raise PolicyViolationError("Course is not available for enrollment")

    enrollment = Enrollment.new(student_id=student_id, course_id=course_id, enrolled_at=now)
    try:
        enrollments.add(enrollment, capacity=course.max_students)
    except EnrollmentExistsError:
        POLICY_REJECTIONS.labels(rule="already_enrolled").inc()
        logger.warning("Enroll rejected: student=%s already in course=%s", student_id, course_id)
        raise PolicyViolationError("Already enrolled in this course") from None
    except CourseFullError:
        POLICY_REJECTIONS.labels(rule="course_full").inc()
        logger.warning(
            "Enroll rejected: course=%s full (max_students=%d)",
            course_id,
            course.max_students,
        )
        raise PolicyViolationError("Course is full") from None

    logger.info("Enrolled student=%s course=%s", student_id, course_id)
    return enrollment


def unenroll(
    enrollments: EnrollmentRepo,
    *,
    student_id: str,
    course_id: str,
    progress_limit: int,
) -> Enrollment:
    """Delete the enrollment while overall_progress is below progress_limit."""

    def _guard(enrollment: Enrollment) -> None:
        if enrollment.overall_progress >= progress_limit:
            POLICY_REJECTIONS.labels(rule="unenroll_limit").inc()
            logger.warning(
                "Unenroll rejected: student=%s course=%s progress=%d limit=%d",
                student_id,
                course_id,
                enrollment.overall_progress,
                progress_limit,
            )
            raise PolicyViolationError(
                f"Cannot unenroll after completing {progress_limit}% of the course"
            )

    removed = enrollments.remove(student_id, course_id, guard=_guard)
    if removed is None:
        raise NotFoundError("Not enrolled in this course")

    logger.info(
        "Unenrolled student=%s course=%s progress=%d",
        student_id,
        course_id,
        removed.overall_progress,
    )
    return removed


async def complete_lesson(
    enrollments: EnrollmentRepo,
    courses: CourseRepo,
    *,
    student_id: str,
    course_id: str,
    lesson_id: str,
    time_spent: int,
    now: int,
    lesson_points: int,
) -> LessonCompletion:
    course = _require_course(courses, course_id)
    if not course.has_lesson(lesson_id):
        raise NotFoundError("Lesson not found in this course")

    def _apply(enrollment: Enrollment) -> Enrollment:
        recorded = record_lesson_completion(enrollment, lesson_id, time_spent, now=now)
        if recorded is enrollment:
            return enrollment
        return recompute(recorded, course.total_lessons, course.total_quizzes, now=now)

    result = enrollments.update(student_id, course_id, _apply)
    if result is None:
        raise NotFoundError("Not enrolled in this course")
    before, after = result

    newly_completed = after is not before
    course_completed = after.is_completed and not before.is_completed
    LESSON_COMPLETIONS.labels(outcome="recorded" if newly_completed else "duplicate").inc()

    if not newly_completed:
        logger.debug(
            "Lesson already completed student=%s lesson=%s", student_id, lesson_id
        )
        return LessonCompletion(after, newly_completed=False, course_completed=False)

    logger.info(
        "Lesson completed student=%s course=%s lesson=%s progress=%d",
        student_id,
        course_id,
        lesson_id,
        after.overall_progress,
    )
    await events.send_points_award(
        events.PointsAward(
            student_id=student_id,
            points=lesson_points,
            reason="lesson_completed",
            course_id=course_id,
            ref_id=lesson_id,
        )
    )
    if course_completed:
        await on_course_completed(after)

    return LessonCompletion(after, newly_completed=True, course_completed=course_completed)


async def on_course_completed(enrollment: Enrollment) -> None:
    """Side effects of the one-way completion transition."""
    COURSE_COMPLETIONS.inc()
    await events.announce_certificate(enrollment)


def verify_certificate(enrollments: EnrollmentRepo, certificate_id: str) -> Enrollment:
    enrollment = enrollments.get_by_certificate_id(certificate_id)
    if enrollment is None or not enrollment.certificate_issued:
        raise NotFoundError("Certificate not found")
    return enrollment


def list_certificates(enrollments: EnrollmentRepo, *, student_id: str) -> list[Enrollment]:
    return sorted(
        (e for e in enrollments.list_by_student(student_id) if e.certificate_issued),
        key=lambda e: e.certificate_issued_at or 0,
        reverse=True,
    )
