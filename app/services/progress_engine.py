"""Progress engine: completion percentage and the completion transition.

Pure functions over Enrollment records.  Each takes the current record
and returns an updated copy; persistence and locking belong to the
caller (see app/services/enrollment_service.py), which runs
record-then-recompute as one atomic update per (student, course).

PROGRESS FORMULA
-----------------
    overall_progress = round_half_up(100 * completed / total)
    completed = completed lessons + quizzes with a recorded result
    total     = lessons in the course + quizzes in the course

Totals are passed in rather than looked up, so the engine never talks
to course authoring and tests can use synthetic counts.  A course with
no items has progress 0.

COMPLETION IS ONE-WAY
----------------------
The first recompute that reaches 100 sets is_completed, completed_at,
certificate_issued, certificate_issued_at and mints certificate_id.
Nothing ever clears them: a later recompute with different counts may
move overall_progress, but never below its previous value and never
un-completes the enrollment.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from app.core.rounding import clamp, percentage
from app.models.enrollment import CompletedLesson, Enrollment, QuizSummary

logger = logging.getLogger(__name__)


def generate_certificate_id(student_id: str, course_id: str, issued_at: int) -> str:
    """CERT-<student suffix>-<course suffix>-<issuance time>."""
    return (
        f"CERT-{student_id[-6:].upper()}-{course_id[-6:].upper()}-{issued_at}"
    )


def record_lesson_completion(
    enrollment: Enrollment,
    lesson_id: str,
    time_spent_seconds: int,
    *,
    now: int,
) -> Enrollment:
    """Append a completed lesson.  A lesson already in the set is a no-op.

    The caller recomputes progress afterwards with the course totals.
    """
    if enrollment.has_completed_lesson(lesson_id):
        return enrollment

    time_spent = max(0, time_spent_seconds)
    return replace(
        enrollment,
        completed_lessons=enrollment.completed_lessons
        + (CompletedLesson(lesson_id=lesson_id, completed_at=now, time_spent=time_spent),),
        total_time_spent=enrollment.total_time_spent + time_spent,
        current_lesson_id=lesson_id,
        last_accessed_at=now,
    )


def record_quiz_result(
    enrollment: Enrollment,
    quiz_id: str,
    score: int,
    *,
    now: int,
) -> Enrollment:
    """Keep the best score seen for a quiz and count the attempt."""
    existing = enrollment.quiz_summary(quiz_id)
    if existing is None:
        summaries = enrollment.completed_quizzes + (
            QuizSummary(quiz_id=quiz_id, best_score=score, attempts=1, last_attempt_at=now),
        )
    else:
        updated = replace(
            existing,
            best_score=max(existing.best_score, score),
            attempts=existing.attempts + 1,
            last_attempt_at=now,
        )
        summaries = tuple(
            updated if s.quiz_id == quiz_id else s for s in enrollment.completed_quizzes
        )

    return replace(enrollment, completed_quizzes=summaries, last_accessed_at=now)


def recompute(
    enrollment: Enrollment,
    total_lesson_count: int,
    total_quiz_count: int,
    *,
    now: int,
) -> Enrollment:
    """Derive overall_progress and flip the completion flags at 100%.

    Never raises.  Negative totals count as zero.
    """
    total = max(0, total_lesson_count) + max(0, total_quiz_count)
    progress = clamp(percentage(enrollment.completed_count, total))

    # Progress never moves backwards, even if the course grew.
    progress = max(progress, enrollment.overall_progress)
    if enrollment.is_completed:
        progress = 100

    updated = replace(enrollment, overall_progress=progress)

    if progress == 100 and not enrollment.is_completed:
        certificate_id = enrollment.certificate_id or generate_certificate_id(
            enrollment.student_id, enrollment.course_id, now
        )
        updated = replace(
            updated,
            is_completed=True,
            completed_at=now,
            certificate_issued=True,
            certificate_issued_at=now,
            certificate_id=certificate_id,
        )
        logger.info(
            "Course completed student=%s course=%s certificate=%s",
            enrollment.student_id,
            enrollment.course_id,
            certificate_id,
        )

    return updated
