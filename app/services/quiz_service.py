"""Quiz submission: eligibility, grading, persistence, progress.

One submission is:

  1. resolve the quiz and the student's enrollment in its course
  2. check the attempt policy against the stored attempts
  3. grade the answers
  4. insert the attempt as number len(previous) + 1
  5. fold the score into the enrollment and recompute progress
  6. queue the pass bonus, and the certificate if the course completed

Step 4 is where concurrent submissions meet: the attempt repo accepts
exactly one attempt per number, so two racing requests that both passed
step 2 cannot both be stored.  The loser gets a PolicyViolationError
and nothing else happens for it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from app.core.errors import NotFoundError, PolicyViolationError
from app.core.metrics import POLICY_REJECTIONS, QUIZ_ATTEMPTS
from app.models.enrollment import Enrollment
from app.models.quiz import Quiz, QuizAttempt
from app.repos.course_repo import CourseRepo
from app.repos.enrollment_repo import EnrollmentRepo
from app.repos.quiz_repo import AttemptConflictError, QuizAttemptRepo, QuizRepo
from app.services import events
from app.services.enrollment_service import on_course_completed
from app.services.progress_engine import recompute, record_quiz_result
from app.services.quiz_grading import (
    REASON_COOLDOWN,
    REASON_MAX_ATTEMPTS,
    AttemptEligibility,
    build_attempt,
    can_attempt,
    grade,
    rejection_error,
)

logger = logging.getLogger(__name__)

_RULE_LABELS = {REASON_MAX_ATTEMPTS: "max_attempts", REASON_COOLDOWN: "cooldown"}


@dataclass(frozen=True, slots=True)
class QuizSubmission:
    attempt: QuizAttempt
    enrollment: Enrollment | None
    course_completed: bool
    attempts_remaining: int


def _require_quiz(quizzes: QuizRepo, quiz_id: str) -> Quiz:
    quiz = quizzes.get(quiz_id)
    if quiz is None:
        raise NotFoundError("Quiz not found")
    return quiz


def _require_enrollment(
    enrollments: EnrollmentRepo, student_id: str, quiz: Quiz
) -> Enrollment:
    enrollment = enrollments.get(student_id, quiz.course_id)
    if enrollment is None:
        raise NotFoundError("Not enrolled in this course")
    return enrollment


def eligibility(
    quizzes: QuizRepo,
    attempts: QuizAttemptRepo,
    enrollments: EnrollmentRepo,
    *,
    student_id: str,
    quiz_id: str,
    now: int,
) -> AttemptEligibility:
    quiz = _require_quiz(quizzes, quiz_id)
    _require_enrollment(enrollments, student_id, quiz)
    previous = attempts.list_for(student_id, quiz_id)
    return can_attempt(previous, quiz.max_attempts, quiz.cooldown_hours, now=now)


def list_attempts(
    quizzes: QuizRepo,
    attempts: QuizAttemptRepo,
    *,
    student_id: str,
    quiz_id: str,
) -> list[QuizAttempt]:
    _require_quiz(quizzes, quiz_id)
    return sorted(attempts.list_for(student_id, quiz_id), key=lambda a: a.attempt_number)


async def submit_quiz(
    quizzes: QuizRepo,
    attempts: QuizAttemptRepo,
    enrollments: EnrollmentRepo,
    courses: CourseRepo,
    *,
    student_id: str,
    quiz_id: str,
    answers: Sequence[str | None],
    time_spent: int,
    now: int,
    pass_bonus_points: int,
    started_at: int | None = None,
) -> QuizSubmission:
    quiz = _require_quiz(quizzes, quiz_id)
    _require_enrollment(enrollments, student_id, quiz)

    previous = attempts.list_for(student_id, quiz_id)
    allowed = can_attempt(previous, quiz.max_attempts, quiz.cooldown_hours, now=now)
    if not allowed.allowed:
        POLICY_REJECTIONS.labels(rule=_RULE_LABELS.get(allowed.reason, "quiz_attempt")).inc()
        logger.warning(
            "Quiz attempt rejected student=%s quiz=%s reason=%s attempts_used=%d",
            student_id,
            quiz_id,
            allowed.reason,
            allowed.attempts_used,
        )
        raise rejection_error(allowed, now=now)

    result = grade(quiz, answers)
    attempt = build_attempt(
        quiz,
        result,
        student_id=student_id,
        attempt_number=len(previous) + 1,
        started_at=started_at if started_at is not None else now - max(0, time_spent),
        time_spent=time_spent,
        now=now,
    )

    try:
        attempts.add(attempt)
    except AttemptConflictError:
        POLICY_REJECTIONS.labels(rule="concurrent_attempt").inc()
        logger.warning(
            "Concurrent quiz attempt rejected student=%s quiz=%s attempt=%d",
            student_id,
            quiz_id,
            attempt.attempt_number,
        )
        raise PolicyViolationError(
            "Another attempt for this quiz was submitted at the same time; "
            "reload and check your remaining attempts."
        ) from None

    QUIZ_ATTEMPTS.labels(result="passed" if attempt.passed else "failed").inc()
    logger.info(
        "Quiz graded student=%s quiz=%s attempt=%d score=%d passed=%s",
        student_id,
        quiz_id,
        attempt.attempt_number,
        attempt.score,
        attempt.passed,
    )

    course = courses.get(quiz.course_id)
    total_lessons = course.total_lessons if course is not None else 0
    total_quizzes = course.total_quizzes if course is not None else 0

    def _apply(enrollment: Enrollment) -> Enrollment:
        recorded = record_quiz_result(enrollment, quiz_id, attempt.score, now=now)
        return recompute(recorded, total_lessons, total_quizzes, now=now)

    updated = enrollments.update(student_id, quiz.course_id, _apply)
    course_completed = False
    enrollment = None
    if updated is None:
        # Unenrolled between the check and the write; the attempt stands.
        logger.warning(
            "Enrollment vanished before progress update student=%s course=%s",
            student_id,
            quiz.course_id,
        )
    else:
        before, enrollment = updated
        course_completed = enrollment.is_completed and not before.is_completed

    if attempt.passed:
        await events.send_points_award(
            events.PointsAward(
                student_id=student_id,
                points=pass_bonus_points,
                reason="quiz_passed",
                course_id=quiz.course_id,
                ref_id=quiz_id,
            )
        )
    if course_completed and enrollment is not None:
        await on_course_completed(enrollment)

    return QuizSubmission(
        attempt=attempt,
        enrollment=enrollment,
        course_completed=course_completed,
        attempts_remaining=max(0, quiz.max_attempts - attempt.attempt_number),
    )
