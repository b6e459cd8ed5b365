"""Quiz grading engine: attempt eligibility and deterministic scoring.

ATTEMPT POLICY
---------------
A student gets quiz.max_attempts numbered attempts (default 3).  Between
two attempts they must wait quiz.cooldown_hours (default 24), measured
from the completed_at of the most recent attempt.  The first attempt is
never subject to cooldown, and once the limit is reached no amount of
waiting helps.

SCORING
--------
Questions are graded in stored order against the answer at the same
index.  Each question kind has its own matching rule:

  multiple choice   exact match against the text of the option flagged
                    correct
  true/false        exact, case-sensitive match against the stored value
  short answer /    case-insensitive match after trimming whitespace
  fill in blank

A correct answer earns the question's points, anything else earns zero;
there is no partial credit.  score = round_half_up(100 * earned / total)
and passed = score >= quiz.passing_score.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from functools import singledispatch

from app.core.errors import InvalidInputError, PolicyViolationError
from app.core.rounding import percentage
from app.models.quiz import (
    GradedAnswer,
    MultipleChoiceQuestion,
    Question,
    Quiz,
    QuizAttempt,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600

REASON_MAX_ATTEMPTS = "max attempts reached"
REASON_COOLDOWN = "cooldown"


@dataclass(frozen=True, slots=True)
class AttemptEligibility:
    allowed: bool
    attempts_used: int
    attempts_remaining: int
    reason: str | None = None
    hours_remaining: int | None = None
    next_attempt_at: int | None = None

    def message(self) -> str:
        """Human-readable remediation text for a rejected attempt."""
        if self.reason == REASON_MAX_ATTEMPTS:
            return (
                f"Maximum attempts ({self.attempts_used}) reached for this quiz; "
                "no attempts remaining."
            )
        if self.reason == REASON_COOLDOWN:
            return (
                "Quiz attempt cooldown in effect. Please try again in "
                f"{self.hours_remaining} hour(s); {self.attempts_remaining} "
                "attempt(s) remaining."
            )
        return "Attempt allowed."


@dataclass(frozen=True, slots=True)
class GradeResult:
    answers: tuple[GradedAnswer, ...]
    points_earned: int
    total_points: int
    score: int
    passed: bool


def can_attempt(
    previous_attempts: Sequence[QuizAttempt],
    max_attempts: int,
    cooldown_hours: float,
    *,
    now: int,
) -> AttemptEligibility:
    used = len(previous_attempts)
    remaining = max(0, max_attempts - used)

    if used >= max_attempts:
        return AttemptEligibility(
            allowed=False,
            attempts_used=used,
            attempts_remaining=0,
            reason=REASON_MAX_ATTEMPTS,
        )

    if previous_attempts:
        latest = max(previous_attempts, key=lambda a: a.attempt_number)
        elapsed_hours = (now - latest.completed_at) / SECONDS_PER_HOUR
        if elapsed_hours < cooldown_hours:
            return AttemptEligibility(
                allowed=False,
                attempts_used=used,
                attempts_remaining=remaining,
                reason=REASON_COOLDOWN,
                hours_remaining=math.ceil(cooldown_hours - elapsed_hours),
                next_attempt_at=latest.completed_at
                + int(cooldown_hours * SECONDS_PER_HOUR),
            )

    return AttemptEligibility(
        allowed=True, attempts_used=used, attempts_remaining=remaining
    )


def ensure_can_attempt(
    previous_attempts: Sequence[QuizAttempt],
    max_attempts: int,
    cooldown_hours: float,
    *,
    now: int,
) -> AttemptEligibility:
    """can_attempt(), raising PolicyViolationError when not allowed."""
    eligibility = can_attempt(previous_attempts, max_attempts, cooldown_hours, now=now)
    if not eligibility.allowed:
        raise rejection_error(eligibility, now=now)
    return eligibility


def rejection_error(eligibility: AttemptEligibility, *, now: int) -> PolicyViolationError:
    retry_after = None
    if eligibility.next_attempt_at is not None:
        retry_after = max(0, eligibility.next_attempt_at - now)
    return PolicyViolationError(
        eligibility.message(),
        retry_after_seconds=retry_after,
        attempts_remaining=eligibility.attempts_remaining,
    )


# ---------------------------------------------------------------------------
# Answer matching, dispatched on the question class
# ---------------------------------------------------------------------------


@singledispatch
def is_correct(question: object, answer: str | None) -> bool:
    raise TypeError(f"unsupported question type: {type(question).__name__}")


@is_correct.register
def _(question: MultipleChoiceQuestion, answer: str | None) -> bool:
    correct = question.correct_option
    return correct is not None and answer == correct.text


@is_correct.register
def _(question: TrueFalseQuestion, answer: str | None) -> bool:
    return answer == question.correct_answer


@is_correct.register
def _(question: ShortAnswerQuestion, answer: str | None) -> bool:
    if answer is None:
        return False
    return answer.strip().lower() == question.correct_answer.strip().lower()


def grade_question(question: Question, answer: str | None) -> GradedAnswer:
    correct = is_correct(question, answer)
    return GradedAnswer(
        question_id=question.id,
        answer=answer,
        is_correct=correct,
        points_earned=question.points if correct else 0,
    )


def grade(quiz: Quiz, submitted_answers: Sequence[str | None]) -> GradeResult:
    if len(submitted_answers) != len(quiz.questions):
        raise InvalidInputError(
            f"Expected {len(quiz.questions)} answers, got {len(submitted_answers)}"
        )

    total_points = quiz.total_points
    if total_points <= 0:
        raise InvalidInputError("Quiz has no scored questions")

    graded = tuple(
        grade_question(question, answer)
        for question, answer in zip(quiz.questions, submitted_answers, strict=True)
    )
    earned = sum(a.points_earned for a in graded)
    score = percentage(earned, total_points)

    return GradeResult(
        answers=graded,
        points_earned=earned,
        total_points=total_points,
        score=score,
        passed=score >= quiz.passing_score,
    )


def build_attempt(
    quiz: Quiz,
    result: GradeResult,
    *,
    student_id: str,
    attempt_number: int,
    started_at: int,
    time_spent: int,
    now: int,
) -> QuizAttempt:
    """Assemble the attempt record for a graded submission.

    next_attempt_allowed_at is left unset on the final allowed attempt.
    """
    next_allowed = None
    if attempt_number < quiz.max_attempts:
        next_allowed = now + int(quiz.cooldown_hours * SECONDS_PER_HOUR)

    return QuizAttempt.new(
        quiz_id=quiz.id,
        course_id=quiz.course_id,
        student_id=student_id,
        attempt_number=attempt_number,
        answers=result.answers,
        score=result.score,
        total_points=result.total_points,
        points_earned=result.points_earned,
        passed=result.passed,
        time_spent=max(0, time_spent),
        started_at=started_at,
        completed_at=now,
        next_attempt_allowed_at=next_allowed,
    )
