"""Quiz attempt endpoints.

  GET  /v1/quizzes/{quiz_id}/eligibility   may I attempt now?
  POST /v1/quizzes/{quiz_id}/attempts      submit answers, get graded
  GET  /v1/quizzes/{quiz_id}/attempts      my attempt history

A refused attempt comes back as 409 with kind=policy_violation, the
remediation text in ``detail``, ``attempts_remaining``, and a
Retry-After header while a cooldown is running.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.api.dependencies import Now, require_student, require_user
from app.core.config import SETTINGS
from app.middleware.request_context import bind_log_fields
from app.models.principal import Principal
from app.models.quiz import QuizAttempt
from app.repos.registry import course_repo, enrollment_repo, quiz_attempt_repo, quiz_repo
from app.services import quiz_service
from app.services.cache import invalidate_progress

router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])


class QuizAttemptIn(BaseModel):
    # One entry per question, in the quiz's question order; null = unanswered.
    answers: list[str | None]
    time_spent: int = Field(default=0, ge=0)
    started_at: int | None = None


class GradedAnswerOut(BaseModel):
    question_id: str
    answer: str | None
    is_correct: bool
    points_earned: int


class QuizAttemptOut(BaseModel):
    id: str
    quiz_id: str
    attempt_number: int
    score: int
    passed: bool
    points_earned: int
    total_points: int
    time_spent: int
    started_at: int
    completed_at: int
    next_attempt_allowed_at: int | None
    answers: list[GradedAnswerOut]


class QuizSubmissionOut(BaseModel):
    attempt: QuizAttemptOut
    attempts_remaining: int
    overall_progress: int | None
    course_completed: bool
    points_awarded: int


class EligibilityOut(BaseModel):
    allowed: bool
    attempts_used: int
    attempts_remaining: int
    reason: str | None
    hours_remaining: int | None
    next_attempt_at: int | None
    message: str


def _attempt_out(attempt: QuizAttempt) -> QuizAttemptOut:
    return QuizAttemptOut(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        attempt_number=attempt.attempt_number,
        score=attempt.score,
        passed=attempt.passed,
        points_earned=attempt.points_earned,
        total_points=attempt.total_points,
        time_spent=attempt.time_spent,
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
        next_attempt_allowed_at=attempt.next_attempt_allowed_at,
        answers=[
            GradedAnswerOut(
                question_id=a.question_id,
                answer=a.answer,
                is_correct=a.is_correct,
                points_earned=a.points_earned,
            )
            for a in attempt.answers
        ],
    )


@router.get("/{quiz_id}/eligibility", response_model=EligibilityOut)
def get_eligibility(
    quiz_id: str,
    principal: Annotated[Principal, Depends(require_user)],
    now: Now,
) -> EligibilityOut:
    eligibility = quiz_service.eligibility(
        quiz_repo,
        quiz_attempt_repo,
        enrollment_repo,
        student_id=principal.user_id,
        quiz_id=quiz_id,
        now=now,
    )
    return EligibilityOut(
        allowed=eligibility.allowed,
        attempts_used=eligibility.attempts_used,
        attempts_remaining=eligibility.attempts_remaining,
        reason=eligibility.reason,
        hours_remaining=eligibility.hours_remaining,
        next_attempt_at=eligibility.next_attempt_at,
        message=eligibility.message(),
    )


@router.post(
    "/{quiz_id}/attempts",
    response_model=QuizSubmissionOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_attempt(
    quiz_id: str,
    body: QuizAttemptIn,
    principal: Annotated[Principal, Depends(require_student)],
    now: Now,
) -> QuizSubmissionOut:
    pass_bonus = SETTINGS.policy.quiz_pass_bonus_points
    result = await quiz_service.submit_quiz(
        quiz_repo,
        quiz_attempt_repo,
        enrollment_repo,
        course_repo,
        student_id=principal.user_id,
        quiz_id=quiz_id,
        answers=body.answers,
        time_spent=body.time_spent,
        started_at=body.started_at,
        now=now,
        pass_bonus_points=pass_bonus,
    )
    bind_log_fields(course_id=result.attempt.course_id)
    await invalidate_progress(principal.user_id)

    return QuizSubmissionOut(
        attempt=_attempt_out(result.attempt),
        attempts_remaining=result.attempts_remaining,
        overall_progress=(
            result.enrollment.overall_progress if result.enrollment is not None else None
        ),
        course_completed=result.course_completed,
        points_awarded=pass_bonus if result.attempt.passed else 0,
    )


@router.get("/{quiz_id}/attempts", response_model=list[QuizAttemptOut])
def list_attempts(
    quiz_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> list[QuizAttemptOut]:
    attempts = quiz_service.list_attempts(
        quiz_repo, quiz_attempt_repo, student_id=principal.user_id, quiz_id=quiz_id
    )
    return [_attempt_out(a) for a in attempts]
