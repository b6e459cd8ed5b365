"""Assignment grading engine: lateness, late penalty, adjusted score.

    days_late      = ceil((submitted_at - due_date) / 1 day), 0 if on time
    late_penalty   = min(100, late_penalty_per_day * days_late)
    adjusted_score = round_half_up(raw_score * (100 - late_penalty) / 100)

A submission more than max_late_days late is refused outright.

Submission lifecycle:

    submitted -> graded -> returned
         ^         |          |
         |         v          v
         +-- resubmission_requested

Only a submission in resubmission_requested may be overwritten by the
same student; the overwritten content is kept in ``resubmissions``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from fractions import Fraction

from app.core.errors import InvalidInputError, PolicyViolationError
from app.core.rounding import round_half_up
from app.models.assignment import (
    Assignment,
    AssignmentSubmission,
    PreviousSubmission,
    SubmissionStatus,
    SubmittedFile,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

_GRADABLE = frozenset(
    {SubmissionStatus.SUBMITTED, SubmissionStatus.GRADED, SubmissionStatus.RETURNED}
)


@dataclass(frozen=True, slots=True)
class Lateness:
    is_late: bool
    days_late: int


def evaluate_lateness(submitted_at: int, due_date: int, max_late_days: int) -> Lateness:
    is_late = submitted_at > due_date
    days_late = math.ceil((submitted_at - due_date) / SECONDS_PER_DAY) if is_late else 0
    if days_late > max_late_days:
        raise PolicyViolationError(
            f"Assignment is too late ({days_late} days). Maximum late submission "
            f"period is {max_late_days} days."
        )
    return Lateness(is_late=is_late, days_late=days_late)


def compute_late_penalty(days_late: int, penalty_per_day: int) -> int:
    if days_late <= 0:
        return 0
    return min(100, penalty_per_day * days_late)


def adjusted_score(raw_score: float, penalty: int) -> int:
    return round_half_up(Fraction(raw_score) * (100 - penalty) / 100)


def accept_submission(
    existing: AssignmentSubmission | None,
    assignment: Assignment,
    *,
    student_id: str,
    text_content: str | None,
    files: tuple[SubmittedFile, ...],
    now: int,
) -> AssignmentSubmission:
    """Validate and build a (re)submission for one student and assignment."""
    if existing is not None and existing.status != SubmissionStatus.RESUBMISSION_REQUESTED:
        raise InvalidInputError("Assignment already submitted")

    lateness = evaluate_lateness(now, assignment.due_date, assignment.max_late_days)
    penalty = compute_late_penalty(lateness.days_late, assignment.late_penalty_per_day)

    if existing is None:
        return AssignmentSubmission.new(
            assignment_id=assignment.id,
            course_id=assignment.course_id,
            student_id=student_id,
            submitted_at=now,
            text_content=text_content,
            files=files,
            is_late=lateness.is_late,
            days_late=lateness.days_late,
            late_penalty=penalty,
        )

    # Overwrite in place, keeping the identity and the history.
    history = existing.resubmissions + (
        PreviousSubmission(
            submitted_at=existing.submitted_at,
            text_content=existing.text_content,
            files=existing.files,
        ),
    )
    return replace(
        existing,
        submitted_at=now,
        text_content=text_content,
        files=files,
        is_late=lateness.is_late,
        days_late=lateness.days_late,
        late_penalty=penalty,
        status=SubmissionStatus.SUBMITTED,
        raw_score=None,
        adjusted_score=None,
        feedback=None,
        graded_by=None,
        graded_at=None,
        resubmissions=history,
    )


def grade_submission(
    submission: AssignmentSubmission,
    raw_score: float,
    *,
    grader_id: str,
    feedback: str | None = None,
    now: int,
) -> AssignmentSubmission:
    if not 0 <= raw_score <= 100:
        raise InvalidInputError("Score must be between 0 and 100")
    if submission.status not in _GRADABLE:
        raise PolicyViolationError(
            f"Submission awaiting resubmission cannot be graded (status={submission.status.value})"
        )

    return replace(
        submission,
        raw_score=raw_score,
        adjusted_score=adjusted_score(raw_score, submission.late_penalty),
        feedback=feedback,
        graded_by=grader_id,
        graded_at=now,
        status=SubmissionStatus.GRADED,
    )


def request_resubmission(submission: AssignmentSubmission) -> AssignmentSubmission:
    if submission.status == SubmissionStatus.RESUBMISSION_REQUESTED:
        return submission
    return replace(submission, status=SubmissionStatus.RESUBMISSION_REQUESTED)


def return_submission(submission: AssignmentSubmission) -> AssignmentSubmission:
    if submission.status == SubmissionStatus.RETURNED:
        return submission
    if submission.status != SubmissionStatus.GRADED:
        raise PolicyViolationError("Only graded submissions can be returned")
    return replace(submission, status=SubmissionStatus.RETURNED)
