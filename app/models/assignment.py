from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import uuid4


class SubmissionStatus(str, Enum):
    SUBMITTED = "submitted"
    GRADED = "graded"
    RETURNED = "returned"
    RESUBMISSION_REQUESTED = "resubmission_requested"


@dataclass(frozen=True, slots=True)
class Assignment:
    """Assignment definition, owned by course authoring and read-only here."""

    id: str
    course_id: str
    title: str
    due_date: int
    max_points: int = 100
    late_penalty_per_day: int = 10  # percent per day late, 0..100
    max_late_days: int = 7


@dataclass(frozen=True, slots=True)
class SubmittedFile:
    file_name: str
    file_url: str
    file_size: int = 0


@dataclass(frozen=True, slots=True)
class PreviousSubmission:
    """Content of a submission that a resubmission overwrote."""

    submitted_at: int
    text_content: str | None
    files: tuple[SubmittedFile, ...] = ()


@dataclass(frozen=True, slots=True)
class AssignmentSubmission:
    id: str
    assignment_id: str
    course_id: str
    student_id: str
    submitted_at: int
    text_content: str | None = None
    files: tuple[SubmittedFile, ...] = ()
    is_late: bool = False
    days_late: int = 0
    late_penalty: int = 0  # percent, 0..100
    status: SubmissionStatus = SubmissionStatus.SUBMITTED
    raw_score: float | None = None
    adjusted_score: int | None = None
    feedback: str | None = None
    graded_by: str | None = None
    graded_at: int | None = None
    resubmissions: tuple[PreviousSubmission, ...] = ()

    @staticmethod
    def new(
        *,
        assignment_id: str,
        course_id: str,
        student_id: str,
        submitted_at: int,
        text_content: str | None = None,
        files: tuple[SubmittedFile, ...] = (),
        is_late: bool = False,
        days_late: int = 0,
        late_penalty: int = 0,
    ) -> AssignmentSubmission:
        return AssignmentSubmission(
            id=str(uuid4()),
            assignment_id=assignment_id,
            course_id=course_id,
            student_id=student_id,
            submitted_at=submitted_at,
            text_content=text_content,
            files=files,
            is_late=is_late,
            days_late=days_late,
            late_penalty=late_penalty,
        )
