"""Assignment submissions: accept, grade, return, request resubmission.

The grading engine decides; this module looks things up, applies the
engine's decision inside one atomic repo call, and records metrics.
"""

from __future__ import annotations

import logging

from app.core.errors import InvalidInputError, NotFoundError, PolicyViolationError
from app.core.metrics import ASSIGNMENT_GRADES, ASSIGNMENT_SUBMISSIONS, POLICY_REJECTIONS
from app.models.assignment import Assignment, AssignmentSubmission, SubmittedFile
from app.repos.assignment_repo import AssignmentRepo, SubmissionRepo
from app.services import assignment_grading

logger = logging.getLogger(__name__)


def get_assignment(assignments: AssignmentRepo, assignment_id: str) -> Assignment:
    assignment = assignments.get(assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment not found")
    return assignment


def get_submission(submissions: SubmissionRepo, submission_id: str) -> AssignmentSubmission:
    submission = submissions.get(submission_id)
    if submission is None:
        raise NotFoundError("Submission not found")
    return submission


def submit(
    assignments: AssignmentRepo,
    submissions: SubmissionRepo,
    *,
    student_id: str,
    assignment_id: str,
    text_content: str | None,
    files: tuple[SubmittedFile, ...] = (),
    now: int,
) -> AssignmentSubmission:
    assignment = get_assignment(assignments, assignment_id)

    def _accept(existing: AssignmentSubmission | None) -> AssignmentSubmission:
        return assignment_grading.accept_submission(
            existing,
            assignment,
            student_id=student_id,
            text_content=text_content,
            files=files,
            now=now,
        )

    try:
        submission = submissions.upsert(assignment_id, student_id, _accept)
    except InvalidInputError:
        POLICY_REJECTIONS.labels(rule="duplicate_submission").inc()
        logger.warning(
            "Duplicate submission rejected student=%s assignment=%s",
            student_id,
            assignment_id,
        )
        raise
    except PolicyViolationError as e:
        POLICY_REJECTIONS.labels(rule="late_window").inc()
        logger.warning(
            "Late submission rejected student=%s assignment=%s reason=%s",
            student_id,
            assignment_id,
            e.reason,
        )
        raise

    ASSIGNMENT_SUBMISSIONS.labels(timeliness="late" if submission.is_late else "on_time").inc()
    logger.info(
        "Assignment submitted student=%s assignment=%s late=%s days_late=%d penalty=%d resubmission=%s",
        student_id,
        assignment_id,
        submission.is_late,
        submission.days_late,
        submission.late_penalty,
        bool(submission.resubmissions),
    )
    return submission


def grade(
    submissions: SubmissionRepo,
    *,
    submission_id: str,
    raw_score: float,
    grader_id: str,
    feedback: str | None = None,
    now: int,
) -> AssignmentSubmission:
    updated = submissions.update(
        submission_id,
        lambda s: assignment_grading.grade_submission(
            s, raw_score, grader_id=grader_id, feedback=feedback, now=now
        ),
    )
    if updated is None:
        raise NotFoundError("Submission not found")

    ASSIGNMENT_GRADES.inc()
    logger.info(
        "Submission graded submission=%s grader=%s raw=%s penalty=%d adjusted=%s",
        submission_id,
        grader_id,
        raw_score,
        updated.late_penalty,
        updated.adjusted_score,
    )
    return updated


def request_resubmission(submissions: SubmissionRepo, *, submission_id: str) -> AssignmentSubmission:
    updated = submissions.update(submission_id, assignment_grading.request_resubmission)
    if updated is None:
        raise NotFoundError("Submission not found")
    logger.info("Resubmission requested submission=%s", submission_id)
    return updated


def return_to_student(submissions: SubmissionRepo, *, submission_id: str) -> AssignmentSubmission:
    updated = submissions.update(submission_id, assignment_grading.return_submission)
    if updated is None:
        raise NotFoundError("Submission not found")
    logger.info("Submission returned submission=%s", submission_id)
    return updated


def list_submissions(
    assignments: AssignmentRepo,
    submissions: SubmissionRepo,
    *,
    assignment_id: str,
) -> list[AssignmentSubmission]:
    get_assignment(assignments, assignment_id)
    return submissions.list_by_assignment(assignment_id)
