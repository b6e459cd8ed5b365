"""Assignment submission and grading endpoints.

Students:
  POST /v1/assignments/{assignment_id}/submissions

The course instructor and admins:
  GET  /v1/assignments/{assignment_id}/submissions
  POST /v1/submissions/{submission_id}/grade
  POST /v1/submissions/{submission_id}/request-resubmission
  POST /v1/submissions/{submission_id}/return
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.api.access import check_course_staff
from app.api.dependencies import Now, require_staff, require_student
from app.middleware.request_context import bind_log_fields
from app.models.assignment import AssignmentSubmission, SubmissionStatus, SubmittedFile
from app.models.principal import Principal
from app.repos.registry import assignment_repo, course_repo, submission_repo
from app.services import assignment_service

router = APIRouter(tags=["assignments"])


class SubmittedFileIn(BaseModel):
    file_name: str
    file_url: str
    file_size: int = Field(default=0, ge=0)


class SubmissionIn(BaseModel):
    text_content: str | None = None
    files: list[SubmittedFileIn] = []


class GradeIn(BaseModel):
    # Range is checked by the grading engine so the error carries its kind.
    raw_score: float
    feedback: str | None = None


class SubmittedFileOut(BaseModel):
    file_name: str
    file_url: str
    file_size: int


class SubmissionOut(BaseModel):
    id: str
    assignment_id: str
    course_id: str
    student_id: str
    submitted_at: int
    text_content: str | None
    files: list[SubmittedFileOut]
    is_late: bool
    days_late: int
    late_penalty: int
    status: SubmissionStatus
    raw_score: float | None
    adjusted_score: int | None
    feedback: str | None
    graded_by: str | None
    graded_at: int | None
    resubmission_count: int


def _check_grader(principal: Principal, submission_id: str) -> None:
    submission = assignment_service.get_submission(submission_repo, submission_id)
    bind_log_fields(course_id=submission.course_id)
    check_course_staff(principal, course_repo.get(submission.course_id))


def _submission_out(s: AssignmentSubmission) -> SubmissionOut:
    return SubmissionOut(
        id=s.id,
        assignment_id=s.assignment_id,
        course_id=s.course_id,
        student_id=s.student_id,
        submitted_at=s.submitted_at,
        text_content=s.text_content,
        files=[
            SubmittedFileOut(file_name=f.file_name, file_url=f.file_url, file_size=f.file_size)
            for f in s.files
        ],
        is_late=s.is_late,
        days_late=s.days_late,
        late_penalty=s.late_penalty,
        status=s.status,
        raw_score=s.raw_score,
        adjusted_score=s.adjusted_score,
        feedback=s.feedback,
        graded_by=s.graded_by,
        graded_at=s.graded_at,
        resubmission_count=len(s.resubmissions),
    )


@router.post(
    "/v1/assignments/{assignment_id}/submissions",
    response_model=SubmissionOut,
    status_code=status.HTTP_201_CREATED,
)
def submit_assignment(
    assignment_id: str,
    body: SubmissionIn,
    principal: Annotated[Principal, Depends(require_student)],
    now: Now,
) -> SubmissionOut:
    submission = assignment_service.submit(
        assignment_repo,
        submission_repo,
        student_id=principal.user_id,
        assignment_id=assignment_id,
        text_content=body.text_content,
        files=tuple(
            SubmittedFile(file_name=f.file_name, file_url=f.file_url, file_size=f.file_size)
            for f in body.files
        ),
        now=now,
    )
    bind_log_fields(course_id=submission.course_id)
    return _submission_out(submission)


@router.get(
    "/v1/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionOut],
)
def list_submissions(
    assignment_id: str,
    principal: Annotated[Principal, Depends(require_staff)],
) -> list[SubmissionOut]:
    assignment = assignment_service.get_assignment(assignment_repo, assignment_id)
    check_course_staff(principal, course_repo.get(assignment.course_id))
    submissions = assignment_service.list_submissions(
        assignment_repo, submission_repo, assignment_id=assignment_id
    )
    return [_submission_out(s) for s in submissions]


@router.post("/v1/submissions/{submission_id}/grade", response_model=SubmissionOut)
def grade_submission(
    submission_id: str,
    body: GradeIn,
    principal: Annotated[Principal, Depends(require_staff)],
    now: Now,
) -> SubmissionOut:
    _check_grader(principal, submission_id)
    graded = assignment_service.grade(
        submission_repo,
        submission_id=submission_id,
        raw_score=body.raw_score,
        grader_id=principal.user_id,
        feedback=body.feedback,
        now=now,
    )
    return _submission_out(graded)


@router.post(
    "/v1/submissions/{submission_id}/request-resubmission",
    response_model=SubmissionOut,
)
def request_resubmission(
    submission_id: str,
    principal: Annotated[Principal, Depends(require_staff)],
) -> SubmissionOut:
    _check_grader(principal, submission_id)
    updated = assignment_service.request_resubmission(
        submission_repo, submission_id=submission_id
    )
    return _submission_out(updated)


@router.post("/v1/submissions/{submission_id}/return", response_model=SubmissionOut)
def return_submission(
    submission_id: str,
    principal: Annotated[Principal, Depends(require_staff)],
) -> SubmissionOut:
    _check_grader(principal, submission_id)
    returned = assignment_service.return_to_student(
        submission_repo, submission_id=submission_id
    )
    return _submission_out(returned)
