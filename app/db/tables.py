"""SQLAlchemy table definitions for the progress and grading records.

These map to the frozen dataclass domain models in app/models/.
Course, lesson, quiz and assignment definitions belong to course
authoring and are referenced here by id only, so there are no foreign
keys to catalog tables.

The uniqueness rules the in-memory repos enforce with a lock are
constraints here:

  enrollments             one row per (student_id, course_id)
                          certificate_id unique when set
  quiz_attempts           one row per (student_id, quiz_id, attempt_number)
  assignment_submissions  one row per (assignment_id, student_id)
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKeyConstraint,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.engine import Base

_ID = 128  # opaque external ids (JWT sub, catalog ids)


def _uuid_str() -> str:
    return str(uuid.uuid4())


# --- Enrollment record and its embedded progress ---


class EnrollmentRow(Base):
    __tablename__ = "enrollments"

    student_id: Mapped[str] = mapped_column(String(_ID), primary_key=True)
    course_id: Mapped[str] = mapped_column(String(_ID), primary_key=True)
    enrolled_at: Mapped[int] = mapped_column(Integer, nullable=False)
    last_accessed_at: Mapped[int] = mapped_column(Integer, nullable=False)
    overall_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_lesson_id: Mapped[str | None] = mapped_column(String(_ID), nullable=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    certificate_issued: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    certificate_issued_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # NULLs never collide in a unique constraint, so only issued ids are checked.
    certificate_id: Mapped[str | None] = mapped_column(
        String(255), unique=True, nullable=True
    )


class CompletedLessonRow(Base):
    __tablename__ = "completed_lessons"

    student_id: Mapped[str] = mapped_column(String(_ID), primary_key=True)
    course_id: Mapped[str] = mapped_column(String(_ID), primary_key=True)
    lesson_id: Mapped[str] = mapped_column(String(_ID), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[int] = mapped_column(Integer, nullable=False)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        ForeignKeyConstraint(
            ["student_id", "course_id"],
            ["enrollments.student_id", "enrollments.course_id"],
            ondelete="CASCADE",
        ),
    )


class QuizSummaryRow(Base):
    __tablename__ = "quiz_summaries"

    student_id: Mapped[str] = mapped_column(String(_ID), primary_key=True)
    course_id: Mapped[str] = mapped_column(String(_ID), primary_key=True)
    quiz_id: Mapped[str] = mapped_column(String(_ID), primary_key=True)
    best_score: Mapped[int] = mapped_column(Integer, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_attempt_at: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(
            ["student_id", "course_id"],
            ["enrollments.student_id", "enrollments.course_id"],
            ondelete="CASCADE",
        ),
    )


# --- Quiz attempts ---


class QuizAttemptRow(Base):
    __tablename__ = "quiz_attempts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    quiz_id: Mapped[str] = mapped_column(String(_ID), nullable=False)
    course_id: Mapped[str] = mapped_column(String(_ID), nullable=False)
    student_id: Mapped[str] = mapped_column(String(_ID), nullable=False)
    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False)
    answers_json: Mapped[str] = mapped_column(Text, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False)
    passed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[int] = mapped_column(Integer, nullable=False)
    next_attempt_allowed_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "student_id", "quiz_id", "attempt_number", name="uq_quiz_attempt_number"
        ),
    )


# --- Assignment submissions ---


class AssignmentSubmissionRow(Base):
    __tablename__ = "assignment_submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    assignment_id: Mapped[str] = mapped_column(String(_ID), nullable=False)
    course_id: Mapped[str] = mapped_column(String(_ID), nullable=False)
    student_id: Mapped[str] = mapped_column(String(_ID), nullable=False)
    submitted_at: Mapped[int] = mapped_column(Integer, nullable=False)
    text_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    files_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    is_late: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    days_late: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    late_penalty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="submitted"
    )  # submitted|graded|returned|resubmission_requested
    raw_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    adjusted_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    graded_by: Mapped[str | None] = mapped_column(String(_ID), nullable=True)
    graded_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    resubmissions_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_per_student"),
    )
