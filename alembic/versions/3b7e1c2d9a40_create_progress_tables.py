"""create progress and grading tables

Revision ID: 3b7e1c2d9a40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e1c2d9a40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "enrollments",
        sa.Column("student_id", sa.String(length=128), nullable=False),
        sa.Column("course_id", sa.String(length=128), nullable=False),
        sa.Column("enrolled_at", sa.Integer(), nullable=False),
        sa.Column("last_accessed_at", sa.Integer(), nullable=False),
        sa.Column("overall_progress", sa.Integer(), nullable=False),
        sa.Column("total_time_spent", sa.Integer(), nullable=False),
        sa.Column("current_lesson_id", sa.String(length=128), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.Integer(), nullable=True),
        sa.Column("certificate_issued", sa.Boolean(), nullable=False),
        sa.Column("certificate_issued_at", sa.Integer(), nullable=True),
        sa.Column("certificate_id", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("student_id", "course_id"),
        sa.UniqueConstraint("certificate_id"),
    )
    op.create_table(
        "completed_lessons",
        sa.Column("student_id", sa.String(length=128), nullable=False),
        sa.Column("course_id", sa.String(length=128), nullable=False),
        sa.Column("lesson_id", sa.String(length=128), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.Integer(), nullable=False),
        sa.Column("time_spent", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["student_id", "course_id"],
            ["enrollments.student_id", "enrollments.course_id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("student_id", "course_id", "lesson_id"),
    )
    op.create_table(
        "quiz_summaries",
        sa.Column("student_id", sa.String(length=128), nullable=False),
        sa.Column("course_id", sa.String(length=128), nullable=False),
        sa.Column("quiz_id", sa.String(length=128), nullable=False),
        sa.Column("best_score", sa.Integer(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("last_attempt_at", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["student_id", "course_id"],
            ["enrollments.student_id", "enrollments.course_id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("student_id", "course_id", "quiz_id"),
    )
    op.create_table(
        "quiz_attempts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("quiz_id", sa.String(length=128), nullable=False),
        sa.Column("course_id", sa.String(length=128), nullable=False),
        sa.Column("student_id", sa.String(length=128), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("answers_json", sa.Text(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("passed", sa.Boolean(), nullable=False),
        sa.Column("time_spent", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.Integer(), nullable=False),
        sa.Column("next_attempt_allowed_at", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "student_id", "quiz_id", "attempt_number", name="uq_quiz_attempt_number"
        ),
    )
    op.create_table(
        "assignment_submissions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("assignment_id", sa.String(length=128), nullable=False),
        sa.Column("course_id", sa.String(length=128), nullable=False),
        sa.Column("student_id", sa.String(length=128), nullable=False),
        sa.Column("submitted_at", sa.Integer(), nullable=False),
        sa.Column("text_content", sa.Text(), nullable=True),
        sa.Column("files_json", sa.Text(), nullable=False),
        sa.Column("is_late", sa.Boolean(), nullable=False),
        sa.Column("days_late", sa.Integer(), nullable=False),
        sa.Column("late_penalty", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("raw_score", sa.Float(), nullable=True),
        sa.Column("adjusted_score", sa.Integer(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("graded_by", sa.String(length=128), nullable=True),
        sa.Column("graded_at", sa.Integer(), nullable=True),
        sa.Column("resubmissions_json", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "assignment_id", "student_id", name="uq_submission_per_student"
        ),
    )


def downgrade() -> None:
    op.drop_table("assignment_submissions")
    op.drop_table("quiz_attempts")
    op.drop_table("quiz_summaries")
    op.drop_table("completed_lessons")
    op.drop_table("enrollments")
