from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EnrollmentStatus(str, Enum):
    ENROLLED = "enrolled"  # nothing completed yet
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"  # terminal


@dataclass(frozen=True, slots=True)
class CompletedLesson:
    lesson_id: str
    completed_at: int
    time_spent: int = 0  # seconds


@dataclass(frozen=True, slots=True)
class QuizSummary:
    """Best result of one quiz within an enrollment."""

    quiz_id: str
    best_score: int
    attempts: int
    last_attempt_at: int


@dataclass(frozen=True, slots=True)
class Enrollment:
    """One student's relationship to one course, unique on (student_id, course_id).

    Carries all progress state.  Records are immutable; the progress
    engine returns updated copies.
    """

    student_id: str
    course_id: str
    enrolled_at: int
    last_accessed_at: int
    completed_lessons: tuple[CompletedLesson, ...] = ()
    completed_quizzes: tuple[QuizSummary, ...] = ()
    overall_progress: int = 0  # 0..100
    total_time_spent: int = 0  # seconds
    current_lesson_id: str | None = None
    is_completed: bool = False
    completed_at: int | None = None
    certificate_issued: bool = False
    certificate_issued_at: int | None = None
    certificate_id: str | None = None

    @staticmethod
    def new(*, student_id: str, course_id: str, enrolled_at: int) -> Enrollment:
        return Enrollment(
            student_id=student_id,
            course_id=course_id,
            enrolled_at=enrolled_at,
            last_accessed_at=enrolled_at,
        )

    @property
    def status(self) -> EnrollmentStatus:
        if self.is_completed:
            return EnrollmentStatus.COMPLETED
        if self.completed_lessons or self.completed_quizzes:
            return EnrollmentStatus.IN_PROGRESS
        return EnrollmentStatus.ENROLLED

    @property
    def completed_count(self) -> int:
        return len(self.completed_lessons) + len(self.completed_quizzes)

    def has_completed_lesson(self, lesson_id: str) -> bool:
        return any(cl.lesson_id == lesson_id for cl in self.completed_lessons)

    def quiz_summary(self, quiz_id: str) -> QuizSummary | None:
        for summary in self.completed_quizzes:
            if summary.quiz_id == quiz_id:
                return summary
        return None
