"""Quiz definitions and attempt records.

Questions are a tagged variant rather than one record with a type
string: each kind of question is its own frozen dataclass, and the
grading engine dispatches on the class.  A misspelled question type
cannot silently fall through to "never correct".
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Option:
    text: str
    is_correct: bool = False


@dataclass(frozen=True, slots=True)
class MultipleChoiceQuestion:
    id: str
    prompt: str
    options: tuple[Option, ...]
    points: int = 1

    @property
    def correct_option(self) -> Option | None:
        for option in self.options:
            if option.is_correct:
                return option
        return None


@dataclass(frozen=True, slots=True)
class TrueFalseQuestion:
    id: str
    prompt: str
    correct_answer: str  # "true"|"false", compared case-sensitively
    points: int = 1


@dataclass(frozen=True, slots=True)
class ShortAnswerQuestion:
    id: str
    prompt: str
    correct_answer: str
    points: int = 1
    fill_blank: bool = False  # same matching rule, different rendering


Question = MultipleChoiceQuestion | TrueFalseQuestion | ShortAnswerQuestion


@dataclass(frozen=True, slots=True)
class Quiz:
    id: str
    course_id: str
    title: str
    questions: tuple[Question, ...]
    passing_score: int = 60
    max_attempts: int = 3
    cooldown_hours: int = 24

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)


@dataclass(frozen=True, slots=True)
class GradedAnswer:
    question_id: str
    answer: str | None
    is_correct: bool
    points_earned: int


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    """One graded submission; attempts per (student, quiz) are numbered 1..N."""

    id: str
    quiz_id: str
    course_id: str
    student_id: str
    attempt_number: int
    answers: tuple[GradedAnswer, ...]
    score: int  # 0..100
    total_points: int
    points_earned: int
    passed: bool
    time_spent: int
    started_at: int
    completed_at: int
    next_attempt_allowed_at: int | None = None  # None after the final attempt

    @staticmethod
    def new(
        *,
        quiz_id: str,
        course_id: str,
        student_id: str,
        attempt_number: int,
        answers: tuple[GradedAnswer, ...],
        score: int,
        total_points: int,
        points_earned: int,
        passed: bool,
        time_spent: int,
        started_at: int,
        completed_at: int,
        next_attempt_allowed_at: int | None = None,
    ) -> QuizAttempt:
        return QuizAttempt(
            id=str(uuid4()),
            quiz_id=quiz_id,
            course_id=course_id,
            student_id=student_id,
            attempt_number=attempt_number,
            answers=answers,
            score=score,
            total_points=total_points,
            points_earned=points_earned,
            passed=passed,
            time_spent=time_spent,
            started_at=started_at,
            completed_at=completed_at,
            next_attempt_allowed_at=next_attempt_allowed_at,
        )
