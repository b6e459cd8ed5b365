"""Blend quiz, assignment and forum signals into one course grade.

    final = round_half_up(0.4 * quiz_average
                          + 0.4 * assignment_average
                          + 0.2 * participation_score)

Computed on demand and never stored; the function is pure, so teacher
dashboards can call it as often and as concurrently as they like.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from fractions import Fraction

from app.core.rounding import round_half_up
from app.models.assignment import AssignmentSubmission, SubmissionStatus
from app.models.course import ForumActivity
from app.models.quiz import QuizAttempt

QUIZ_WEIGHT = Fraction(2, 5)
ASSIGNMENT_WEIGHT = Fraction(2, 5)
PARTICIPATION_WEIGHT = Fraction(1, 5)

POINTS_PER_POST = 10
POINTS_PER_REPLY = 5

_GRADED = frozenset({SubmissionStatus.GRADED, SubmissionStatus.RETURNED})


@dataclass(frozen=True, slots=True)
class CourseGrade:
    quiz_average: float
    assignment_average: float
    participation_score: int
    final_grade: int
    quizzes_counted: int
    assignments_counted: int


def _mean(values: list[int]) -> Fraction:
    if not values:
        return Fraction(0)
    return Fraction(sum(values), len(values))


def participation_score(posts_count: int, replies_count: int) -> int:
    return min(100, posts_count * POINTS_PER_POST + replies_count * POINTS_PER_REPLY)


def blend(
    quiz_average: Fraction | float,
    assignment_average: Fraction | float,
    participation: Fraction | int,
) -> int:
    return round_half_up(
        Fraction(quiz_average) * QUIZ_WEIGHT
        + Fraction(assignment_average) * ASSIGNMENT_WEIGHT
        + Fraction(participation) * PARTICIPATION_WEIGHT
    )


def compute_course_grade(
    quiz_attempts: Iterable[QuizAttempt],
    submissions: Iterable[AssignmentSubmission],
    activity: ForumActivity | None,
) -> CourseGrade:
    """Only passed attempts and graded (or returned) submissions count."""
    quiz_scores = [a.score for a in quiz_attempts if a.passed]
    assignment_scores = [
        s.adjusted_score
        for s in submissions
        if s.status in _GRADED and s.adjusted_score is not None
    ]
    participation = (
        participation_score(activity.posts_count, activity.replies_count)
        if activity is not None
        else 0
    )

    quiz_average = _mean(quiz_scores)
    assignment_average = _mean(assignment_scores)

    return CourseGrade(
        quiz_average=round(float(quiz_average), 2),
        assignment_average=round(float(assignment_average), 2),
        participation_score=participation,
        final_grade=blend(quiz_average, assignment_average, participation),
        quizzes_counted=len(quiz_scores),
        assignments_counted=len(assignment_scores),
    )
