"""Module-level repo singletons shared by every router.

In-memory for now.  The course, quiz, assignment and forum repos stand
in for collaborators that own that data; seed_catalog() loads a small
sample course so a fresh dev server has something to enroll in.
"""

from __future__ import annotations

import datetime

from app.core.config import SETTINGS
from app.models.assignment import Assignment
from app.models.course import Course
from app.models.quiz import (
    MultipleChoiceQuestion,
    Option,
    Quiz,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)
from app.repos.assignment_repo import InMemoryAssignmentRepo, InMemorySubmissionRepo
from app.repos.course_repo import InMemoryCourseRepo, InMemoryForumActivityRepo
from app.repos.enrollment_repo import InMemoryEnrollmentRepo
from app.repos.quiz_repo import InMemoryQuizAttemptRepo, InMemoryQuizRepo

course_repo = InMemoryCourseRepo()
forum_activity_repo = InMemoryForumActivityRepo()
enrollment_repo = InMemoryEnrollmentRepo()
quiz_repo = InMemoryQuizRepo()
quiz_attempt_repo = InMemoryQuizAttemptRepo()
assignment_repo = InMemoryAssignmentRepo()
submission_repo = InMemorySubmissionRepo()

SAMPLE_COURSE_ID = "course-python-101"
SAMPLE_INSTRUCTOR_ID = "teacher-1"


def seed_catalog() -> None:
    """Seed a sample course, quiz and assignment for development/testing."""
    if course_repo.get(SAMPLE_COURSE_ID) is not None:
        return

    policy = SETTINGS.policy
    course_repo.add(
        Course(
            id=SAMPLE_COURSE_ID,
            title="Python Fundamentals",
            instructor_id=SAMPLE_INSTRUCTOR_ID,
            lesson_ids=("lesson-1", "lesson-2", "lesson-3", "lesson-4"),
            quiz_ids=("quiz-basics",),
        )
    )
    quiz_repo.add(
        Quiz(
            id="quiz-basics",
            course_id=SAMPLE_COURSE_ID,
            title="Python Basics Check",
            questions=(
                MultipleChoiceQuestion(
                    id="q1",
                    prompt="Which keyword defines a function?",
                    options=(
                        Option("func"),
                        Option("def", is_correct=True),
                        Option("lambda"),
                    ),
                    points=2,
                ),
                TrueFalseQuestion(
                    id="q2",
                    prompt="Tuples are immutable.",
                    correct_answer="true",
                ),
                ShortAnswerQuestion(
                    id="q3",
                    prompt="The built-in that returns the length of a list is ____.",
                    correct_answer="len",
                    fill_blank=True,
                ),
            ),
            passing_score=policy.quiz_passing_score,
            max_attempts=policy.quiz_max_attempts,
            cooldown_hours=policy.quiz_cooldown_hours,
        )
    )
    due = datetime.datetime.now(datetime.UTC) + datetime.timedelta(days=14)
    assignment_repo.add(
        Assignment(
            id="assignment-fizzbuzz",
            course_id=SAMPLE_COURSE_ID,
            title="FizzBuzz",
            due_date=int(due.timestamp()),
            late_penalty_per_day=policy.assignment_late_penalty_per_day,
            max_late_days=policy.assignment_max_late_days,
        )
    )


seed_catalog()
