from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.core.errors import InvalidInputError, NotFoundError, PolicyViolationError
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.quiz import Quiz, TrueFalseQuestion
from app.repos.course_repo import InMemoryCourseRepo
from app.repos.enrollment_repo import InMemoryEnrollmentRepo
from app.repos.quiz_repo import AttemptConflictError, InMemoryQuizAttemptRepo, InMemoryQuizRepo
from app.services import quiz_service
from app.services.events import CERTIFICATE_QUEUE, PROFILE_POINTS_QUEUE
from app.services.task_queue import task_queue

T0 = 1704844800
HOUR = 3600


class Repos:
    def __init__(self) -> None:
        self.courses = InMemoryCourseRepo()
        self.quizzes = InMemoryQuizRepo()
        self.attempts = InMemoryQuizAttemptRepo()
        self.enrollments = InMemoryEnrollmentRepo()

        self.courses.add(Course(id="c-1", title="Quiz only", quiz_ids=("qz",)))
        self.quizzes.add(
            Quiz(
                id="qz",
                course_id="c-1",
                title="Check",
                questions=(
                    TrueFalseQuestion(id="q1", prompt="a", correct_answer="true"),
                    TrueFalseQuestion(id="q2", prompt="b", correct_answer="false"),
                ),
            )
        )
        self.enrollments.add(Enrollment.new(student_id="s-1", course_id="c-1", enrolled_at=T0))

    def submit(self, answers, *, now: int, student_id: str = "s-1"):
        return asyncio.run(
            quiz_service.submit_quiz(
                self.quizzes,
                self.attempts,
                self.enrollments,
                self.courses,
                student_id=student_id,
                quiz_id="qz",
                answers=answers,
                time_spent=120,
                now=now,
                pass_bonus_points=20,
            )
        )


@pytest.fixture
def repos() -> Repos:
    return Repos()


async def _queue_length(queue: str) -> int:
    return await task_queue.queue_length(queue)


def test_failed_attempt_records_progress_but_no_bonus(repos: Repos) -> None:
    result = repos.submit(["false", "true"], now=T0)

    assert result.attempt.attempt_number == 1
    assert result.attempt.score == 0
    assert not result.attempt.passed
    assert result.attempts_remaining == 2
    # a graded attempt counts as the quiz being taken
    assert result.enrollment.overall_progress == 100
    assert result.course_completed
    assert asyncio.run(_queue_length(PROFILE_POINTS_QUEUE)) == 0
    assert asyncio.run(_queue_length(CERTIFICATE_QUEUE)) == 1


def test_passed_attempt_queues_bonus(repos: Repos) -> None:
    result = repos.submit(["true", "false"], now=T0)
    assert result.attempt.passed
    assert result.attempt.score == 100
    assert asyncio.run(_queue_length(PROFILE_POINTS_QUEUE)) == 1


def test_best_score_kept_across_attempts(repos: Repos) -> None:
    repos.submit(["true", "true"], now=T0)
    second = repos.submit(["false", "false"], now=T0 + 25 * HOUR)

    summary = second.enrollment.quiz_summary("qz")
    assert summary.best_score == 50
    assert summary.attempts == 2
    assert second.attempt.attempt_number == 2


def test_cooldown_rejects_and_stores_nothing(repos: Repos) -> None:
    repos.submit(["true", "true"], now=T0)

    with pytest.raises(PolicyViolationError) as excinfo:
        repos.submit(["true", "false"], now=T0 + HOUR)
    assert excinfo.value.retry_after_seconds == 23 * HOUR
    assert len(repos.attempts.list_for("s-1", "qz")) == 1


def test_fourth_attempt_rejected(repos: Repos) -> None:
    for n in range(3):
        repos.submit(["true", "true"], now=T0 + n * 30 * HOUR)

    with pytest.raises(PolicyViolationError, match="Maximum attempts"):
        repos.submit(["true", "false"], now=T0 + 500 * HOUR)
    assert len(repos.attempts.list_for("s-1", "qz")) == 3


def test_answer_count_mismatch_stores_nothing(repos: Repos) -> None:
    with pytest.raises(InvalidInputError):
        repos.submit(["true"], now=T0)
    assert repos.attempts.list_for("s-1", "qz") == []


def test_submission_requires_enrollment(repos: Repos) -> None:
    with pytest.raises(NotFoundError, match="Not enrolled"):
        repos.submit(["true", "false"], now=T0, student_id="stranger")


def test_unknown_quiz_is_not_found(repos: Repos) -> None:
    with pytest.raises(NotFoundError):
        quiz_service.eligibility(
            repos.quizzes,
            repos.attempts,
            repos.enrollments,
            student_id="s-1",
            quiz_id="missing",
            now=T0,
        )


def test_eligibility_reports_cooldown(repos: Repos) -> None:
    repos.submit(["true", "true"], now=T0)
    result = quiz_service.eligibility(
        repos.quizzes,
        repos.attempts,
        repos.enrollments,
        student_id="s-1",
        quiz_id="qz",
        now=T0 + HOUR,
    )
    assert not result.allowed
    assert result.hours_remaining == 23


def test_attempt_repo_refuses_duplicate_number(repos: Repos) -> None:
    first = repos.submit(["true", "true"], now=T0).attempt
    with pytest.raises(AttemptConflictError):
        repos.attempts.add(first)


def test_list_attempts_in_order(repos: Repos) -> None:
    repos.submit(["true", "true"], now=T0)
    repos.submit(["true", "false"], now=T0 + 24 * HOUR)
    listed = quiz_service.list_attempts(
        repos.quizzes, repos.attempts, student_id="s-1", quiz_id="qz"
    )
    assert [a.attempt_number for a in listed] == [1, 2]
    assert [a.score for a in listed] == [50, 100]


def test_concurrent_submissions_cannot_pass_attempt_limit(repos: Repos) -> None:
    repos.submit(["false", "false"], now=T0)
    repos.submit(["false", "false"], now=T0 + 25 * HOUR)
    # one attempt left, cooldown over
    workers = 8
    barrier = threading.Barrier(workers)

    def _race(_: int):
        barrier.wait()
        try:
            return repos.submit(["true", "false"], now=T0 + 50 * HOUR)
        except PolicyViolationError as e:
            return e

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(_race, range(workers)))

    accepted = [o for o in outcomes if not isinstance(o, PolicyViolationError)]
    assert len(accepted) == 1
    assert accepted[0].attempt.attempt_number == 3
    assert accepted[0].attempts_remaining == 0

    stored = repos.attempts.list_for("s-1", "qz")
    assert [a.attempt_number for a in stored] == [1, 2, 3]
    assert repos.enrollments.get("s-1", "c-1").quiz_summary("qz").attempts == 3
