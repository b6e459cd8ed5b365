from __future__ import annotations

from dataclasses import replace
from fractions import Fraction

from app.models.assignment import AssignmentSubmission, SubmissionStatus
from app.models.course import ForumActivity
from app.models.quiz import QuizAttempt
from app.services.grade_aggregator import blend, compute_course_grade, participation_score

T0 = 1704844800


def _attempt(score: int, passed: bool) -> QuizAttempt:
    return QuizAttempt.new(
        quiz_id="quiz-1",
        course_id="c-1",
        student_id="s-1",
        attempt_number=1,
        answers=(),
        score=score,
        total_points=10,
        points_earned=score // 10,
        passed=passed,
        time_spent=0,
        started_at=T0,
        completed_at=T0,
    )


def _submission(adjusted: int | None, status: SubmissionStatus) -> AssignmentSubmission:
    s = AssignmentSubmission.new(
        assignment_id="a-1", course_id="c-1", student_id="s-1", submitted_at=T0
    )
    return replace(s, status=status, adjusted_score=adjusted)


def test_weights_are_forty_forty_twenty() -> None:
    assert blend(80, 70, 50) == 70


def test_blend_rounds_half_up() -> None:
    assert blend(Fraction(165, 2), 80, 0) == 65
    assert blend(Fraction(5, 4), 0, 0) == 1  # 0.5 -> 1


def test_participation_caps_at_100() -> None:
    assert participation_score(3, 2) == 40
    assert participation_score(20, 0) == 100


def test_only_passed_attempts_and_graded_submissions_count() -> None:
    grade = compute_course_grade(
        [_attempt(80, True), _attempt(40, False)],
        [
            _submission(70, SubmissionStatus.GRADED),
            _submission(None, SubmissionStatus.SUBMITTED),
            _submission(90, SubmissionStatus.RESUBMISSION_REQUESTED),
        ],
        ForumActivity(student_id="s-1", course_id="c-1", posts_count=4, replies_count=2),
    )
    assert grade.quiz_average == 80
    assert grade.assignment_average == 70
    assert grade.participation_score == 50
    assert grade.final_grade == 70
    assert grade.quizzes_counted == 1
    assert grade.assignments_counted == 1


def test_returned_submissions_count() -> None:
    grade = compute_course_grade([], [_submission(60, SubmissionStatus.RETURNED)], None)
    assert grade.assignment_average == 60
    assert grade.final_grade == 24


def test_no_signals_means_zero() -> None:
    grade = compute_course_grade([], [], None)
    assert grade.final_grade == 0
    assert grade.quiz_average == 0
    assert grade.participation_score == 0


def test_averages_keep_two_decimals() -> None:
    grade = compute_course_grade(
        [_attempt(70, True), _attempt(75, True), _attempt(75, True)], [], None
    )
    assert grade.quiz_average == 73.33
    # 0.4 * 220/3 = 29.33
    assert grade.final_grade == 29
