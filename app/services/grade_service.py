from __future__ import annotations

import logging

from app.core.errors import NotFoundError
from app.models.enrollment import Enrollment
from app.repos.assignment_repo import SubmissionRepo
from app.repos.course_repo import CourseRepo, ForumActivityRepo
from app.repos.enrollment_repo import EnrollmentRepo
from app.repos.quiz_repo import QuizAttemptRepo
from app.services.grade_aggregator import CourseGrade, compute_course_grade

logger = logging.getLogger(__name__)


def course_grade(
    attempts: QuizAttemptRepo,
    submissions: SubmissionRepo,
    forum: ForumActivityRepo,
    *,
    student_id: str,
    course_id: str,
) -> CourseGrade:
    grade = compute_course_grade(
        attempts.list_for_course(student_id, course_id),
        submissions.list_for_course(student_id, course_id),
        forum.get(student_id, course_id),
    )
    logger.debug(
        "Course grade student=%s course=%s final=%d quizzes=%d assignments=%d",
        student_id,
        course_id,
        grade.final_grade,
        grade.quizzes_counted,
        grade.assignments_counted,
    )
    return grade


def enrolled_student_grade(
    enrollments: EnrollmentRepo,
    attempts: QuizAttemptRepo,
    submissions: SubmissionRepo,
    forum: ForumActivityRepo,
    *,
    student_id: str,
    course_id: str,
) -> CourseGrade:
    if enrollments.get(student_id, course_id) is None:
        raise NotFoundError("Student is not enrolled in this course")
    return course_grade(
        attempts, submissions, forum, student_id=student_id, course_id=course_id
    )


def course_gradebook(
    courses: CourseRepo,
    enrollments: EnrollmentRepo,
    attempts: QuizAttemptRepo,
    submissions: SubmissionRepo,
    forum: ForumActivityRepo,
    *,
    course_id: str,
) -> list[tuple[Enrollment, CourseGrade]]:
    """Every enrolled student's blended grade, ordered by student id."""
    if courses.get(course_id) is None:
        raise NotFoundError("Course not found")
    rows = sorted(enrollments.list_by_course(course_id), key=lambda e: e.student_id)
    return [
        (
            e,
            course_grade(
                attempts, submissions, forum, student_id=e.student_id, course_id=course_id
            ),
        )
        for e in rows
    ]
