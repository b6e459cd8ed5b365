"""Response schemas shared by more than one router, and their builders."""

from __future__ import annotations

from pydantic import BaseModel

from app.models.enrollment import Enrollment, EnrollmentStatus


class CompletedLessonOut(BaseModel):
    lesson_id: str
    completed_at: int
    time_spent: int


class QuizSummaryOut(BaseModel):
    quiz_id: str
    best_score: int
    attempts: int
    last_attempt_at: int


class EnrollmentOut(BaseModel):
    student_id: str
    course_id: str
    status: EnrollmentStatus
    overall_progress: int
    enrolled_at: int
    last_accessed_at: int
    total_time_spent: int
    current_lesson_id: str | None
    completed_lessons: list[CompletedLessonOut]
    completed_quizzes: list[QuizSummaryOut]
    is_completed: bool
    completed_at: int | None
    certificate_issued: bool
    certificate_id: str | None
    certificate_issued_at: int | None


class CertificateOut(BaseModel):
    certificate_id: str
    student_id: str
    course_id: str
    issued_at: int | None
    completed_at: int | None


def enrollment_out(enrollment: Enrollment) -> EnrollmentOut:
    return EnrollmentOut(
        student_id=enrollment.student_id,
        course_id=enrollment.course_id,
        status=enrollment.status,
        overall_progress=enrollment.overall_progress,
        enrolled_at=enrollment.enrolled_at,
        last_accessed_at=enrollment.last_accessed_at,
        total_time_spent=enrollment.total_time_spent,
        current_lesson_id=enrollment.current_lesson_id,
        completed_lessons=[
            CompletedLessonOut(
                lesson_id=cl.lesson_id,
                completed_at=cl.completed_at,
                time_spent=cl.time_spent,
            )
            for cl in enrollment.completed_lessons
        ],
        completed_quizzes=[
            QuizSummaryOut(
                quiz_id=q.quiz_id,
                best_score=q.best_score,
                attempts=q.attempts,
                last_attempt_at=q.last_attempt_at,
            )
            for q in enrollment.completed_quizzes
        ],
        is_completed=enrollment.is_completed,
        completed_at=enrollment.completed_at,
        certificate_issued=enrollment.certificate_issued,
        certificate_id=enrollment.certificate_id,
        certificate_issued_at=enrollment.certificate_issued_at,
    )


def certificate_out(enrollment: Enrollment) -> CertificateOut:
    return CertificateOut(
        certificate_id=enrollment.certificate_id or "",
        student_id=enrollment.student_id,
        course_id=enrollment.course_id,
        issued_at=enrollment.certificate_issued_at,
        completed_at=enrollment.completed_at,
    )
