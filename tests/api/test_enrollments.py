"""Enrollment lifecycle over HTTP: enroll, complete lessons, unenroll."""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from app.models.course import Course
from app.repos.registry import SAMPLE_COURSE_ID, course_repo
from app.services.events import CERTIFICATE_QUEUE, PROFILE_POINTS_QUEUE
from app.services.task_queue import task_queue
from tests.conftest import T0, auth

ENROLL = f"/v1/courses/{SAMPLE_COURSE_ID}/enroll"


def _lesson(lesson_id: str) -> str:
    return f"/v1/courses/{SAMPLE_COURSE_ID}/lessons/{lesson_id}/complete"


async def _queue_length(queue: str) -> int:
    return await task_queue.queue_length(queue)


# ---- enroll ----


def test_enroll_returns_201(client: TestClient, clock, student_token: str) -> None:
    resp = client.post(ENROLL, headers=auth(student_token))
    assert resp.status_code == 201
    body = resp.json()
    assert body["student_id"] == "student-1"
    assert body["course_id"] == SAMPLE_COURSE_ID
    assert body["status"] == "enrolled"
    assert body["overall_progress"] == 0
    assert body["enrolled_at"] == T0
    assert body["certificate_id"] is None


def test_enroll_twice_is_409(client: TestClient, student_token: str) -> None:
    client.post(ENROLL, headers=auth(student_token))
    resp = client.post(ENROLL, headers=auth(student_token))
    assert resp.status_code == 409
    assert resp.json() == {"kind": "policy_violation", "detail": "Already enrolled in this course"}


def test_enroll_unknown_course_is_404(client: TestClient, student_token: str) -> None:
    resp = client.post("/v1/courses/nope/enroll", headers=auth(student_token))
    assert resp.status_code == 404
    assert resp.json()["kind"] == "not_found"


def test_enroll_unpublished_course_is_409(client: TestClient, student_token: str) -> None:
    course_repo.add(Course(id="course-draft", title="Draft", is_published=False))
    resp = client.post("/v1/courses/course-draft/enroll", headers=auth(student_token))
    assert resp.status_code == 409


# ---- lessons ----


def test_complete_lesson_updates_progress(client: TestClient, clock, student_token: str) -> None:
    client.post(ENROLL, headers=auth(student_token))
    clock.advance(60)

    resp = client.post(_lesson("lesson-1"), json={"time_spent": 300}, headers=auth(student_token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["newly_completed"] is True
    assert body["course_completed"] is False
    assert body["points_awarded"] == 10
    enrollment = body["enrollment"]
    assert enrollment["overall_progress"] == 20
    assert enrollment["status"] == "in_progress"
    assert enrollment["total_time_spent"] == 300
    assert enrollment["current_lesson_id"] == "lesson-1"
    assert enrollment["completed_lessons"] == [
        {"lesson_id": "lesson-1", "completed_at": T0 + 60, "time_spent": 300}
    ]
    assert asyncio.run(_queue_length(PROFILE_POINTS_QUEUE)) == 1


def test_complete_lesson_without_body(client: TestClient, student_token: str) -> None:
    client.post(ENROLL, headers=auth(student_token))
    resp = client.post(_lesson("lesson-2"), headers=auth(student_token))
    assert resp.status_code == 200
    assert resp.json()["enrollment"]["total_time_spent"] == 0


def test_repeat_lesson_completion_is_idempotent(client: TestClient, student_token: str) -> None:
    client.post(ENROLL, headers=auth(student_token))
    first = client.post(_lesson("lesson-1"), headers=auth(student_token)).json()
    second = client.post(_lesson("lesson-1"), headers=auth(student_token)).json()

    assert second["newly_completed"] is False
    assert second["points_awarded"] == 0
    assert second["enrollment"] == first["enrollment"]
    assert asyncio.run(_queue_length(PROFILE_POINTS_QUEUE)) == 1


def test_negative_time_spent_is_422(client: TestClient, student_token: str) -> None:
    client.post(ENROLL, headers=auth(student_token))
    resp = client.post(_lesson("lesson-1"), json={"time_spent": -5}, headers=auth(student_token))
    assert resp.status_code == 422


def test_unknown_lesson_is_404(client: TestClient, student_token: str) -> None:
    client.post(ENROLL, headers=auth(student_token))
    resp = client.post(_lesson("lesson-99"), headers=auth(student_token))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Lesson not found in this course"


def test_lesson_without_enrollment_is_404(client: TestClient, student_token: str) -> None:
    resp = client.post(_lesson("lesson-1"), headers=auth(student_token))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Not enrolled in this course"


def test_all_lessons_and_quiz_complete_the_course(
    client: TestClient, clock, student_token: str
) -> None:
    client.post(ENROLL, headers=auth(student_token))
    for lesson in ("lesson-1", "lesson-2", "lesson-3", "lesson-4"):
        clock.advance(60)
        body = client.post(_lesson(lesson), headers=auth(student_token)).json()
    assert body["enrollment"]["overall_progress"] == 80
    assert body["course_completed"] is False

    clock.advance(60)
    resp = client.post(
        "/v1/quizzes/quiz-basics/attempts",
        json={"answers": ["def", "true", "len"], "time_spent": 120},
        headers=auth(student_token),
    )
    assert resp.status_code == 201
    assert resp.json()["course_completed"] is True
    assert resp.json()["overall_progress"] == 100
    assert asyncio.run(_queue_length(CERTIFICATE_QUEUE)) == 1

    progress = client.get(f"/v1/courses/{SAMPLE_COURSE_ID}/progress", headers=auth(student_token))
    data = progress.json()
    assert data["is_completed"] is True
    assert data["status"] == "completed"
    assert data["certificate_issued"] is True
    assert data["certificate_id"].startswith("CERT-")
    assert data["completed_at"] == clock.now


# ---- unenroll ----


def test_unenroll_early_succeeds(client: TestClient, student_token: str) -> None:
    client.post(ENROLL, headers=auth(student_token))
    client.post(_lesson("lesson-1"), headers=auth(student_token))  # 20%

    resp = client.delete(ENROLL, headers=auth(student_token))
    assert resp.status_code == 200
    assert resp.json()["overall_progress"] == 20

    again = client.get(f"/v1/courses/{SAMPLE_COURSE_ID}/progress", headers=auth(student_token))
    assert again.status_code == 404


def test_unenroll_past_half_is_409(client: TestClient, student_token: str) -> None:
    client.post(ENROLL, headers=auth(student_token))
    for lesson in ("lesson-1", "lesson-2", "lesson-3"):  # 60%
        client.post(_lesson(lesson), headers=auth(student_token))

    resp = client.delete(ENROLL, headers=auth(student_token))
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Cannot unenroll after completing 50% of the course"

    still = client.get(f"/v1/courses/{SAMPLE_COURSE_ID}/progress", headers=auth(student_token))
    assert still.status_code == 200


def test_unenroll_when_not_enrolled_is_404(client: TestClient, student_token: str) -> None:
    resp = client.delete(ENROLL, headers=auth(student_token))
    assert resp.status_code == 404


def test_reenroll_after_unenroll_starts_fresh(client: TestClient, student_token: str) -> None:
    client.post(ENROLL, headers=auth(student_token))
    client.post(_lesson("lesson-1"), headers=auth(student_token))
    client.delete(ENROLL, headers=auth(student_token))

    resp = client.post(ENROLL, headers=auth(student_token))
    assert resp.status_code == 201
    assert resp.json()["completed_lessons"] == []
