"""Quiz attempts over HTTP: grading, attempt limit, cooldown."""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from app.repos.registry import SAMPLE_COURSE_ID
from app.services.events import PROFILE_POINTS_QUEUE
from app.services.task_queue import task_queue
from tests.conftest import DAY, HOUR, T0, auth

ATTEMPTS = "/v1/quizzes/quiz-basics/attempts"
ELIGIBILITY = "/v1/quizzes/quiz-basics/eligibility"
CORRECT = ["def", "true", "len"]
WRONG = ["func", "false", "size"]


def _enroll(client: TestClient, token: str) -> None:
    resp = client.post(f"/v1/courses/{SAMPLE_COURSE_ID}/enroll", headers=auth(token))
    assert resp.status_code == 201


def _submit(client: TestClient, token: str, answers: list[str | None]):
    return client.post(
        ATTEMPTS, json={"answers": answers, "time_spent": 90}, headers=auth(token)
    )


def test_all_correct_scores_100(client: TestClient, clock, student_token: str) -> None:
    _enroll(client, student_token)
    resp = _submit(client, student_token, CORRECT)

    assert resp.status_code == 201
    body = resp.json()
    attempt = body["attempt"]
    assert attempt["score"] == 100
    assert attempt["passed"] is True
    assert attempt["attempt_number"] == 1
    assert attempt["points_earned"] == 4
    assert attempt["total_points"] == 4
    assert attempt["completed_at"] == T0
    assert attempt["started_at"] == T0 - 90
    assert attempt["next_attempt_allowed_at"] == T0 + DAY
    assert [a["is_correct"] for a in attempt["answers"]] == [True, True, True]
    assert body["attempts_remaining"] == 2
    assert body["points_awarded"] == 20
    assert body["overall_progress"] == 20
    assert asyncio.run(task_queue.queue_length(PROFILE_POINTS_QUEUE)) == 1


def test_all_wrong_scores_0(client: TestClient, clock, student_token: str) -> None:
    _enroll(client, student_token)
    body = _submit(client, student_token, WRONG).json()
    assert body["attempt"]["score"] == 0
    assert body["attempt"]["passed"] is False
    assert body["points_awarded"] == 0
    assert asyncio.run(task_queue.queue_length(PROFILE_POINTS_QUEUE)) == 0


def test_unanswered_question_is_wrong(client: TestClient, clock, student_token: str) -> None:
    _enroll(client, student_token)
    body = _submit(client, student_token, ["def", None, "LEN "]).json()
    # 2 (def) + 0 + 1 (len) of 4
    assert body["attempt"]["score"] == 75
    assert body["attempt"]["answers"][1]["answer"] is None


def test_answer_count_mismatch_is_422(client: TestClient, clock, student_token: str) -> None:
    _enroll(client, student_token)
    resp = _submit(client, student_token, ["def"])
    assert resp.status_code == 422
    assert resp.json()["kind"] == "invalid_input"

    # nothing was stored, the next attempt is still number 1
    resp = _submit(client, student_token, CORRECT)
    assert resp.json()["attempt"]["attempt_number"] == 1


def test_cooldown_returns_409_with_retry_after(
    client: TestClient, clock, student_token: str
) -> None:
    _enroll(client, student_token)
    _submit(client, student_token, WRONG)

    clock.advance(HOUR)
    resp = _submit(client, student_token, CORRECT)

    assert resp.status_code == 409
    assert resp.headers["Retry-After"] == str(23 * HOUR)
    body = resp.json()
    assert body["kind"] == "policy_violation"
    assert "23 hour" in body["detail"]
    assert body["attempts_remaining"] == 2
    assert body["retry_after_seconds"] == 23 * HOUR


def test_eligibility_during_cooldown(client: TestClient, clock, student_token: str) -> None:
    _enroll(client, student_token)
    assert client.get(ELIGIBILITY, headers=auth(student_token)).json()["allowed"] is True

    _submit(client, student_token, WRONG)
    clock.advance(HOUR)

    body = client.get(ELIGIBILITY, headers=auth(student_token)).json()
    assert body["allowed"] is False
    assert body["reason"] == "cooldown"
    assert body["hours_remaining"] == 23
    assert body["attempts_used"] == 1
    assert body["next_attempt_at"] == T0 + DAY
    assert "23 hour" in body["message"]


def test_fourth_attempt_rejected(client: TestClient, clock, student_token: str) -> None:
    _enroll(client, student_token)
    for _ in range(3):
        assert _submit(client, student_token, WRONG).status_code == 201
        clock.advance(DAY)

    clock.advance(30 * DAY)
    resp = _submit(client, student_token, CORRECT)
    assert resp.status_code == 409
    assert "Retry-After" not in resp.headers
    assert resp.json()["attempts_remaining"] == 0

    history = client.get(ATTEMPTS, headers=auth(student_token)).json()
    assert [a["attempt_number"] for a in history] == [1, 2, 3]
    assert history[-1]["next_attempt_allowed_at"] is None


def test_best_score_is_kept_on_progress(client: TestClient, clock, student_token: str) -> None:
    _enroll(client, student_token)
    _submit(client, student_token, CORRECT)
    clock.advance(DAY)
    _submit(client, student_token, WRONG)

    progress = client.get(
        f"/v1/courses/{SAMPLE_COURSE_ID}/progress", headers=auth(student_token)
    ).json()
    assert progress["completed_quizzes"] == [
        {"quiz_id": "quiz-basics", "best_score": 100, "attempts": 2, "last_attempt_at": T0 + DAY}
    ]


def test_attempt_requires_enrollment(client: TestClient, student_token: str) -> None:
    resp = _submit(client, student_token, CORRECT)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Not enrolled in this course"


def test_unknown_quiz_is_404(client: TestClient, student_token: str) -> None:
    resp = client.post(
        "/v1/quizzes/missing/attempts", json={"answers": []}, headers=auth(student_token)
    )
    assert resp.status_code == 404
