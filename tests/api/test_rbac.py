"""Table-driven RBAC tests.

Each row describes: endpoint, method, role, expected HTTP status.
Students write their own progress; teachers and admins grade and read
gradebooks.  A 404 in the table means the guard let the
request through to the handler.  The teacher rows act as the sample
course's instructor; course ownership is covered in test_course_ownership.py.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.repos.registry import SAMPLE_INSTRUCTOR_ID
from app.services import token_service
from tests.conftest import mint_token

COURSE = "course-python-101"


def _auth(token: str | None) -> dict[str, str]:
    if token is None:
        return {}
    return {"Authorization": f"Bearer {token}"}


_RBAC_CASES = [
    # (endpoint, method, role, expected_status)
    # enrollment writes: student only
    (f"/v1/courses/{COURSE}/enroll", "POST", "student", 201),
    (f"/v1/courses/{COURSE}/enroll", "POST", "teacher", 403),
    (f"/v1/courses/{COURSE}/enroll", "POST", None, 401),
    (f"/v1/courses/{COURSE}/lessons/lesson-1/complete", "POST", "admin", 403),
    # own progress: any authenticated user
    ("/v1/progress", "GET", "student", 200),
    ("/v1/progress", "GET", "teacher", 200),
    ("/v1/progress", "GET", None, 401),
    # quiz attempts: student only
    ("/v1/quizzes/quiz-basics/attempts", "POST", "teacher", 403),
    ("/v1/quizzes/quiz-basics/attempts", "POST", None, 401),
    # grading: staff only
    ("/v1/submissions/missing/grade", "POST", "student", 403),
    ("/v1/submissions/missing/grade", "POST", "teacher", 404),
    ("/v1/submissions/missing/grade", "POST", "admin", 404),
    ("/v1/assignments/assignment-fizzbuzz/submissions", "GET", "student", 403),
    ("/v1/assignments/assignment-fizzbuzz/submissions", "GET", "teacher", 200),
    # gradebook: staff only
    (f"/v1/courses/{COURSE}/grades", "GET", "student", 403),
    (f"/v1/courses/{COURSE}/grades", "GET", "teacher", 200),
    (f"/v1/courses/{COURSE}/grades", "GET", None, 401),
    # certificate verification is public
    ("/v1/certificates/CERT-NONE/verify", "GET", None, 404),
    ("/v1/certificates", "GET", None, 401),
]

_BODIES = {
    "/v1/quizzes/quiz-basics/attempts": {"answers": ["def", "true", "len"]},
    "/v1/submissions/missing/grade": {"raw_score": 80},
}


@pytest.mark.parametrize("endpoint,method,role,expected", _RBAC_CASES)
def test_rbac(
    client: TestClient,
    endpoint: str,
    method: str,
    role: str | None,
    expected: int,
) -> None:
    username = SAMPLE_INSTRUCTOR_ID if role == "teacher" else f"{role}-rbac"
    token = mint_token(username=username, roles=[role]) if role else None
    resp = client.request(
        method, endpoint, headers=_auth(token), json=_BODIES.get(endpoint)
    )
    assert resp.status_code == expected, (
        f"{method} {endpoint} as {role}: expected {expected}, got {resp.status_code}"
    )


def test_invalid_token_is_401(client: TestClient) -> None:
    resp = client.get("/v1/progress", headers=_auth("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.headers["WWW-Authenticate"] == "Bearer"


def test_expired_token_is_401(client: TestClient) -> None:
    token = token_service.create_access_token(sub="student-1", ttl_minutes=-1)
    resp = client.get("/v1/progress", headers=_auth(token))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"
