"""Tests for Prometheus metrics middleware and the domain counters.

prometheus-client keeps one global registry and counters only go up, so
every test asserts on DELTAS: read the value, act, read again.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from app.repos.registry import SAMPLE_COURSE_ID
from tests.conftest import HOUR, auth


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before == 1


def test_endpoint_label_is_route_template(client: TestClient, student_token: str) -> None:
    """Ids in the path must not become label values."""
    template = "/v1/courses/{course_id}/progress"
    labels = {"method": "GET", "endpoint": template, "status_code": "404"}
    before = _get_sample("http_requests_total", labels)

    client.get("/v1/courses/c-1/progress", headers=auth(student_token))
    client.get("/v1/courses/c-2/progress", headers=auth(student_token))

    assert _get_sample("http_requests_total", labels) - before == 2
    raw = {"method": "GET", "endpoint": "/v1/courses/c-1/progress", "status_code": "404"}
    assert REGISTRY.get_sample_value("http_requests_total", raw) is None


def test_unmatched_paths_share_one_label(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "unmatched", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.get("/no/such/path/1")
    client.get("/no/such/path/2")
    assert _get_sample("http_requests_total", labels) - before == 2


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _get_sample("http_request_duration_seconds_count", labels) - before == 1


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    resp = client.get("/metrics")
    client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert _get_sample("http_requests_total", labels) == before


def test_policy_rejection_counted_by_rule(
    client: TestClient, clock, student_token: str
) -> None:
    client.post(f"/v1/courses/{SAMPLE_COURSE_ID}/enroll", headers=auth(student_token))
    body = {"answers": ["func", "false", "x"]}
    client.post("/v1/quizzes/quiz-basics/attempts", json=body, headers=auth(student_token))

    before = _get_sample("policy_rejections_total", {"rule": "cooldown"})
    clock.advance(HOUR)
    resp = client.post("/v1/quizzes/quiz-basics/attempts", json=body, headers=auth(student_token))
    assert resp.status_code == 409
    assert _get_sample("policy_rejections_total", {"rule": "cooldown"}) - before == 1


def test_lesson_completion_outcomes(client: TestClient, student_token: str) -> None:
    client.post(f"/v1/courses/{SAMPLE_COURSE_ID}/enroll", headers=auth(student_token))
    url = f"/v1/courses/{SAMPLE_COURSE_ID}/lessons/lesson-1/complete"

    recorded = _get_sample("lesson_completions_total", {"outcome": "recorded"})
    duplicate = _get_sample("lesson_completions_total", {"outcome": "duplicate"})
    client.post(url, headers=auth(student_token))
    client.post(url, headers=auth(student_token))

    assert _get_sample("lesson_completions_total", {"outcome": "recorded"}) - recorded == 1
    assert _get_sample("lesson_completions_total", {"outcome": "duplicate"}) - duplicate == 1
