from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from app.services.events import PointsAward, send_points_award


def test_health_returns_ok(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    # In tests, Redis and the database are not configured
    assert data["checks"]["redis"] == "not_configured"
    assert data["checks"]["database"] == "not_configured"


def test_health_reports_queue_depth(client: TestClient) -> None:
    assert client.get("/health").json()["queues"] == {
        "profile_points": 0,
        "certificate_issuance": 0,
    }

    asyncio.run(send_points_award(PointsAward(student_id="s-1", points=10, reason="lesson_completed")))
    assert client.get("/health").json()["queues"]["profile_points"] == 1


def test_ready_returns_200(client: TestClient) -> None:
    resp = client.get("/ready")
    assert resp.status_code == 200
