from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import current_time
from app.main import app
from app.repos import registry
from app.services import token_service
from app.services.cache import cache_service
from app.services.task_queue import task_queue

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# 2024-01-10T00:00:00Z
T0 = 1704844800
HOUR = 3600
DAY = 86400


@pytest.fixture(autouse=True)
def reset_repos() -> None:
    """Empty every in-memory repo and reload the sample catalog."""
    registry.enrollment_repo._store.clear()
    registry.enrollment_repo._by_certificate.clear()
    registry.quiz_attempt_repo._store.clear()
    registry.submission_repo._by_key.clear()
    registry.forum_activity_repo._store.clear()
    registry.course_repo._by_id.clear()
    registry.quiz_repo._by_id.clear()
    registry.assignment_repo._by_id.clear()
    registry.seed_catalog()


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    """Clear task queues between tests."""
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


class Clock:
    """Settable request clock, installed in place of current_time()."""

    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> Iterator[Clock]:
    c = Clock(T0)
    app.dependency_overrides[current_time] = c
    yield c
    app.dependency_overrides.pop(current_time, None)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "student-1",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_token() -> str:
    """Token with the default role (student)."""
    return mint_token()


@pytest.fixture
def teacher_token() -> str:
    return mint_token(username="teacher-1", roles=["teacher"])


@pytest.fixture
def admin_token() -> str:
    return mint_token(username="admin-1", roles=["admin"])
