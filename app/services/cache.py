"""Read-through cache for the progress read model.

Students reload their dashboard far more often than they complete
lessons.  GET /v1/courses/{course_id}/progress and GET /v1/progress read
through this cache:

    GET  -> cache hit  -> return
         -> cache miss -> enrollment repo -> populate cache -> return

and every write that touches an enrollment (enroll, unenroll, lesson
completed, quiz graded) deletes the student's entries afterwards.

Two safety nets cover each other:
  - TTL: an entry expires on its own even if an invalidation is missed
  - explicit invalidation: the next read after a write is fresh

The cache is never consulted for decisions.  Attempt eligibility,
unenroll limits and grading always read the repos directly.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from app.db.redis import redis_pool

# Short enough that a missed invalidation heals within minutes.
PROGRESS_CACHE_TTL = 300


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with a TTL (time to live)."""
        ...

    async def delete(self, key: str) -> None:
        """Explicitly invalidate a cached entry."""
        ...

    async def delete_pattern(self, pattern: str) -> None:
        """Delete all keys matching a glob pattern (e.g., 'progress:s-1:*')."""
        ...


class InMemoryCacheService:
    """In-memory cache for dev and tests; TTL is not enforced."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def delete_pattern(self, pattern: str) -> None:
        prefix = pattern.rstrip("*")
        for k in [k for k in self._store if k.startswith(prefix)]:
            del self._store[k]


class RedisCacheService:
    """Redis-backed cache shared by all API instances."""

    _PREFIX = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        return await self._redis.get(f"{self._PREFIX}{key}")

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")

    async def delete_pattern(self, pattern: str) -> None:
        # SCAN, not KEYS: KEYS blocks the server for the whole keyspace walk.
        cursor = 0
        while True:
            cursor, keys = await self._redis.scan(
                cursor, match=f"{self._PREFIX}{pattern}", count=100
            )
            if keys:
                await self._redis.delete(*keys)
            if cursor == 0:
                break


def progress_key(student_id: str, course_id: str) -> str:
    return f"progress:{student_id}:course:{course_id}"


def progress_list_key(student_id: str) -> str:
    return f"progress:{student_id}:all"


async def invalidate_progress(student_id: str) -> None:
    """Drop every cached progress view of one student."""
    await cache_service.delete_pattern(f"progress:{student_id}:*")


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
