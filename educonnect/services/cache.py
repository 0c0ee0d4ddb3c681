"""Read-through cache for assessment results and course progress.

  GET results -> cache hit  -> return cached JSON
              -> cache miss -> build from repos -> store with TTL -> return

Results entries expire after RESULTS_CACHE_TTL seconds and are deleted
explicitly when the user submits the assessment, so a stale "no
submission" view can never outlive the submission itself.  Progress
entries (PROGRESS_CACHE_TTL) are deleted whenever a progress event for
that user and course is stored.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from educonnect.core.metrics import CACHE_OPERATIONS
from educonnect.db.redis import redis_pool

logger = logging.getLogger(__name__)


def results_key(user_id: str, assessment_id: str) -> str:
    return f"results:{user_id}:{assessment_id}"


def progress_key(user_id: str, course_id: str) -> str:
    return f"progress:{user_id}:{course_id}"


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None:
        """Fetch a cached value.  Returns None on cache miss."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryCacheService:
    """Process-local cache without TTL enforcement; cleared between tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        value = self._store.get(key)
        CACHE_OPERATIONS.labels(operation="miss" if value is None else "hit").inc()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()


class RedisCacheService:
    """Redis-backed cache shared by all API instances."""

    _PREFIX = "educonnect:cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        value = await self._redis.get(f"{self._PREFIX}{key}")
        CACHE_OPERATIONS.labels(operation="miss" if value is None else "hit").inc()
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        await self._redis.setex(f"{self._PREFIX}{key}", ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{key}")


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    cache_service: CacheService = RedisCacheService(redis_pool)
else:
    cache_service = InMemoryCacheService()
