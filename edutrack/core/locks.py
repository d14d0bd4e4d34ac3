"""Keyed locks that serialize mutations per learner/lesson.

The progress entities are plain in-memory objects with no version check, so
two concurrent updates against the same lesson would race (last write wins).
Services hold a lock on ``lesson_lock_key(user_id, lesson_id)`` for the whole
read-modify-save cycle.

Backends:
- InMemoryKeyedLock: one asyncio.Lock per key, for a single process
- RedisKeyedLock: redis-py distributed lock, for several workers
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Protocol

from redis.exceptions import LockError

from edutrack.core.errors import LockTimeoutError
from edutrack.core.logging import get_logger


if TYPE_CHECKING:
    import redis.asyncio as redis


logger = get_logger(__name__)

DEFAULT_LOCK_PREFIX = "edutrack:lock"


def lesson_lock_key(
    user_id: str, lesson_id: str, prefix: str = DEFAULT_LOCK_PREFIX
) -> str:
    """Lock key for one learner's progress on one lesson."""
    return f"{prefix}:lesson:{user_id}:{lesson_id}"


def attempt_lock_key(
    questionnaire_id: str, user_id: str, prefix: str = DEFAULT_LOCK_PREFIX
) -> str:
    """Lock key for one learner's attempts at one questionnaire."""
    return f"{prefix}:attempt:{questionnaire_id}:{user_id}"


class KeyedLock(Protocol):
    """Mutual exclusion scoped to a string key."""

    def hold(self, key: str) -> AbstractAsyncContextManager[None]:
        """Acquire the lock for ``key`` for the duration of the block."""
        ...


class InMemoryKeyedLock:
    """Per-key asyncio locks, dropped once nobody holds or waits on them."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    @property
    def active_keys(self) -> list[str]:
        """Keys currently held or awaited."""
        return list(self._locks)


class RedisKeyedLock:
    """Distributed lock backed by ``redis.asyncio.Redis.lock``."""

    def __init__(
        self,
        client: "redis.Redis",
        timeout: float = 10.0,
        blocking_timeout: float = 5.0,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._client.lock(
            key,
            timeout=self._timeout,
            blocking_timeout=self._blocking_timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            logger.warning("lock_acquire_timeout", key=key)
            raise LockTimeoutError(key)
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Expired while held; another worker may already own the key
                logger.warning("lock_expired_before_release", key=key)
