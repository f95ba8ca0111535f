"""Named lock client abstraction - Redis or in-process asyncio fallback."""
import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import Optional

from wordrace.utils.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


class _LockEntry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.holders = 0


class LockClient:
    """Abstraction for named locks - uses Redis if available, else in-memory.

    In-memory locks are scoped to the running event loop so that a lock created
    under one loop is never awaited from another.
    """

    def __init__(self, redis_url: Optional[str] = None):
        self.backend = "memory"
        self._memory_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[str, _LockEntry]]" = (
            weakref.WeakKeyDictionary()
        )

        if redis_url:
            try:
                import redis
                import redis.asyncio as aioredis
                redis.from_url(redis_url).ping()
                self.redis = aioredis.from_url(redis_url)
                self.backend = "redis"
                logger.info("Using Redis for locks")
            except Exception as e:
                logger.warning(f"Redis not available, using in-memory locks: {e}")
        else:
            logger.info("Using in-memory locks (Redis URL not provided)")

    @asynccontextmanager
    async def lock(self, name: str, timeout: float = 10.0):
        """Hold the named lock for the duration of the ``async with`` block.

        Raises:
            LockTimeoutError: If the lock is not acquired within ``timeout`` seconds
        """
        if self.backend == "redis":
            async with self._redis_lock(name, timeout):
                yield
        else:
            async with self._memory_lock(name, timeout):
                yield

    @asynccontextmanager
    async def _redis_lock(self, name: str, timeout: float):
        from redis.exceptions import LockError

        redis_lock = self.redis.lock(f"lock:{name}", timeout=timeout, blocking_timeout=timeout)
        acquired = await redis_lock.acquire()
        if not acquired:
            raise LockTimeoutError(f"Timed out waiting for lock {name}")
        try:
            yield
        finally:
            try:
                await redis_lock.release()
            except LockError as e:
                # Lock expired while held; the next holder already owns it
                logger.warning(f"Lock {name} expired before release: {e}")

    @asynccontextmanager
    async def _memory_lock(self, name: str, timeout: float):
        loop = asyncio.get_running_loop()
        locks = self._memory_locks.setdefault(loop, {})
        entry = locks.get(name)
        if entry is None:
            entry = locks[name] = _LockEntry()
        entry.holders += 1

        try:
            try:
                await asyncio.wait_for(entry.lock.acquire(), timeout=timeout)
            except asyncio.TimeoutError:
                raise LockTimeoutError(f"Timed out waiting for lock {name}")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            entry.holders -= 1
            if entry.holders == 0 and locks.get(name) is entry:
                del locks[name]
