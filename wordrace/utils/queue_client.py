"""Named event lists backed by Redis, or by in-process deques without it."""
import json
from collections import deque
from typing import Deque, Dict, List, Optional
from threading import Lock
import logging

logger = logging.getLogger(__name__)


class QueueClient:
    """FIFO lists of JSON-serialisable dicts, addressed by name."""

    def __init__(self, redis_url: Optional[str] = None):
        self.backend = "memory"
        self._memory_queues: Dict[str, Deque[dict]] = {}
        self._memory_lock = Lock()

        if redis_url:
            try:
                import redis
                self.redis = redis.from_url(redis_url, decode_responses=True)
                self.redis.ping()
                self.backend = "redis"
                logger.info("Using Redis for event queues")
            except Exception as e:
                logger.warning(f"Redis not available, using in-memory event queues: {e}")
        else:
            logger.info("Using in-memory event queues (Redis URL not provided)")

    def push(self, queue_name: str, item: dict) -> None:
        if self.backend == "redis":
            self.redis.rpush(queue_name, json.dumps(item))
            return
        with self._memory_lock:
            self._memory_queues.setdefault(queue_name, deque()).append(item)

    def drain(self, queue_name: str, limit: int = 1000) -> List[dict]:
        """Atomically remove and return up to ``limit`` items from the front."""
        if self.backend == "redis":
            pipe = self.redis.pipeline(transaction=True)
            pipe.lrange(queue_name, 0, limit - 1)
            pipe.ltrim(queue_name, limit, -1)
            raw_items, _ = pipe.execute()
            return [json.loads(raw) for raw in raw_items]

        with self._memory_lock:
            queue = self._memory_queues.get(queue_name)
            if not queue:
                return []
            items = [queue.popleft() for _ in range(min(limit, len(queue)))]
            if not queue:
                del self._memory_queues[queue_name]
            return items

    def length(self, queue_name: str) -> int:
        if self.backend == "redis":
            return self.redis.llen(queue_name)
        with self._memory_lock:
            return len(self._memory_queues.get(queue_name, ()))

    def clear(self, queue_name: str) -> int:
        """Drop the whole list; returns how many items it held."""
        if self.backend == "redis":
            pipe = self.redis.pipeline(transaction=True)
            pipe.llen(queue_name)
            pipe.delete(queue_name)
            removed, _ = pipe.execute()
            return removed
        with self._memory_lock:
            return len(self._memory_queues.pop(queue_name, ()))
