"""TTL cache owned by a single service instance."""
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class SimpleCache:
    """
    Mapping of key -> (value, refreshed_at) with a pull-based TTL check.

    An entry older than its TTL is dropped the next time it is read; writes
    also sweep every expired entry at most once per cleanup interval so keys
    that are never read again do not pile up. Each owner (category catalog,
    validation client) holds its own instance.
    """

    def __init__(self, default_ttl: float = 30.0):
        self.default_ttl = default_ttl
        self._entries: Dict[str, Tuple[Any, float, float]] = {}
        self._last_cleanup = time.time()
        self._cleanup_interval = 60.0  # Sweep at most once a minute

    def _cleanup_expired(self, now: float) -> None:
        """Remove every expired entry if the cleanup interval has passed."""
        if now - self._last_cleanup < self._cleanup_interval:
            return

        expired_keys = [
            key for key, (_, refreshed_at, ttl) in self._entries.items()
            if now - refreshed_at > ttl
        ]
        for key in expired_keys:
            del self._entries[key]

        self._last_cleanup = now
        if expired_keys:
            logger.debug(f"Cleaned up {len(expired_keys)} expired cache entries")

    def _lookup(self, key: str, now: float) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, refreshed_at, ttl = entry
        if now - refreshed_at > ttl:
            del self._entries[key]
            return None
        return value

    def get(self, key: str) -> Optional[Any]:
        return self._lookup(key, time.time())

    def get_many(self, keys: Iterable[str]) -> Tuple[Dict[str, Any], List[str]]:
        """Split ``keys`` into fresh cached values and keys that need loading."""
        now = time.time()
        found: Dict[str, Any] = {}
        missing: List[str] = []
        for key in keys:
            value = self._lookup(key, now)
            if value is None:
                missing.append(key)
            else:
                found[key] = value
        return found, missing

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        now = time.time()
        self._cleanup_expired(now)
        self._entries[key] = (value, now, self.default_ttl if ttl is None else ttl)

    def set_many(self, values: Dict[str, Any], ttl: Optional[float] = None) -> None:
        for key, value in values.items():
            self.set(key, value, ttl=ttl)

    def refreshed_at(self, key: str) -> Optional[float]:
        """When ``key`` was last stored, or None if it is absent."""
        entry = self._entries.get(key)
        return entry[1] if entry else None

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with ``prefix``; returns how many."""
        stale = [key for key in self._entries if key.startswith(prefix)]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cache entries under '{prefix}'")
        return len(stale)
