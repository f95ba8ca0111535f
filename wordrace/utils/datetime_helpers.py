"""Timezone helpers for timestamps read back from the database.

SQLite returns naive datetimes even for ``DateTime(timezone=True)`` columns,
so every comparison against "now" goes through these helpers.
"""
from datetime import datetime, UTC
from typing import Optional


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes; aware ones and None pass through."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def seconds_since(dt: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    """Seconds elapsed between ``dt`` and ``now`` (defaults to the current UTC time).

    Returns None when ``dt`` is None.
    """
    if dt is None:
        return None
    now = ensure_utc(now) if now is not None else datetime.now(UTC)
    return (now - ensure_utc(dt)).total_seconds()


def idle_for_at_least(last_seen: Optional[datetime], seconds: float, now: Optional[datetime] = None) -> bool:
    """True if ``last_seen`` is at least ``seconds`` old. Never-seen counts as idle."""
    elapsed = seconds_since(last_seen, now)
    return elapsed is None or elapsed >= seconds


def isoformat_utc(dt: datetime) -> str:
    """ISO 8601 in UTC with a ``Z`` suffix, as sent to clients."""
    return ensure_utc(dt).astimezone(UTC).isoformat().replace("+00:00", "Z")
