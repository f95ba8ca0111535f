"""Deferred gameplay analytics.

Events are buffered while a room transaction is open and pushed to the queue
client only after it commits, so a rolled-back submission never reaches the
category statistics. ``flush_room`` drains a room's queue into
``category_stats``.
"""
from datetime import datetime, UTC
from typing import List
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from wordrace.services.category_catalog import get_category_catalog
from wordrace.services.category_stats_service import CategoryStatsService
from wordrace.utils import queue_client

logger = logging.getLogger(__name__)

WORD_SUBMISSION_EVENT = "word_submission"
DEAD_ROUND_EVENT = "dead_round"


def pending_logs_queue(room_id: UUID) -> str:
    return f"pending_logs:{room_id}"


class AnalyticsService:
    """Buffers analytics events for one request and publishes them after commit."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._buffer: List[dict] = []

    @property
    def pending(self) -> List[dict]:
        return list(self._buffer)

    def record_word_submission(
        self,
        room_id: UUID,
        player_id: str,
        category: str,
        word: str,
        accepted: bool,
        is_grand: bool = False,
        reason: str = None,
    ) -> None:
        self._buffer.append({
            "type": WORD_SUBMISSION_EVENT,
            "room_id": str(room_id),
            "player_id": player_id,
            "category": category,
            "word": word,
            "accepted": accepted,
            "is_grand": is_grand,
            "reason": reason,
            "timestamp": datetime.now(UTC).isoformat(),
        })

    def record_dead_round(self, room_id: UUID, category: str, round_number: int) -> None:
        self._buffer.append({
            "type": DEAD_ROUND_EVENT,
            "room_id": str(room_id),
            "category": category,
            "round_number": round_number,
            "timestamp": datetime.now(UTC).isoformat(),
        })

    def discard(self) -> None:
        """Drop buffered events (used when the surrounding transaction rolled back)."""
        self._buffer = []

    def publish(self) -> int:
        """Push buffered events to the per-room queues. Never raises."""
        events, self._buffer = self._buffer, []
        published = 0
        for event in events:
            try:
                queue_client.push(pending_logs_queue(event["room_id"]), event)
                published += 1
            except Exception as e:
                logger.warning(f"Failed to queue analytics event {event['type']}: {e}")
        return published

    async def flush_room(self, room_id: UUID) -> int:
        """Apply every pending event for a room to category statistics.

        Returns:
            int: Number of events processed
        """
        events = queue_client.drain(pending_logs_queue(room_id))
        if not events:
            return 0

        stats_service = CategoryStatsService(self.db)
        processed = 0
        for event in events:
            category = event.get("category")
            if not category:
                continue
            if event.get("type") == WORD_SUBMISSION_EVENT:
                await stats_service.record_word_submission(category, bool(event.get("accepted")))
            elif event.get("type") == DEAD_ROUND_EVENT:
                await stats_service.record_dead_round(category)
            else:
                logger.warning(f"Unknown analytics event type: {event.get('type')}")
                continue
            processed += 1

        await self.db.commit()
        get_category_catalog().invalidate_difficulties()
        logger.info(f"Flushed {processed} analytics events for room {room_id}")
        return processed

    def clear_room(self, room_id: UUID) -> int:
        removed = queue_client.clear(pending_logs_queue(room_id))
        if removed:
            logger.info(f"Discarded {removed} pending analytics events for room {room_id}")
        return removed
