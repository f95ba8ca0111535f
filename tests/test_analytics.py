"""Tests for deferred gameplay analytics."""
import uuid
from unittest.mock import AsyncMock

import pytest

from wordrace.services.analytics_service import (
    DEAD_ROUND_EVENT,
    WORD_SUBMISSION_EVENT,
    AnalyticsService,
    pending_logs_queue,
)
from wordrace.services.category_catalog import get_category_catalog
from wordrace.services.category_stats_service import CategoryStatsService
from wordrace.services.room_controller import RoomController
from wordrace.utils import queue_client


@pytest.mark.asyncio
async def test_events_are_buffered_until_published(db_session):
    room_id = uuid.uuid4()
    analytics = AnalyticsService(db_session)

    analytics.record_word_submission(room_id, "p1", "Birds", "QUAIL", accepted=True)
    analytics.record_dead_round(room_id, "Birds", 1)

    assert [event["type"] for event in analytics.pending] == [WORD_SUBMISSION_EVENT, DEAD_ROUND_EVENT]
    assert queue_client.length(pending_logs_queue(room_id)) == 0

    assert analytics.publish() == 2
    assert analytics.pending == []
    assert queue_client.length(pending_logs_queue(room_id)) == 2
    queue_client.clear(pending_logs_queue(room_id))


@pytest.mark.asyncio
async def test_discard_drops_buffered_events(db_session):
    room_id = uuid.uuid4()
    analytics = AnalyticsService(db_session)
    analytics.record_word_submission(room_id, "p1", "Birds", "QUAIL", accepted=True)

    analytics.discard()

    assert analytics.publish() == 0
    assert queue_client.length(pending_logs_queue(room_id)) == 0


@pytest.mark.asyncio
async def test_flush_room_updates_category_stats(db_session):
    room_id = uuid.uuid4()
    analytics = AnalyticsService(db_session)
    analytics.record_word_submission(room_id, "p1", "Birds", "QUAIL", accepted=True)
    analytics.record_word_submission(room_id, "p2", "Birds", "TABLE", accepted=False)
    analytics.record_word_submission(room_id, "p2", "Birds", "ROBIN", accepted=True)
    analytics.record_dead_round(room_id, "Birds", 2)
    analytics.publish()

    # Warm the difficulty cache so the flush has something to invalidate
    stats_service = CategoryStatsService(db_session)
    assert await stats_service.get_difficulty_scores(["Birds"]) == {"Birds": 5}

    processed = await analytics.flush_room(room_id)

    assert processed == 4
    stats = await stats_service.get_category_stats("Birds")
    assert stats.total_attempts == 3
    assert stats.successful_attempts == 2
    assert stats.dead_rounds == 1
    assert get_category_catalog().get_cached_difficulties(["Birds"]) == ({}, ["Birds"])

    # 1 + (1/3)*9 = 4, plus 1/5*3 for the dead round
    assert await stats_service.get_difficulty_scores(["Birds"]) == {"Birds": 5}
    assert await analytics.flush_room(room_id) == 0


@pytest.mark.asyncio
async def test_clear_room_drops_pending_events(db_session):
    room_id = uuid.uuid4()
    analytics = AnalyticsService(db_session)
    analytics.record_dead_round(room_id, "Birds", 1)
    analytics.publish()

    assert analytics.clear_room(room_id) == 1
    assert queue_client.length(pending_logs_queue(room_id)) == 0


@pytest.mark.asyncio
async def test_rolled_back_request_publishes_nothing(db_session, playing_room_factory, stub_validator):
    room = await playing_room_factory()
    controller = RoomController(db_session, validator=stub_validator)
    controller.room_service.get_players = AsyncMock(side_effect=RuntimeError("snapshot failed"))

    with pytest.raises(RuntimeError):
        await controller.submit_word(room.code, "p1", "BLUEJAY")

    assert queue_client.length(pending_logs_queue(room.room_id)) == 0


@pytest.mark.asyncio
async def test_committed_rejection_is_published(db_session, playing_room_factory, stub_validator):
    room = await playing_room_factory()
    controller = RoomController(db_session, validator=stub_validator)

    await controller.submit_word(room.code, "p1", "BLUEJAY")

    queue_name = pending_logs_queue(room.room_id)
    event = queue_client.drain(queue_name)[0]
    assert event["accepted"] is False
    assert event["reason"] == "Must start with one of the 5 letters"
    assert event["category"] == "Birds"
