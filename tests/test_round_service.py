"""Tests for match start, round timeouts, win-advance and shuffle votes."""
import random
import uuid
from datetime import datetime, UTC, timedelta

import pytest
from sqlalchemy import select, func

from wordrace.models.base import RoomStatus
from wordrace.models.game_session_stats import GameSessionStats
from wordrace.models.used_word import UsedWord
from wordrace.services.analytics_service import DEAD_ROUND_EVENT, pending_logs_queue
from wordrace.services.letter_generator import is_valid_letter_set
from wordrace.services.room_controller import RoomController
from wordrace.services.room_service import RoomService
from wordrace.services.round_service import RoundService, vote_threshold
from wordrace.utils import queue_client
from wordrace.utils.exceptions import NotEnoughPlayersError, NotHostError, WrongRoomStatusError


@pytest.mark.parametrize("players,expected", [(1, 1), (2, 2), (3, 2), (4, 3), (5, 3), (10, 6)])
def test_vote_threshold_is_strict_majority(players, expected):
    assert vote_threshold(players) == expected


# ----------------------------------------------------------------------
# Match start and tutorial
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_only_host_can_start(db_session, room_factory):
    room = await room_factory()

    with pytest.raises(NotHostError):
        await RoomController(db_session).start_match(room.code, "p2")


@pytest.mark.asyncio
async def test_start_needs_minimum_players(db_session, room_factory):
    room = await room_factory(player_ids=("p1",))

    with pytest.raises(NotEnoughPlayersError):
        await RoomController(db_session).start_match(room.code, "p1")


@pytest.mark.asyncio
async def test_start_enters_tutorial_with_round_one(db_session, room_factory):
    room = await room_factory()
    controller = RoomController(db_session, rng=random.Random(11))

    snapshot = await controller.start_match(room.code, "p1")

    assert snapshot.room.status == RoomStatus.TUTORIAL.value
    assert snapshot.room.round_number == 1
    assert snapshot.room.round_start_time is None
    assert snapshot.room.base_category
    assert snapshot.room.current_mini_category
    assert snapshot.room.used_mini_category_ids == [snapshot.room.current_mini_category_id]
    assert is_valid_letter_set(snapshot.room.letters)

    history = await controller.get_round_history(room.code, "p1")
    assert [entry.round_number for entry in history] == [1]
    assert history[0].letters == snapshot.room.letters


@pytest.mark.asyncio
async def test_tutorial_completion_starts_play_when_everyone_is_done(db_session, room_factory):
    room = await room_factory()
    controller = RoomController(db_session)
    await controller.start_match(room.code, "p1")

    first = await controller.complete_tutorial(room.code, "p1")
    assert first.room.status == RoomStatus.TUTORIAL.value

    second = await controller.complete_tutorial(room.code, "p2")
    assert second.room.status == RoomStatus.PLAYING.value
    assert second.room.round_start_time is not None
    assert second.round_active
    assert second.seconds_remaining in (59, 60)

    stats_count = (
        await db_session.execute(
            select(func.count(GameSessionStats.id)).where(GameSessionStats.room_id == room.room_id)
        )
    ).scalar()
    assert stats_count == 2


@pytest.mark.asyncio
async def test_host_can_skip_tutorial(db_session, room_factory):
    room = await room_factory()
    controller = RoomController(db_session)
    await controller.start_match(room.code, "p1")

    snapshot = await controller.start_match(room.code, "p1")

    assert snapshot.room.status == RoomStatus.PLAYING.value
    assert all(player.tutorial_complete for player in snapshot.players)


@pytest.mark.asyncio
async def test_cannot_start_a_running_match(db_session, playing_room_factory):
    room = await playing_room_factory()

    with pytest.raises(WrongRoomStatusError):
        await RoomController(db_session).start_match(room.code, "p1")


# ----------------------------------------------------------------------
# Timeouts
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_round_does_not_time_out_early(db_session, playing_room_factory):
    room = await playing_room_factory()
    players = await RoomService(db_session).get_players(room.room_id)
    service = RoundService(db_session)

    timed_out = await service.check_timeout(room, players, now=room.round_start_time + timedelta(seconds=59))

    assert not timed_out
    assert room.failed_rounds == 0


@pytest.mark.asyncio
async def test_timeout_keeps_letters_and_changes_mini_category(db_session, playing_room_factory):
    room = await playing_room_factory(round_start_time=datetime.now(UTC) - timedelta(seconds=61))
    room.shuffle_votes = ["p2"]
    await db_session.commit()

    snapshot = await RoomController(db_session, rng=random.Random(3)).poll_state(room.code, "p1")

    assert "round_timeout" in snapshot.events
    assert snapshot.room.failed_rounds == 1
    assert snapshot.room.letters == ["Q", "A", "R", "T", "S"]
    assert snapshot.room.round_number == 1
    assert snapshot.room.current_mini_category_id != "c5"
    assert "c5" in snapshot.room.failed_mini_category_ids
    assert snapshot.room.shuffle_votes == []
    assert snapshot.seconds_remaining in (59, 60)

    queue_name = pending_logs_queue(room.room_id)
    [event] = queue_client.drain(queue_name)
    assert event["type"] == DEAD_ROUND_EVENT
    assert event["category"] == "Birds"


@pytest.mark.asyncio
async def test_third_failed_round_regenerates_letters(db_session, playing_room_factory, monkeypatch):
    monkeypatch.setattr(
        "wordrace.services.round_service.generate_round_letters",
        lambda rng=None: ["Z", "E", "N", "T", "R"],
    )
    room = await playing_room_factory(round_start_time=datetime.now(UTC) - timedelta(seconds=61))
    room.failed_rounds = 2
    await db_session.commit()

    snapshot = await RoomController(db_session).poll_state(room.code, "p1")

    assert snapshot.room.failed_rounds == 0
    assert snapshot.room.letters == ["Z", "E", "N", "T", "R"]
    assert snapshot.room.round_number == 1
    queue_client.clear(pending_logs_queue(room.room_id))


# ----------------------------------------------------------------------
# Win-advance
# ----------------------------------------------------------------------


async def _mark_round_won(db_session, room, word, seconds_ago, bonus_word=None):
    room.round_winner_id = "p1"
    room.round_winning_word = word
    room.round_won_at = datetime.now(UTC) - timedelta(seconds=seconds_ago)
    for used in filter(None, (word, bonus_word)):
        db_session.add(
            UsedWord(
                used_word_id=uuid.uuid4(),
                room_id=room.room_id,
                player_id="p1",
                round_number=room.round_number,
                category=room.current_mini_category,
                word=used,
            )
        )
    await db_session.commit()


@pytest.mark.asyncio
async def test_common_win_advances_after_overlay(db_session, playing_room_factory):
    room = await playing_room_factory()
    await _mark_round_won(db_session, room, "ROBIN", seconds_ago=4)

    snapshot = await RoomController(db_session).poll_state(room.code, "p2")

    assert "round_advanced" in snapshot.events
    assert snapshot.room.round_number == 2
    assert snapshot.room.round_winner_id is None
    assert snapshot.room.round_won_at is None
    assert snapshot.room.failed_rounds == 0
    assert snapshot.room.current_mini_category_id != "c5"
    assert is_valid_letter_set(snapshot.room.letters)
    assert snapshot.round_active


@pytest.mark.asyncio
async def test_common_win_holds_during_overlay(db_session, playing_room_factory):
    room = await playing_room_factory()
    await _mark_round_won(db_session, room, "ROBIN", seconds_ago=1)

    snapshot = await RoomController(db_session).poll_state(room.code, "p2")

    assert snapshot.room.round_number == 1
    assert snapshot.round_won


@pytest.mark.asyncio
async def test_tough_win_waits_for_bonus_word(db_session, playing_room_factory):
    room = await playing_room_factory()
    await _mark_round_won(db_session, room, "QUAIL", seconds_ago=5)

    snapshot = await RoomController(db_session).poll_state(room.code, "p2")

    assert snapshot.room.round_number == 1
    assert snapshot.bonus_window_open


@pytest.mark.asyncio
async def test_tough_win_advances_once_bonus_submitted(db_session, playing_room_factory):
    room = await playing_room_factory()
    await _mark_round_won(db_session, room, "QUAIL", seconds_ago=5, bonus_word="ROBIN")

    snapshot = await RoomController(db_session).poll_state(room.code, "p2")

    assert snapshot.room.round_number == 2


@pytest.mark.asyncio
async def test_tough_win_advances_after_safety_timeout(db_session, playing_room_factory):
    room = await playing_room_factory()
    await _mark_round_won(db_session, room, "QUAIL", seconds_ago=19)

    snapshot = await RoomController(db_session).poll_state(room.code, "p2")

    assert snapshot.room.round_number == 2
    assert not snapshot.bonus_window_open


@pytest.mark.asyncio
async def test_won_round_never_times_out(db_session, playing_room_factory):
    room = await playing_room_factory(round_start_time=datetime.now(UTC) - timedelta(seconds=70))
    await _mark_round_won(db_session, room, "QUAIL", seconds_ago=5)

    snapshot = await RoomController(db_session).poll_state(room.code, "p2")

    assert "round_timeout" not in snapshot.events
    assert snapshot.room.failed_rounds == 0
    assert snapshot.room.round_winner_id == "p1"


# ----------------------------------------------------------------------
# Shuffle votes
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_shuffle_vote_majority_forces_new_round(db_session, playing_room_factory):
    room = await playing_room_factory(player_ids=("p1", "p2", "p3"))
    controller = RoomController(db_session)

    first = await controller.vote_shuffle(room.code, "p1")
    assert (first.vote_count, first.vote_threshold, first.shuffled) == (1, 2, False)

    repeat = await controller.vote_shuffle(room.code, "p1")
    assert repeat.vote_count == 1

    second = await controller.vote_shuffle(room.code, "p3")
    assert second.shuffled
    assert "shuffled" in second.snapshot.events
    assert second.snapshot.room.round_number == 2
    assert second.snapshot.room.shuffle_votes == []
    assert "c5" in second.snapshot.room.failed_mini_category_ids


@pytest.mark.asyncio
async def test_shuffle_vote_requires_playing(db_session, room_factory):
    room = await room_factory()

    with pytest.raises(WrongRoomStatusError):
        await RoomController(db_session).vote_shuffle(room.code, "p1")


@pytest.mark.asyncio
async def test_round_history_tracks_each_round(db_session, room_factory):
    room = await room_factory()
    controller = RoomController(db_session)
    await controller.start_match(room.code, "p1")
    await controller.start_match(room.code, "p1")

    await controller.vote_shuffle(room.code, "p1")
    await controller.vote_shuffle(room.code, "p2")

    history = await controller.get_round_history(room.code, "p2")
    assert [entry.round_number for entry in history] == [1, 2]
    assert history[0].mini_category != history[1].mini_category
