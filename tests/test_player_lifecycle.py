"""Tests for membership, host transfer, inactivity kicks and room sweeps."""
import asyncio
from datetime import datetime, UTC, timedelta

import pytest
from sqlalchemy import select, delete

from wordrace.models.base import RoomStatus, RoomType
from wordrace.models.room import Room
from wordrace.models.room_player import RoomPlayer
from wordrace.services.player_lifecycle_service import PlayerLifecycleService
from wordrace.services.room_controller import RoomController, room_lock_names
from wordrace.services.room_service import ROOM_CODE_ALPHABET, RoomService
from wordrace.utils import lock_client
from wordrace.utils.exceptions import (
    PlayerNotInRoomError,
    RoomFullError,
    RoomNotFoundError,
    WrongRoomStatusError,
)


async def _backdate(db_session, room, player_id, seconds):
    result = await db_session.execute(
        select(RoomPlayer).where(RoomPlayer.room_id == room.room_id, RoomPlayer.player_id == player_id)
    )
    player = result.scalar_one()
    player.last_seen_at = datetime.now(UTC) - timedelta(seconds=seconds)
    await db_session.commit()


async def _room_exists(db_session, room_id) -> bool:
    result = await db_session.execute(select(Room.room_id).where(Room.room_id == room_id))
    return result.scalar_one_or_none() is not None


# ----------------------------------------------------------------------
# Create, join and leave
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_room_makes_caller_host(db_session):
    snapshot = await RoomController(db_session).create_room("p1", "Alice")

    room = snapshot.room
    assert room.status == RoomStatus.WAITING.value
    assert room.host_player_id == "p1"
    assert len(room.code) == 6
    assert set(room.code) <= set(ROOM_CODE_ALPHABET)
    assert [player.player_id for player in snapshot.players] == ["p1"]


@pytest.mark.asyncio
async def test_public_room_has_preferred_size(db_session):
    snapshot = await RoomController(db_session).create_room("p1", "Alice", RoomType.PUBLIC)

    assert snapshot.room.room_type == RoomType.PUBLIC.value
    assert snapshot.room.preferred_players == 3
    assert snapshot.room.max_players == 10


@pytest.mark.asyncio
async def test_join_is_case_insensitive(db_session, room_factory):
    room = await room_factory(player_ids=("p1",))

    snapshot = await RoomController(db_session).join_room(room.code.lower(), "p2", "Bob")

    assert [player.player_id for player in snapshot.players] == ["p1", "p2"]


@pytest.mark.asyncio
async def test_join_unknown_room(db_session):
    with pytest.raises(RoomNotFoundError):
        await RoomController(db_session).join_room("ZZZZZZ", "p2", "Bob")


@pytest.mark.asyncio
async def test_join_full_room(db_session, room_factory):
    room = await room_factory()
    room.max_players = 2
    await db_session.commit()

    with pytest.raises(RoomFullError):
        await RoomController(db_session).join_room(room.code, "p3", "Carol")


@pytest.mark.asyncio
async def test_join_running_game_only_as_member(db_session, playing_room_factory):
    room = await playing_room_factory()
    controller = RoomController(db_session)

    with pytest.raises(WrongRoomStatusError):
        await controller.join_room(room.code, "p3", "Carol")

    snapshot = await controller.join_room(room.code, "p2", "Bob")
    assert snapshot.room.status == RoomStatus.PLAYING.value
    assert len(snapshot.players) == 2


@pytest.mark.asyncio
async def test_joining_another_room_leaves_the_previous_one(db_session, room_factory):
    first = await room_factory(player_ids=("p3",))
    second = await room_factory(player_ids=("p1",))

    await RoomController(db_session).join_room(second.code, "p3", "Carol")

    assert not await _room_exists(db_session, first.room_id)
    active = await RoomController(db_session).get_active_room("p3")
    assert active.room_id == second.room_id


@pytest.mark.asyncio
async def test_host_leaving_transfers_host_to_oldest_player(db_session, room_factory):
    room = await room_factory(player_ids=("p1", "p2", "p3"))
    controller = RoomController(db_session)

    deleted = await controller.leave_room(room.code, "p1")

    assert not deleted
    refreshed = await RoomService(db_session).get_room_by_code(room.code)
    assert refreshed.host_player_id == "p2"


@pytest.mark.asyncio
async def test_last_player_leaving_deletes_room(db_session, room_factory):
    room = await room_factory(player_ids=("p1",))

    deleted = await RoomController(db_session).leave_room(room.code, "p1")

    assert deleted
    assert not await _room_exists(db_session, room.room_id)


@pytest.mark.asyncio
async def test_leave_requires_membership(db_session, room_factory):
    room = await room_factory()

    with pytest.raises(PlayerNotInRoomError):
        await RoomController(db_session).leave_room(room.code, "stranger")


# ----------------------------------------------------------------------
# Matchmaking
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_matchmaking_fills_public_room_and_auto_starts(db_session):
    controller = RoomController(db_session)

    first = await controller.matchmake("p1", "Alice")
    second = await controller.matchmake("p2", "Bob")
    third = await controller.matchmake("p3", "Carol")

    assert first.room.room_type == RoomType.PUBLIC.value
    assert second.room.room_id == first.room.room_id
    assert third.room.room_id == first.room.room_id

    snapshot = await controller.poll_state(first.room.code, "p1")

    assert "auto_started" in snapshot.events
    assert snapshot.room.status == RoomStatus.TUTORIAL.value
    assert snapshot.room.round_number == 1


@pytest.mark.asyncio
async def test_matchmaking_ignores_private_rooms(db_session, room_factory):
    private = await room_factory(player_ids=("p1",))

    snapshot = await RoomController(db_session).matchmake("p2", "Bob")

    assert snapshot.room.room_id != private.room_id
    assert snapshot.room.room_type == RoomType.PUBLIC.value


@pytest.mark.asyncio
async def test_matchmaking_returns_current_active_room(db_session, room_factory):
    room = await room_factory(player_ids=("p1",))

    snapshot = await RoomController(db_session).matchmake("p1", "Alice")

    assert snapshot.room.room_id == room.room_id


@pytest.mark.asyncio
async def test_matchmaking_skips_candidate_that_started_meanwhile(db_session, room_factory):
    lobby = await room_factory(player_ids=("p1",), room_type=RoomType.PUBLIC)
    lobby.status = RoomStatus.TUTORIAL.value
    await db_session.commit()

    room = await RoomService(db_session).matchmake("p2", "Bob", candidate_code=lobby.code)

    assert room.room_id != lobby.room_id
    assert room.room_type == RoomType.PUBLIC.value
    assert room.host_player_id == "p2"


# ----------------------------------------------------------------------
# Lock ordering
# ----------------------------------------------------------------------


def test_room_lock_names_are_sorted_and_unique():
    assert room_lock_names(["zx9abc", "AB2CDE", "ZX9ABC"]) == ["room:AB2CDE", "room:ZX9ABC"]
    assert room_lock_names([]) == []


@pytest.mark.asyncio
async def test_matchmaking_waits_for_lock_on_chosen_room(session_factory, room_factory):
    lobby = await room_factory(player_ids=("p1",), room_type=RoomType.PUBLIC)

    async def matchmake():
        async with session_factory() as session:
            return await RoomController(session).matchmake("p2", "Bob")

    async with lock_client.lock(f"room:{lobby.code}"):
        task = asyncio.create_task(matchmake())
        await asyncio.sleep(0.1)
        assert not task.done()

    snapshot = await task
    assert snapshot.room.room_id == lobby.room_id
    assert sorted(player.player_id for player in snapshot.players) == ["p1", "p2"]


@pytest.mark.asyncio
async def test_joining_waits_for_lock_on_room_being_left(session_factory, room_factory):
    old_room = await room_factory(player_ids=("p1", "p2"))
    new_room = await room_factory(player_ids=("p3",))

    async def join():
        async with session_factory() as session:
            return await RoomController(session).join_room(new_room.code, "p1", "Alice")

    async with lock_client.lock(f"room:{old_room.code}"):
        task = asyncio.create_task(join())
        await asyncio.sleep(0.1)
        assert not task.done()

    snapshot = await task
    assert sorted(player.player_id for player in snapshot.players) == ["p1", "p3"]
    async with session_factory() as session:
        remaining = await RoomService(session).get_players(old_room.room_id)
    assert [player.player_id for player in remaining] == ["p2"]


@pytest.mark.asyncio
async def test_creating_room_waits_for_lock_on_room_being_left(session_factory, room_factory):
    old_room = await room_factory(player_ids=("p1", "p2"))

    async def create():
        async with session_factory() as session:
            return await RoomController(session).create_room("p1", "Alice")

    async with lock_client.lock(f"room:{old_room.code}"):
        task = asyncio.create_task(create())
        await asyncio.sleep(0.1)
        assert not task.done()

    snapshot = await task
    assert snapshot.room.room_id != old_room.room_id
    async with session_factory() as session:
        remaining = await RoomService(session).get_players(old_room.room_id)
    assert [player.player_id for player in remaining] == ["p2"]


# ----------------------------------------------------------------------
# Inactivity kicks
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_waiting_room_kicks_idle_player(db_session, room_factory):
    room = await room_factory()
    await _backdate(db_session, room, "p2", seconds=61)

    snapshot = await RoomController(db_session).poll_state(room.code, "p1")

    assert [player.player_id for player in snapshot.players] == ["p1"]


@pytest.mark.asyncio
async def test_waiting_room_kick_transfers_host(db_session, room_factory):
    room = await room_factory()
    await _backdate(db_session, room, "p1", seconds=61)

    snapshot = await RoomController(db_session).poll_state(room.code, "p2")

    assert snapshot.room.host_player_id == "p2"
    assert [player.player_id for player in snapshot.players] == ["p2"]


@pytest.mark.asyncio
async def test_waiting_room_deleted_when_everyone_is_idle(db_session, room_factory):
    room = await room_factory()
    await _backdate(db_session, room, "p1", seconds=61)
    await _backdate(db_session, room, "p2", seconds=61)

    with pytest.raises(RoomNotFoundError):
        await RoomController(db_session).poll_state(room.code, "observer")

    assert not await _room_exists(db_session, room.room_id)


@pytest.mark.asyncio
async def test_game_kicks_idle_player_and_purges_vote(db_session, playing_room_factory):
    room = await playing_room_factory(player_ids=("p1", "p2", "p3"))
    room.shuffle_votes = ["p3"]
    await db_session.commit()
    await _backdate(db_session, room, "p3", seconds=91)

    snapshot = await RoomController(db_session).poll_state(room.code, "p1")

    assert "kicked:p3" in snapshot.events
    assert [player.player_id for player in snapshot.players] == ["p1", "p2"]
    assert snapshot.room.shuffle_votes == []
    assert snapshot.vote_threshold == 2


@pytest.mark.asyncio
async def test_game_keeps_player_within_threshold(db_session, playing_room_factory):
    room = await playing_room_factory()
    await _backdate(db_session, room, "p2", seconds=80)

    snapshot = await RoomController(db_session).poll_state(room.code, "p1")

    assert len(snapshot.players) == 2


@pytest.mark.asyncio
async def test_game_finishes_when_everyone_is_kicked(db_session, playing_room_factory):
    room = await playing_room_factory()
    service = PlayerLifecycleService(db_session)

    kicked = await service.kick_inactive_from_game(room, now=datetime.now(UTC) + timedelta(seconds=120))
    await db_session.commit()

    assert sorted(kicked) == ["p1", "p2"]
    assert room.status == RoomStatus.FINISHED.value
    assert room.finished_at is not None


# ----------------------------------------------------------------------
# Sweeps and rematch
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_sweep_deletes_abandoned_rooms(db_session, room_factory, playing_room_factory):
    abandoned = await playing_room_factory()
    live = await room_factory(player_ids=("p3", "p4"))
    empty = await room_factory(player_ids=("p5",))

    await _backdate(db_session, abandoned, "p1", seconds=400)
    await _backdate(db_session, abandoned, "p2", seconds=360)
    await db_session.execute(delete(RoomPlayer).where(RoomPlayer.room_id == empty.room_id))
    empty.created_at = datetime.now(UTC) - timedelta(minutes=10)
    await db_session.commit()

    deleted = await PlayerLifecycleService(db_session).sweep_stale_rooms()
    await db_session.commit()

    assert deleted == 2
    assert not await _room_exists(db_session, abandoned.room_id)
    assert not await _room_exists(db_session, empty.room_id)
    assert await _room_exists(db_session, live.room_id)


@pytest.mark.asyncio
async def test_sweep_deletes_finished_rooms_nobody_returns_to(db_session, playing_room_factory):
    old_result = await playing_room_factory(player_ids=("p1", "p2"))
    watched = await playing_room_factory(player_ids=("p3", "p4"))
    deserted = await playing_room_factory(player_ids=("p5", "p6"))

    long_ago = datetime.now(UTC) - timedelta(minutes=10)
    for room in (old_result, watched, deserted):
        room.status = RoomStatus.FINISHED.value
        room.finished_at = long_ago
    await db_session.commit()

    await _backdate(db_session, old_result, "p1", seconds=700)
    await _backdate(db_session, old_result, "p2", seconds=650)
    await _backdate(db_session, watched, "p3", seconds=700)
    await db_session.execute(delete(RoomPlayer).where(RoomPlayer.room_id == deserted.room_id))
    await db_session.commit()

    deleted = await PlayerLifecycleService(db_session).sweep_stale_rooms()
    await db_session.commit()

    assert deleted == 2
    assert not await _room_exists(db_session, old_result.room_id)
    assert not await _room_exists(db_session, deserted.room_id)
    assert await _room_exists(db_session, watched.room_id)


@pytest.mark.asyncio
async def test_sweep_keeps_recently_finished_room(db_session, playing_room_factory):
    room = await playing_room_factory()
    room.status = RoomStatus.FINISHED.value
    room.finished_at = datetime.now(UTC) - timedelta(seconds=30)
    await db_session.commit()
    await _backdate(db_session, room, "p1", seconds=700)
    await _backdate(db_session, room, "p2", seconds=700)

    assert await PlayerLifecycleService(db_session).sweep_stale_rooms() == 0
    assert await _room_exists(db_session, room.room_id)


@pytest.mark.asyncio
async def test_game_finished_by_kicks_is_swept_later(db_session, playing_room_factory):
    room = await playing_room_factory()
    lifecycle = PlayerLifecycleService(db_session)

    await lifecycle.kick_inactive_from_game(room, now=datetime.now(UTC) + timedelta(seconds=120))
    await db_session.commit()
    assert room.status == RoomStatus.FINISHED.value

    deleted = await lifecycle.sweep_stale_rooms(now=datetime.now(UTC) + timedelta(days=1))
    await db_session.commit()

    assert deleted == 1
    assert not await _room_exists(db_session, room.room_id)


@pytest.mark.asyncio
async def test_play_again_resets_finished_room(db_session, playing_room_factory):
    room = await playing_room_factory()
    room.status = RoomStatus.FINISHED.value
    room.match_winner_id = "p1"
    room.match_winning_word = "SHEEP"
    result = await db_session.execute(select(RoomPlayer).where(RoomPlayer.room_id == room.room_id))
    for player in result.scalars().all():
        player.collected_letters = ["S", "H"]
    await db_session.commit()

    snapshot = await RoomController(db_session).play_again(room.code, "p2")

    assert snapshot.room.status == RoomStatus.WAITING.value
    assert snapshot.room.round_number == 0
    assert snapshot.room.letters == []
    assert snapshot.room.match_winner_id is None
    assert snapshot.room.base_category is None
    assert all(player.collected_letters == [] for player in snapshot.players)


@pytest.mark.asyncio
async def test_play_again_requires_finished_room(db_session, playing_room_factory):
    room = await playing_room_factory()

    with pytest.raises(WrongRoomStatusError):
        await RoomController(db_session).play_again(room.code, "p1")
