"""Derived, read-only views of room state for clients."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from wordrace.config import get_settings
from wordrace.models.base import RoomStatus
from wordrace.models.room import Room
from wordrace.models.room_player import RoomPlayer
from wordrace.services.letter_generator import is_tough_letter
from wordrace.services.round_service import vote_threshold
from wordrace.utils.datetime_helpers import seconds_since


def is_round_active(room: Room) -> bool:
    return (
        room.status == RoomStatus.PLAYING.value
        and room.round_start_time is not None
        and room.round_winner_id is None
    )


def is_round_won(room: Room) -> bool:
    return room.status == RoomStatus.PLAYING.value and room.round_winner_id is not None


def is_bonus_window_open(room: Room, now: Optional[datetime] = None) -> bool:
    """The winner of a tough-letter round may still submit a bonus word."""
    if not is_round_won(room) or not room.round_winning_word:
        return False
    if not is_tough_letter(room.round_winning_word[0]):
        return False
    elapsed = seconds_since(room.round_won_at, now)
    return elapsed is not None and elapsed < get_settings().bonus_safety_timeout_seconds


def seconds_remaining(room: Room, now: Optional[datetime] = None) -> Optional[int]:
    """Whole seconds left in the current round, or None when no timer runs."""
    if not is_round_active(room):
        return None
    elapsed = seconds_since(room.round_start_time, now)
    return max(0, int(get_settings().round_duration_seconds - elapsed))


@dataclass
class RoomSnapshot:
    room: Room
    players: List[RoomPlayer]
    vote_count: int
    vote_threshold: int
    round_active: bool
    round_won: bool
    bonus_window_open: bool
    seconds_remaining: Optional[int]
    events: List[str] = field(default_factory=list)


def build_snapshot(
    room: Room,
    players: Sequence[RoomPlayer],
    now: Optional[datetime] = None,
    events: Sequence[str] = (),
) -> RoomSnapshot:
    players = list(players)
    return RoomSnapshot(
        room=room,
        players=players,
        vote_count=len(room.shuffle_votes or []),
        vote_threshold=vote_threshold(len(players)),
        round_active=is_round_active(room),
        round_won=is_round_won(room),
        bonus_window_open=is_bonus_window_open(room, now),
        seconds_remaining=seconds_remaining(room, now),
        events=list(events),
    )
