"""Room and gameplay schemas."""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from wordrace.models.base import RoomType
from wordrace.schemas.base import BaseSchema
from wordrace.services.room_views import RoomSnapshot


# Request schemas
class CreateRoomRequest(BaseModel):
    """Request to create a new room."""
    display_name: str = Field(..., min_length=1, max_length=50)
    room_type: RoomType = RoomType.PRIVATE


class JoinRoomRequest(BaseModel):
    """Request to join a room by code."""
    room_code: str = Field(..., min_length=4, max_length=12)
    display_name: str = Field(..., min_length=1, max_length=50)


class MatchmakingRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=50)


class SubmitWordRequest(BaseModel):
    """Round word or grand word submission."""
    word: str = Field(..., min_length=1, max_length=30)
    is_grand: bool = False


# Response schemas
class RoomPlayerResponse(BaseSchema):
    player_id: str
    display_name: str
    collected_letters: List[str]
    tutorial_complete: bool
    is_ready: bool
    joined_at: datetime
    last_seen_at: datetime


class RoomResponse(BaseSchema):
    """Room state as seen by clients."""
    room_id: str
    code: str
    status: str
    room_type: str
    host_player_id: str
    min_players: int
    max_players: int
    preferred_players: int
    round_number: int
    failed_rounds: int
    letters: List[str]
    base_category: Optional[str]
    current_mini_category: Optional[str]
    round_start_time: Optional[datetime]
    round_winner_id: Optional[str]
    round_winning_word: Optional[str]
    round_won_at: Optional[datetime]
    shuffle_votes: List[str]
    match_winner_id: Optional[str]
    match_winning_word: Optional[str]
    created_at: datetime
    finished_at: Optional[datetime]


class RoomStateResponse(BaseSchema):
    """Room snapshot plus derived round views."""
    room: RoomResponse
    players: List[RoomPlayerResponse]
    vote_count: int
    vote_threshold: int
    round_active: bool
    round_won: bool
    bonus_window_open: bool
    seconds_remaining: Optional[int]
    events: List[str] = []


class SubmitWordResponse(BaseSchema):
    accepted: bool
    reason: Optional[str] = None
    word: Optional[str] = None
    letter_awarded: Optional[str] = None
    is_tough_letter: bool = False
    is_bonus: bool = False
    is_match_winner: bool = False
    state: RoomStateResponse


class ShuffleVoteResponse(BaseSchema):
    vote_count: int
    vote_threshold: int
    shuffled: bool
    state: RoomStateResponse


class LeaveRoomResponse(BaseSchema):
    left: bool
    room_deleted: bool


class ActiveRoomResponse(BaseSchema):
    room_code: Optional[str] = None
    status: Optional[str] = None


class FlushLogsResponse(BaseSchema):
    processed: int


class RoundHistoryEntryResponse(BaseSchema):
    round_number: int
    letters: List[str]
    mini_category: str
    created_at: datetime


class RoundHistoryResponse(BaseSchema):
    room_code: str
    rounds: List[RoundHistoryEntryResponse]


def room_response(room) -> RoomResponse:
    return RoomResponse(
        room_id=str(room.room_id),
        code=room.code,
        status=room.status,
        room_type=room.room_type,
        host_player_id=room.host_player_id,
        min_players=room.min_players,
        max_players=room.max_players,
        preferred_players=room.preferred_players,
        round_number=room.round_number,
        failed_rounds=room.failed_rounds,
        letters=list(room.letters or []),
        base_category=room.base_category,
        current_mini_category=room.current_mini_category,
        round_start_time=room.round_start_time,
        round_winner_id=room.round_winner_id,
        round_winning_word=room.round_winning_word,
        round_won_at=room.round_won_at,
        shuffle_votes=list(room.shuffle_votes or []),
        match_winner_id=room.match_winner_id,
        match_winning_word=room.match_winning_word,
        created_at=room.created_at,
        finished_at=room.finished_at,
    )


def state_response(snapshot: RoomSnapshot) -> RoomStateResponse:
    return RoomStateResponse(
        room=room_response(snapshot.room),
        players=[RoomPlayerResponse.model_validate(player) for player in snapshot.players],
        vote_count=snapshot.vote_count,
        vote_threshold=snapshot.vote_threshold,
        round_active=snapshot.round_active,
        round_won=snapshot.round_won,
        bonus_window_open=snapshot.bonus_window_open,
        seconds_remaining=snapshot.seconds_remaining,
        events=snapshot.events,
    )
