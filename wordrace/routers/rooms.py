"""Room API router."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from wordrace.database import get_db
from wordrace.dependencies import get_player_id
from wordrace.schemas.room import (
    ActiveRoomResponse,
    CreateRoomRequest,
    FlushLogsResponse,
    JoinRoomRequest,
    LeaveRoomResponse,
    MatchmakingRequest,
    RoomStateResponse,
    RoundHistoryEntryResponse,
    RoundHistoryResponse,
    ShuffleVoteResponse,
    SubmitWordRequest,
    SubmitWordResponse,
    state_response,
)
from wordrace.services.room_controller import RoomController
from wordrace.utils.exceptions import (
    LockTimeoutError,
    NotEnoughPlayersError,
    NotHostError,
    PlayerNotInRoomError,
    RoomCodeGenerationError,
    RoomFullError,
    RoomNotFoundError,
    WordRaceException,
    WrongRoomStatusError,
)

logger = logging.getLogger(__name__)
router = APIRouter()

ERROR_STATUS_CODES = {
    RoomNotFoundError: 404,
    PlayerNotInRoomError: 403,
    NotHostError: 403,
    WrongRoomStatusError: 409,
    RoomFullError: 409,
    NotEnoughPlayersError: 400,
    RoomCodeGenerationError: 500,
    LockTimeoutError: 503,
}


def _http_error(exc: WordRaceException) -> HTTPException:
    """Map a game exception to an HTTP error with its message as detail."""
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    logger.error(f"Unmapped game error: {type(exc).__name__}: {exc}")
    return HTTPException(status_code=400, detail=str(exc))


@router.post("/create", response_model=RoomStateResponse)
async def create_room(
    request: CreateRoomRequest,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a room with the caller as host."""
    try:
        snapshot = await RoomController(db).create_room(player_id, request.display_name, request.room_type)
        return state_response(snapshot)
    except WordRaceException as e:
        raise _http_error(e)


@router.post("/join", response_model=RoomStateResponse)
async def join_room(
    request: JoinRoomRequest,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    """Join a waiting room by code, or rejoin a room the caller is already in."""
    try:
        snapshot = await RoomController(db).join_room(request.room_code, player_id, request.display_name)
        return state_response(snapshot)
    except WordRaceException as e:
        raise _http_error(e)


@router.post("/matchmaking", response_model=RoomStateResponse)
async def matchmaking(
    request: MatchmakingRequest,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    """Place the caller in a public room, creating one when none has space."""
    try:
        snapshot = await RoomController(db).matchmake(player_id, request.display_name)
        return state_response(snapshot)
    except WordRaceException as e:
        raise _http_error(e)


@router.get("/active", response_model=ActiveRoomResponse)
async def get_active_room(
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    room = await RoomController(db).get_active_room(player_id)
    if not room:
        return ActiveRoomResponse()
    return ActiveRoomResponse(room_code=room.code, status=room.status)


@router.post("/{code}/leave", response_model=LeaveRoomResponse)
async def leave_room(
    code: str,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        deleted = await RoomController(db).leave_room(code, player_id)
        return LeaveRoomResponse(left=True, room_deleted=deleted)
    except WordRaceException as e:
        raise _http_error(e)


@router.post("/{code}/start", response_model=RoomStateResponse)
async def start_match(
    code: str,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    """Host starts the match (or skips the tutorial for everyone)."""
    try:
        snapshot = await RoomController(db).start_match(code, player_id)
        return state_response(snapshot)
    except WordRaceException as e:
        raise _http_error(e)


@router.post("/{code}/tutorial-complete", response_model=RoomStateResponse)
async def complete_tutorial(
    code: str,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        snapshot = await RoomController(db).complete_tutorial(code, player_id)
        return state_response(snapshot)
    except WordRaceException as e:
        raise _http_error(e)


@router.post("/{code}/submit-word", response_model=SubmitWordResponse)
async def submit_word(
    code: str,
    request: SubmitWordRequest,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    """Submit a round word or a grand word.

    Rule failures come back with ``accepted: false`` and a reason rather than
    an HTTP error.
    """
    try:
        result, snapshot = await RoomController(db).submit_word(
            code, player_id, request.word, is_grand=request.is_grand
        )
    except WordRaceException as e:
        raise _http_error(e)

    return SubmitWordResponse(
        accepted=result.accepted,
        reason=result.reason,
        word=result.word,
        letter_awarded=result.letter_awarded,
        is_tough_letter=result.is_tough_letter,
        is_bonus=result.is_bonus,
        is_match_winner=result.is_match_winner,
        state=state_response(snapshot),
    )


@router.post("/{code}/shuffle-vote", response_model=ShuffleVoteResponse)
async def shuffle_vote(
    code: str,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        vote = await RoomController(db).vote_shuffle(code, player_id)
    except WordRaceException as e:
        raise _http_error(e)

    return ShuffleVoteResponse(
        vote_count=vote.vote_count,
        vote_threshold=vote.vote_threshold,
        shuffled=vote.shuffled,
        state=state_response(vote.snapshot),
    )


@router.get("/{code}/state", response_model=RoomStateResponse)
async def get_room_state(
    code: str,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    """Poll the room. Applies any kicks, auto-start, timeout or round advance that is due."""
    try:
        snapshot = await RoomController(db).poll_state(code, player_id)
        return state_response(snapshot)
    except WordRaceException as e:
        raise _http_error(e)


@router.post("/{code}/play-again", response_model=RoomStateResponse)
async def play_again(
    code: str,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        snapshot = await RoomController(db).play_again(code, player_id)
        return state_response(snapshot)
    except WordRaceException as e:
        raise _http_error(e)


@router.post("/{code}/flush-logs", response_model=FlushLogsResponse)
async def flush_logs(
    code: str,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    """Apply the room's pending analytics to category statistics."""
    try:
        processed = await RoomController(db).flush_logs(code)
        return FlushLogsResponse(processed=processed)
    except WordRaceException as e:
        raise _http_error(e)


@router.get("/{code}/round-history", response_model=RoundHistoryResponse)
async def get_round_history(
    code: str,
    player_id: str = Depends(get_player_id),
    db: AsyncSession = Depends(get_db),
):
    try:
        rounds = await RoomController(db).get_round_history(code, player_id)
    except WordRaceException as e:
        raise _http_error(e)

    return RoundHistoryResponse(
        room_code=code.upper(),
        rounds=[RoundHistoryEntryResponse.model_validate(entry) for entry in rounds],
    )
