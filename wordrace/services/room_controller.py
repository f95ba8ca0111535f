"""Room state machine controller.

Every room operation takes the per-room lock, opens one transaction, locks
the room row and runs the relevant services before committing. Membership
changes also lock every other room the player is leaving. Analytics
events produced along the way are published only after the commit.
"""
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Iterable, List, Optional, Tuple
import logging
import random

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from wordrace.config import get_settings
from wordrace.models.base import RoomStatus, RoomType
from wordrace.models.room import Room
from wordrace.models.round_history import RoundHistory
from wordrace.models.used_word import UsedWord
from wordrace.services.analytics_service import AnalyticsService
from wordrace.services.player_lifecycle_service import PlayerLifecycleService
from wordrace.services.room_service import RoomService, normalize_code
from wordrace.services.room_views import RoomSnapshot, build_snapshot
from wordrace.services.round_service import RoundService
from wordrace.services.submission_service import SubmissionResult, SubmissionService
from wordrace.utils import lock_client
from wordrace.utils.datetime_helpers import seconds_since
from wordrace.utils.exceptions import RoomNotFoundError, WrongRoomStatusError

logger = logging.getLogger(__name__)

ROUND_EXPIRED_REASON = "Round time is up"
MATCHMAKING_LOCK = "matchmaking"


def room_lock_name(code: str) -> str:
    return f"room:{normalize_code(code)}"


def room_lock_names(codes: Iterable[str]) -> List[str]:
    """Lock names for ``codes``, deduplicated and sorted into acquisition order."""
    return [room_lock_name(code) for code in sorted({normalize_code(code) for code in codes})]


@dataclass
class ShuffleVoteResult:
    vote_count: int
    vote_threshold: int
    shuffled: bool
    snapshot: RoomSnapshot


class RoomController:
    """Top-level orchestrator for room operations."""

    def __init__(self, db: AsyncSession, validator=None, rng: Optional[random.Random] = None):
        self.db = db
        self.settings = get_settings()
        self.analytics = AnalyticsService(db)
        self.room_service = RoomService(db)
        self.round_service = RoundService(db, analytics=self.analytics, rng=rng)
        self.submission_service = SubmissionService(db, analytics=self.analytics, validator=validator)
        self.lifecycle = PlayerLifecycleService(db)

    # ------------------------------------------------------------------
    # Transaction scaffolding
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self, *lock_names: str):
        """Hold the named locks, in the order given, around one transaction; then publish analytics."""
        async with AsyncExitStack() as locks:
            for lock_name in lock_names:
                await locks.enter_async_context(
                    lock_client.lock(lock_name, timeout=self.settings.room_lock_timeout_seconds)
                )
            try:
                yield
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                self.analytics.discard()
                raise
        self.analytics.publish()

    @asynccontextmanager
    async def _locked_room(self, code: str):
        """Room lock + transaction + ``SELECT ... FOR UPDATE`` on the room row."""
        code = normalize_code(code)
        async with self._transaction(room_lock_name(code)):
            room = await self.room_service.get_room_by_code(code, for_update=True)
            yield room

    def _player_lock(self, player_id: str):
        return lock_client.lock(f"player:{player_id}", timeout=self.settings.room_lock_timeout_seconds)

    async def _snapshot(self, room: Room, now: Optional[datetime] = None, events=()) -> RoomSnapshot:
        players = await self.room_service.get_players(room.room_id)
        return build_snapshot(room, players, now=now, events=events)

    # ------------------------------------------------------------------
    # Membership
    #
    # Lock order: player, then matchmaking, then every touched room by
    # sorted code. Room-only operations take exactly one room lock.
    # ------------------------------------------------------------------

    async def create_room(
        self,
        player_id: str,
        display_name: str,
        room_type: RoomType = RoomType.PRIVATE,
    ) -> RoomSnapshot:
        async with self._player_lock(player_id):
            current_codes = await self.room_service.get_active_room_codes(player_id)
            async with self._transaction(*room_lock_names(current_codes)):
                room = await self.room_service.create_room(player_id, display_name, room_type)
                snapshot = await self._snapshot(room)
        return snapshot

    async def join_room(self, code: str, player_id: str, display_name: str) -> RoomSnapshot:
        code = normalize_code(code)
        async with self._player_lock(player_id):
            current_codes = await self.room_service.get_active_room_codes(player_id)
            async with self._transaction(*room_lock_names([code, *current_codes])):
                room = await self.room_service.join_room(code, player_id, display_name)
                snapshot = await self._snapshot(room)
        return snapshot

    async def leave_room(self, code: str, player_id: str) -> bool:
        """Returns True if the room was deleted."""
        async with self._locked_room(code) as room:
            deleted = await self.room_service.leave_room(room, player_id)
        logger.info(f"Player {player_id} left room {room.code}")
        return deleted

    async def matchmake(self, player_id: str, display_name: str) -> RoomSnapshot:
        async with self._player_lock(player_id):
            async with lock_client.lock(MATCHMAKING_LOCK, timeout=self.settings.room_lock_timeout_seconds):
                current_codes = await self.room_service.get_active_room_codes(player_id)
                candidate = None
                if not current_codes:
                    candidate = await self.room_service.find_public_room_with_space()
                candidate_code = candidate.code if candidate else None
                lock_codes = current_codes or ([candidate_code] if candidate_code else [])

                async with self._transaction(*room_lock_names(lock_codes)):
                    room = await self.room_service.matchmake(player_id, display_name, candidate_code)
                    snapshot = await self._snapshot(room)
        return snapshot

    async def get_active_room(self, player_id: str) -> Optional[Room]:
        return await self.room_service.get_active_room_for_player(player_id)

    # ------------------------------------------------------------------
    # Match flow
    # ------------------------------------------------------------------

    async def start_match(self, code: str, player_id: str) -> RoomSnapshot:
        async with self._locked_room(code) as room:
            players = await self.room_service.get_players(room.room_id)
            await self.round_service.start_match(room, players, player_id)
            snapshot = await self._snapshot(room)
        return snapshot

    async def complete_tutorial(self, code: str, player_id: str) -> RoomSnapshot:
        async with self._locked_room(code) as room:
            player = await self.room_service.require_player(room, player_id)
            player.tutorial_complete = True
            await self.db.flush()

            players = await self.room_service.get_players(room.room_id)
            if room.status == RoomStatus.TUTORIAL.value and all(p.tutorial_complete for p in players):
                logger.info(f"All players finished the tutorial in room {room.code}")
                await self.round_service.begin_playing(room, players)
            snapshot = await self._snapshot(room)
        return snapshot

    async def submit_word(
        self,
        code: str,
        player_id: str,
        word: str,
        is_grand: bool = False,
    ) -> Tuple[SubmissionResult, RoomSnapshot]:
        async with self._locked_room(code) as room:
            player = await self.room_service.require_player(room, player_id)

            if not is_grand and self._round_expired(room):
                result = SubmissionResult(accepted=False, reason=ROUND_EXPIRED_REASON, word=word)
            else:
                result = await self.submission_service.submit(room, player, word, is_grand=is_grand)
            snapshot = await self._snapshot(room)
        return result, snapshot

    def _round_expired(self, room: Room) -> bool:
        """The timer ran out but no poll has applied the timeout yet."""
        if room.status != RoomStatus.PLAYING.value or room.round_winner_id or not room.round_start_time:
            return False
        return seconds_since(room.round_start_time) > self.settings.round_duration_seconds

    async def vote_shuffle(self, code: str, player_id: str) -> ShuffleVoteResult:
        async with self._locked_room(code) as room:
            await self.room_service.require_player(room, player_id)
            players = await self.room_service.get_players(room.room_id)
            vote_count, threshold, shuffled = await self.round_service.vote_shuffle(room, players, player_id)
            snapshot = await self._snapshot(room, events=["shuffled"] if shuffled else ())
        return ShuffleVoteResult(vote_count, threshold, shuffled, snapshot)

    async def poll_state(self, code: str, player_id: str) -> RoomSnapshot:
        """Apply every time-driven transition that is due and return the room."""
        await self._sweep()

        events: List[str] = []
        deleted = False
        async with self._locked_room(code) as room:
            now = datetime.now(UTC)
            player = await self.room_service.get_player(room.room_id, player_id)
            if player:
                player.last_seen_at = now
                await self.db.flush()

            if room.status == RoomStatus.WAITING.value:
                deleted = await self.lifecycle.kick_inactive_from_waiting(room, now)

            if not deleted:
                kicked = await self.lifecycle.kick_inactive_from_game(room, now)
                events.extend(f"kicked:{kicked_id}" for kicked_id in kicked)

                if await self._auto_start(room):
                    events.append("auto_started")

                players = await self.room_service.get_players(room.room_id)
                if await self.round_service.check_timeout(room, players, now):
                    events.append("round_timeout")
                if await self.round_service.check_win_advance(room, players, now):
                    events.append("round_advanced")

                snapshot = await self._snapshot(room, now=now, events=events)

        if deleted:
            raise RoomNotFoundError(f"Room {room.code} was closed")
        return snapshot

    async def _sweep(self) -> None:
        """Stale-room sweep in its own transaction, before any room lock is held."""
        try:
            deleted = await self.lifecycle.sweep_stale_rooms()
            await self.db.commit()
            if deleted:
                logger.info(f"Swept {deleted} stale rooms")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Stale room sweep failed: {e}", exc_info=True)

    async def _auto_start(self, room: Room) -> bool:
        """Start a public lobby once it reaches its preferred size."""
        if (
            room.status != RoomStatus.WAITING.value
            or room.room_type != RoomType.PUBLIC.value
            or not room.preferred_players
        ):
            return False

        players = await self.room_service.get_players(room.room_id)
        if len(players) < room.preferred_players:
            return False

        savepoint = await self.db.begin_nested()
        try:
            await self.round_service.start_first_round(room, players)
            await savepoint.commit()
        except Exception as e:
            await savepoint.rollback()
            await self.db.refresh(room)
            logger.error(f"Auto-start failed for room {room.code}: {e}", exc_info=True)
            return False

        logger.info(f"Auto-started public room {room.code} with {len(players)} players")
        return True

    async def play_again(self, code: str, player_id: str) -> RoomSnapshot:
        """Reset a finished room for a rematch with the same roster."""
        async with self._locked_room(code) as room:
            await self.room_service.require_player(room, player_id)
            if room.status != RoomStatus.FINISHED.value:
                raise WrongRoomStatusError("Game is not finished")

            room.status = RoomStatus.WAITING.value
            room.round_number = 0
            room.failed_rounds = 0
            room.letters = []
            room.base_category = None
            room.current_mini_category = None
            room.current_mini_category_id = None
            room.round_start_time = None
            room.round_winner_id = None
            room.round_winning_word = None
            room.round_won_at = None
            room.shuffle_votes = []
            room.used_mini_category_ids = []
            room.failed_mini_category_ids = []
            room.match_winner_id = None
            room.match_winning_word = None
            room.finished_at = None

            now = datetime.now(UTC)
            players = await self.room_service.get_players(room.room_id)
            for player in players:
                player.collected_letters = []
                player.is_ready = True
                player.last_seen_at = now

            await self.db.execute(delete(UsedWord).where(UsedWord.room_id == room.room_id))
            await self.db.execute(delete(RoundHistory).where(RoundHistory.room_id == room.room_id))
            await self.db.flush()
            snapshot = await self._snapshot(room)

        self.analytics.clear_room(room.room_id)
        logger.info(f"Room {room.code} reset for a rematch by {player_id}")
        return snapshot

    # ------------------------------------------------------------------
    # Analytics and history
    # ------------------------------------------------------------------

    async def flush_logs(self, code: str) -> int:
        room = await self.room_service.get_room_by_code(code)
        return await self.analytics.flush_room(room.room_id)

    async def get_round_history(self, code: str, player_id: str) -> List[RoundHistory]:
        room = await self.room_service.get_room_by_code(code)
        await self.room_service.require_player(room, player_id)
        return await self.round_service.get_round_history(room)
