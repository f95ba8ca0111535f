"""Round scheduling: match start, timeouts, win-advance and shuffle votes.

Nothing here runs on a timer. Every transition is recomputed from stored
timestamps whenever a request reaches the room, and every method expects the
caller to hold the room lock and the room row lock.
"""
from datetime import datetime, UTC
from typing import List, Optional, Sequence, Tuple
import logging
import random
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from wordrace.config import get_settings
from wordrace.models.base import RoomStatus
from wordrace.models.room import Room
from wordrace.models.room_player import RoomPlayer
from wordrace.models.round_history import RoundHistory
from wordrace.models.used_word import UsedWord
from wordrace.services.analytics_service import AnalyticsService
from wordrace.services.category_selector import CategorySelector
from wordrace.services.category_stats_service import CategoryStatsService
from wordrace.services.game_session_stats_service import GameSessionStatsService
from wordrace.services.helpers import run_best_effort
from wordrace.services.letter_generator import generate_round_letters, is_tough_letter
from wordrace.utils.datetime_helpers import seconds_since
from wordrace.utils.exceptions import NotEnoughPlayersError, NotHostError, WrongRoomStatusError

logger = logging.getLogger(__name__)


def vote_threshold(player_count: int) -> int:
    """Strict majority of the current roster."""
    return player_count // 2 + 1


class RoundService:
    """Applies round-level transitions to a locked room."""

    def __init__(
        self,
        db: AsyncSession,
        analytics: Optional[AnalyticsService] = None,
        rng: Optional[random.Random] = None,
    ):
        self.db = db
        self.settings = get_settings()
        self.rng = rng
        self.analytics = analytics or AnalyticsService(db)
        self.selector = CategorySelector(db, rng=rng)
        self.category_stats = CategoryStatsService(db)
        self.session_stats = GameSessionStatsService(db)

    # ------------------------------------------------------------------
    # Match start
    # ------------------------------------------------------------------

    async def start_match(self, room: Room, players: Sequence[RoomPlayer], requester_id: str) -> Room:
        """Host starts the match, or force-skips the tutorial.

        Raises:
            NotHostError: Requester is not the host
            WrongRoomStatusError: Room is neither waiting nor in tutorial
            NotEnoughPlayersError: Fewer than ``min_players`` in the room
        """
        if room.host_player_id != requester_id:
            raise NotHostError("Only the host can start the game")

        if room.status == RoomStatus.TUTORIAL.value:
            for player in players:
                player.tutorial_complete = True
            logger.info(f"Host {requester_id} skipped tutorial in room {room.code}")
            await self.begin_playing(room, players)
            return room

        if room.status != RoomStatus.WAITING.value:
            raise WrongRoomStatusError("Game has already started")

        await self.start_first_round(room, players)
        return room

    async def start_first_round(self, room: Room, players: Sequence[RoomPlayer]) -> Room:
        """Set up round 1 and move to tutorial or playing. Room must be waiting."""
        if len(players) < room.min_players:
            raise NotEnoughPlayersError(f"Need at least {room.min_players} players to start")

        player_ids = [player.player_id for player in players]

        if not room.base_category:
            base = await self.selector.choose_base_category(player_ids)
            room.base_category = base.name

        letters = generate_round_letters(self.rng)
        mini = await self.selector.choose_mini_category(
            letters,
            player_ids,
            used_ids=room.used_mini_category_ids or [],
            failed_ids=[],
            consecutive_failures=0,
            base_category=room.base_category,
        )

        room.letters = letters
        room.current_mini_category = mini.name
        room.current_mini_category_id = mini.id
        room.used_mini_category_ids = list(room.used_mini_category_ids or []) + [mini.id]
        room.failed_mini_category_ids = []
        room.round_number = 1
        room.failed_rounds = 0
        room.shuffle_votes = []
        self._clear_winner(room)
        await self._write_round_history(room)

        if all(player.tutorial_complete for player in players):
            await self.begin_playing(room, players)
        else:
            room.status = RoomStatus.TUTORIAL.value
            room.round_start_time = None
            logger.info(f"Room {room.code} entered tutorial with base category {room.base_category}")

        await self.db.flush()
        return room

    async def begin_playing(self, room: Room, players: Sequence[RoomPlayer]) -> None:
        """Start the round timer and open session stats for the match."""
        room.status = RoomStatus.PLAYING.value
        room.round_start_time = datetime.now(UTC)
        await self.db.flush()

        player_ids = [player.player_id for player in players]
        await run_best_effort(
            self.db,
            f"initialise session stats for room {room.code}",
            lambda: self.session_stats.init_session_stats(room, players),
        )
        await run_best_effort(
            self.db,
            f"record match categories for room {room.code}",
            lambda: self.category_stats.record_match_categories(
                room.room_id, player_ids, room.base_category, room.current_mini_category
            ),
        )
        logger.info(
            f"Room {room.code} playing: base={room.base_category}, "
            f"mini={room.current_mini_category}, letters={room.letters}"
        )

    # ------------------------------------------------------------------
    # Scheduled transitions
    # ------------------------------------------------------------------

    async def check_timeout(
        self,
        room: Room,
        players: Sequence[RoomPlayer],
        now: Optional[datetime] = None,
    ) -> bool:
        """Apply a dead round if the timer ran out with no winner.

        Returns:
            bool: True if the round timed out
        """
        if room.status != RoomStatus.PLAYING.value or room.round_winner_id or not room.round_start_time:
            return False

        elapsed = seconds_since(room.round_start_time, now)
        if elapsed <= self.settings.round_duration_seconds:
            return False

        old_category = room.current_mini_category
        if old_category:
            self.analytics.record_dead_round(room.room_id, old_category, room.round_number)

        failed_rounds = room.failed_rounds + 1
        letters = list(room.letters or [])
        if failed_rounds >= self.settings.failed_rounds_before_reshuffle:
            logger.info(f"Room {room.code}: {failed_rounds} failed rounds, regenerating letters")
            letters = generate_round_letters(self.rng)
            failed_rounds = 0

        failed_ids = list(room.failed_mini_category_ids or [])
        if room.current_mini_category_id and room.current_mini_category_id not in failed_ids:
            failed_ids.append(room.current_mini_category_id)

        mini = await self.selector.choose_mini_category(
            letters,
            [player.player_id for player in players],
            used_ids=room.used_mini_category_ids or [],
            failed_ids=failed_ids,
            consecutive_failures=failed_rounds,
            base_category=room.base_category,
        )

        room.failed_rounds = failed_rounds
        room.letters = letters
        room.failed_mini_category_ids = failed_ids
        room.current_mini_category = mini.name
        room.current_mini_category_id = mini.id
        room.used_mini_category_ids = list(room.used_mini_category_ids or []) + [mini.id]
        room.round_start_time = datetime.now(UTC)
        room.shuffle_votes = []
        await self._write_round_history(room)
        await self.db.flush()

        await self._update_categories_seen(room)
        logger.info(
            f"Room {room.code}: timeout after {elapsed:.0f}s, mini category "
            f"'{old_category}' -> '{mini.name}' (failures: {room.failed_rounds})"
        )
        return True

    async def check_win_advance(self, room: Room, players: Sequence[RoomPlayer], now: Optional[datetime] = None) -> bool:
        """Advance to the next round once the win overlay (or bonus window) is over.

        Returns:
            bool: True if the room advanced
        """
        if room.status != RoomStatus.PLAYING.value or not room.round_winner_id or not room.round_won_at:
            return False

        elapsed = seconds_since(room.round_won_at, now)
        if elapsed < self.settings.win_overlay_seconds:
            return False

        winning_word = room.round_winning_word or ""
        if winning_word and is_tough_letter(winning_word[0]):
            if elapsed < self.settings.bonus_safety_timeout_seconds:
                submissions = await self._count_round_submissions(room, room.round_winner_id)
                if submissions < 2:
                    return False

        await self.advance_round(room, players, reason="win")
        return True

    async def advance_round(
        self,
        room: Room,
        players: Sequence[RoomPlayer],
        reason: str,
        mark_current_failed: bool = False,
    ) -> None:
        """Move to the next round with fresh letters and a new mini category."""
        failed_ids = list(room.failed_mini_category_ids or [])
        if mark_current_failed and room.current_mini_category_id and room.current_mini_category_id not in failed_ids:
            failed_ids.append(room.current_mini_category_id)

        letters = generate_round_letters(self.rng)
        player_ids = [player.player_id for player in players]
        mini = await self.selector.choose_mini_category(
            letters,
            player_ids,
            used_ids=room.used_mini_category_ids or [],
            failed_ids=failed_ids,
            consecutive_failures=0,
            base_category=room.base_category,
        )

        previous_round = room.round_number
        room.round_number = previous_round + 1
        self._clear_winner(room)
        room.letters = letters
        room.current_mini_category = mini.name
        room.current_mini_category_id = mini.id
        room.used_mini_category_ids = list(room.used_mini_category_ids or []) + [mini.id]
        room.failed_mini_category_ids = failed_ids
        room.failed_rounds = 0
        room.shuffle_votes = []
        room.round_start_time = datetime.now(UTC)
        await self._write_round_history(room)
        await self.db.flush()

        await self._update_categories_seen(room)
        await run_best_effort(
            self.db,
            f"record mini category history for room {room.code}",
            lambda: self.category_stats.record_mini_category(room.room_id, player_ids, mini.name),
        )
        logger.info(
            f"Room {room.code}: advanced from round {previous_round} to {room.round_number} "
            f"({reason}), mini category '{mini.name}'"
        )

    # ------------------------------------------------------------------
    # Shuffle vote
    # ------------------------------------------------------------------

    async def vote_shuffle(self, room: Room, players: Sequence[RoomPlayer], player_id: str) -> Tuple[int, int, bool]:
        """Record a shuffle vote and force-advance on a majority.

        Returns:
            Tuple of (vote_count, threshold, shuffled)
        """
        if room.status != RoomStatus.PLAYING.value:
            raise WrongRoomStatusError("Shuffle votes are only allowed while playing")

        threshold = vote_threshold(len(players))
        votes = list(room.shuffle_votes or [])
        if player_id not in votes:
            votes.append(player_id)
            room.shuffle_votes = votes

        if len(votes) < threshold:
            await self.db.flush()
            return len(votes), threshold, False

        logger.info(f"Room {room.code}: shuffle vote passed ({len(votes)}/{threshold})")
        await self.advance_round(room, players, reason="shuffle", mark_current_failed=True)
        return len(votes), threshold, True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _clear_winner(room: Room) -> None:
        room.round_winner_id = None
        room.round_winning_word = None
        room.round_won_at = None

    async def _count_round_submissions(self, room: Room, player_id: str) -> int:
        result = await self.db.execute(
            select(func.count(UsedWord.used_word_id)).where(
                UsedWord.room_id == room.room_id,
                UsedWord.round_number == room.round_number,
                UsedWord.player_id == player_id,
            )
        )
        return result.scalar() or 0

    async def _write_round_history(self, room: Room) -> None:
        """Insert or replace the history row for the room's current round."""
        result = await self.db.execute(
            select(RoundHistory).where(
                RoundHistory.room_id == room.room_id,
                RoundHistory.round_number == room.round_number,
            )
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            self.db.add(
                RoundHistory(
                    round_history_id=uuid.uuid4(),
                    room_id=room.room_id,
                    round_number=room.round_number,
                    letters=list(room.letters),
                    mini_category=room.current_mini_category,
                )
            )
        else:
            entry.letters = list(room.letters)
            entry.mini_category = room.current_mini_category

    async def _update_categories_seen(self, room: Room) -> None:
        seen = len(room.used_mini_category_ids or [])
        await run_best_effort(
            self.db,
            f"update mini categories seen for room {room.code}",
            lambda: self.session_stats.update_mini_categories_seen(room, seen),
        )

    async def get_round_history(self, room: Room) -> List[RoundHistory]:
        result = await self.db.execute(
            select(RoundHistory)
            .where(RoundHistory.room_id == room.room_id)
            .order_by(RoundHistory.round_number.asc())
        )
        return list(result.scalars().all())

