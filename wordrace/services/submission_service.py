"""Word submission arbitration.

Decides whether a submitted word wins the round, earns the tough-letter
bonus, or wins the match as a grand word. Must run under the room lock and
the room row lock so only one first submission per round can be accepted.
"""
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, UTC, timedelta
from typing import List, Optional, Sequence
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from wordrace.config import get_settings
from wordrace.models.base import RoomStatus
from wordrace.models.room import Room
from wordrace.models.room_player import RoomPlayer
from wordrace.models.used_word import UsedWord
from wordrace.services.analytics_service import AnalyticsService
from wordrace.services.category_stats_service import CategoryStatsService
from wordrace.services.game_session_stats_service import GameSessionStatsService
from wordrace.services.helpers import run_best_effort
from wordrace.services.letter_generator import is_tough_letter
from wordrace.services.room_views import is_bonus_window_open
from wordrace.services.word_validator import WordValidationResult, get_word_validator, normalize_word
from wordrace.utils.exceptions import WrongRoomStatusError

logger = logging.getLogger(__name__)

ROUND_ENDED_REASON = "Round already ended"
BONUS_USED_REASON = "Bonus word already submitted"
MAX_ROUND_SUBMISSIONS = 2


@dataclass
class SubmissionResult:
    accepted: bool
    reason: Optional[str] = None
    word: Optional[str] = None
    letter_awarded: Optional[str] = None
    is_tough_letter: bool = False
    is_bonus: bool = False
    is_match_winner: bool = False


def remaining_letters(letters: Sequence[str], used_letter: str) -> List[str]:
    """Round letters with a single occurrence of ``used_letter`` removed."""
    remaining = [letter.upper() for letter in letters]
    used_letter = (used_letter or "").upper()
    if used_letter in remaining:
        remaining.remove(used_letter)
    return remaining


def is_sub_multiset(word: str, letters: Sequence[str]) -> bool:
    """True if ``word`` can be spelled using each of ``letters`` at most once."""
    available = Counter(letter.upper() for letter in letters)
    needed = Counter(word.upper())
    return all(available[char] >= count for char, count in needed.items())


class SubmissionService:
    """Settles a single word submission against the locked room state."""

    def __init__(
        self,
        db: AsyncSession,
        analytics: Optional[AnalyticsService] = None,
        validator=None,
    ):
        self.db = db
        self.settings = get_settings()
        self.analytics = analytics or AnalyticsService(db)
        self.validator = validator or get_word_validator()
        self.category_stats = CategoryStatsService(db)
        self.session_stats = GameSessionStatsService(db)

    async def submit(self, room: Room, player: RoomPlayer, word: str, is_grand: bool = False) -> SubmissionResult:
        """Arbitrate a submission.

        Rule failures are returned as ``SubmissionResult(accepted=False)``.

        Raises:
            WrongRoomStatusError: If the room is not playing
        """
        if room.status != RoomStatus.PLAYING.value:
            raise WrongRoomStatusError("Game is not active")

        word = normalize_word(word)
        if is_grand:
            return await self._submit_grand(room, player, word)

        if room.round_winner_id:
            if room.round_winner_id != player.player_id:
                return SubmissionResult(accepted=False, reason=ROUND_ENDED_REASON, word=word)
            return await self._submit_bonus(room, player, word)

        return await self._submit_first(room, player, word)

    # ------------------------------------------------------------------
    # Round submissions
    # ------------------------------------------------------------------

    async def _submit_first(self, room: Room, player: RoomPlayer, word: str) -> SubmissionResult:
        letters = [letter.upper() for letter in room.letters or []]
        first_letter = word[:1]
        if first_letter not in letters:
            return self._reject(room, player, word, "Must start with one of the 5 letters")

        category = room.current_mini_category or ""
        used_words = await self._used_words(room, category)
        if word in used_words:
            return self._reject(room, player, word, "Word already used in this category")

        result = await self.validator.validate(
            word, category, allowed_start_letters=letters, used_words=used_words
        )
        if not result.accepted:
            return self._reject(room, player, word, self._rejection_reason(result, category))

        tough = is_tough_letter(first_letter)
        room.round_winner_id = player.player_id
        room.round_winning_word = word
        room.round_won_at = datetime.now(UTC)
        if tough and room.round_start_time:
            room.round_start_time = room.round_start_time + timedelta(
                seconds=self.settings.tough_letter_bonus_seconds
            )

        self._award_letter(player, first_letter)
        self._add_used_word(room, player, category, word)
        await self.db.flush()

        await run_best_effort(
            self.db,
            f"record category letter history for {player.player_id}",
            lambda: self.category_stats.record_category_letter(player.player_id, category, first_letter),
        )
        self.analytics.record_word_submission(room.room_id, player.player_id, category, word, accepted=True)

        logger.info(
            f"Room {room.code} round {room.round_number}: {player.player_id} won with '{word}'"
            + (" (tough letter)" if tough else "")
        )
        return SubmissionResult(
            accepted=True,
            word=word,
            letter_awarded=first_letter,
            is_tough_letter=tough,
        )

    async def _submit_bonus(self, room: Room, player: RoomPlayer, word: str) -> SubmissionResult:
        """Second word from the winner of a tough-letter round, allowed once while the bonus window is open."""
        if not is_bonus_window_open(room):
            return SubmissionResult(accepted=False, reason=ROUND_ENDED_REASON, word=word)
        if await self._count_round_words(room, player.player_id) >= MAX_ROUND_SUBMISSIONS:
            return SubmissionResult(accepted=False, reason=BONUS_USED_REASON, word=word)

        winning_letter = (room.round_winning_word or "")[:1]
        letters = remaining_letters(room.letters or [], winning_letter)
        first_letter = word[:1]
        if first_letter not in letters:
            return self._reject(room, player, word, "Bonus word must start with one of the remaining letters")

        category = room.current_mini_category or ""
        used_words = await self._used_words(room, category)
        if word in used_words:
            return self._reject(room, player, word, "Word already used in this category")

        result = await self.validator.validate(
            word, category, allowed_start_letters=letters, used_words=used_words
        )
        if not result.accepted:
            return self._reject(room, player, word, self._rejection_reason(result, category))

        self._award_letter(player, first_letter)
        self._add_used_word(room, player, category, word)
        await self.db.flush()
        self.analytics.record_word_submission(room.room_id, player.player_id, category, word, accepted=True)

        logger.info(f"Room {room.code} round {room.round_number}: {player.player_id} bonus word '{word}'")
        return SubmissionResult(
            accepted=True,
            word=word,
            letter_awarded=first_letter,
            is_tough_letter=is_tough_letter(first_letter),
            is_bonus=True,
        )

    # ------------------------------------------------------------------
    # Grand word
    # ------------------------------------------------------------------

    async def _submit_grand(self, room: Room, player: RoomPlayer, word: str) -> SubmissionResult:
        await run_best_effort(
            self.db,
            f"track grand attempt for {player.player_id}",
            lambda: self.session_stats.track_grand_attempt(room, player),
        )

        if not room.base_category:
            return SubmissionResult(accepted=False, reason="No base category set for this game", word=word)

        collected = list(player.collected_letters or [])
        if not collected:
            return SubmissionResult(accepted=False, reason="You need to collect some letters first", word=word)

        if not is_sub_multiset(word, collected):
            return self._reject(
                room, player, word, "Word can only use letters you have collected", grand=True
            )

        if len(word) < self.settings.grand_word_min_length:
            return self._reject(
                room,
                player,
                word,
                f"Grand word must be at least {self.settings.grand_word_min_length} letters long",
                grand=True,
            )

        used_words = await self._used_words(room, room.base_category)
        result = await self.validator.validate(word, room.base_category, used_words=used_words)
        if not result.accepted:
            return self._reject(
                room, player, word, self._rejection_reason(result, room.base_category), grand=True
            )

        now = datetime.now(UTC)
        room.status = RoomStatus.FINISHED.value
        room.match_winner_id = player.player_id
        room.match_winning_word = word
        room.finished_at = now
        self._add_used_word(room, player, room.base_category, word)
        await self.db.flush()

        players = await self._room_players(room)
        await run_best_effort(
            self.db,
            f"finalise session stats for room {room.code}",
            lambda: self.session_stats.finalize_session_stats(room, players, player.player_id, word),
        )
        self.analytics.record_word_submission(
            room.room_id, player.player_id, room.base_category, word, accepted=True, is_grand=True
        )

        logger.info(f"Room {room.code}: MATCH WINNER {player.player_id} with grand word '{word}'")
        return SubmissionResult(accepted=True, word=word, is_match_winner=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _reject(
        self,
        room: Room,
        player: RoomPlayer,
        word: str,
        reason: str,
        grand: bool = False,
    ) -> SubmissionResult:
        category = room.base_category if grand else room.current_mini_category
        if category:
            self.analytics.record_word_submission(
                room.room_id, player.player_id, category, word, accepted=False, is_grand=grand, reason=reason
            )
        logger.debug(f"Room {room.code}: rejected '{word}' from {player.player_id}: {reason}")
        return SubmissionResult(accepted=False, reason=reason, word=word)

    @staticmethod
    def _rejection_reason(result: WordValidationResult, category: str) -> str:
        if result.reason:
            return result.reason
        if not result.valid:
            return "Not a valid English word"
        return f"Does not fit category: {category}"

    @staticmethod
    def _award_letter(player: RoomPlayer, letter: str) -> None:
        player.collected_letters = list(player.collected_letters or []) + [letter.upper()]

    def _add_used_word(self, room: Room, player: RoomPlayer, category: str, word: str) -> None:
        self.db.add(
            UsedWord(
                used_word_id=uuid.uuid4(),
                room_id=room.room_id,
                player_id=player.player_id,
                round_number=room.round_number,
                category=category,
                word=word.upper(),
            )
        )

    async def _used_words(self, room: Room, category: str) -> List[str]:
        result = await self.db.execute(
            select(UsedWord.word).where(
                UsedWord.room_id == room.room_id,
                UsedWord.category == category,
            )
        )
        return [used.upper() for used in result.scalars().all()]

    async def _count_round_words(self, room: Room, player_id: str) -> int:
        result = await self.db.execute(
            select(func.count(UsedWord.used_word_id)).where(
                UsedWord.room_id == room.room_id,
                UsedWord.round_number == room.round_number,
                UsedWord.player_id == player_id,
            )
        )
        return result.scalar() or 0

    async def _room_players(self, room: Room) -> List[RoomPlayer]:
        result = await self.db.execute(
            select(RoomPlayer)
            .where(RoomPlayer.room_id == room.room_id)
            .order_by(RoomPlayer.joined_at.asc())
        )
        return list(result.scalars().all())
