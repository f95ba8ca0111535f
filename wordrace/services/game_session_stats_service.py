"""Per-player per-match statistics."""
from datetime import datetime, UTC
from typing import Iterable, List, Optional
from uuid import UUID
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wordrace.models.base import GameResult
from wordrace.models.game_session_stats import GameSessionStats
from wordrace.models.room import Room
from wordrace.models.room_player import RoomPlayer

logger = logging.getLogger(__name__)


class GameSessionStatsService:
    """Maintains the open ``GameSessionStats`` row of each player in a match.

    All writes are best-effort: callers run them inside a savepoint and a
    failure never changes the outcome of the game action.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_open_stats(self, room_id: UUID, player_id: str) -> Optional[GameSessionStats]:
        result = await self.db.execute(
            select(GameSessionStats)
            .where(
                GameSessionStats.room_id == room_id,
                GameSessionStats.player_id == player_id,
                GameSessionStats.game_end_time.is_(None),
            )
            .order_by(GameSessionStats.game_start_time.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def init_session_stats(self, room: Room, players: Iterable[RoomPlayer]) -> int:
        """Open a stats row for every player that does not already have one.

        Returns:
            int: Number of rows created
        """
        players = list(players)
        now = datetime.now(UTC)
        created = 0
        for player in players:
            if await self.get_open_stats(room.room_id, player.player_id):
                continue
            self.db.add(
                GameSessionStats(
                    id=uuid.uuid4(),
                    room_id=room.room_id,
                    room_code=room.code,
                    player_id=player.player_id,
                    display_name=player.display_name,
                    players_count=len(players),
                    game_start_time=now,
                    mini_categories_seen=1,
                    grand_attempt_count=0,
                )
            )
            created += 1
        await self.db.flush()
        logger.debug(f"Initialised {created} session stats rows for room {room.code}")
        return created

    async def update_mini_categories_seen(self, room: Room, count: int) -> None:
        result = await self.db.execute(
            select(GameSessionStats).where(
                GameSessionStats.room_id == room.room_id,
                GameSessionStats.game_end_time.is_(None),
            )
        )
        for stats in result.scalars().all():
            stats.mini_categories_seen = count
        await self.db.flush()

    async def track_grand_attempt(self, room: Room, player: RoomPlayer) -> None:
        """Count a grand attempt; the first one also snapshots letters and rounds."""
        stats = await self.get_open_stats(room.room_id, player.player_id)
        if stats is None:
            logger.debug(f"No open session stats for {player.player_id} in room {room.code}")
            return
        if stats.grand_attempt_count == 0:
            stats.first_grand_attempt_time = datetime.now(UTC)
            stats.letters_at_first_grand_attempt = len(player.collected_letters or [])
            stats.rounds_before_first_grand_attempt = room.round_number
        stats.grand_attempt_count += 1
        await self.db.flush()

    async def finalize_session_stats(
        self,
        room: Room,
        players: Iterable[RoomPlayer],
        winner_id: str,
        winning_word: str,
    ) -> None:
        """Close every open row for the match with the final result."""
        now = datetime.now(UTC)
        for player in players:
            stats = await self.get_open_stats(room.room_id, player.player_id)
            if stats is None:
                continue
            is_winner = player.player_id == winner_id
            stats.game_end_time = now
            stats.total_letters_collected = len(player.collected_letters or [])
            stats.total_rounds = room.round_number
            stats.result = GameResult.WIN.value if is_winner else GameResult.LOSS.value
            stats.final_grand_word = winning_word if is_winner else None
        await self.db.flush()
        logger.info(f"Finalised session stats for room {room.code}, winner {winner_id}")

    async def get_player_stats(self, player_id: str, limit: int = 20) -> List[GameSessionStats]:
        result = await self.db.execute(
            select(GameSessionStats)
            .where(GameSessionStats.player_id == player_id)
            .order_by(GameSessionStats.game_start_time.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
