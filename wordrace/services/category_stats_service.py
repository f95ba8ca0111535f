"""Category statistics and per-player category history."""
from datetime import datetime, UTC
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple
from uuid import UUID
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from wordrace.config import get_settings
from wordrace.models.base import CategoryType
from wordrace.models.category_letter_history import CategoryLetterHistory
from wordrace.models.category_stats import CategoryStats
from wordrace.models.player_category_history import PlayerCategoryHistory
from wordrace.services.category_catalog import get_category_catalog
from wordrace.services.category_scoring import compute_difficulty

logger = logging.getLogger(__name__)


class CategoryStatsService:
    """Reads and writes the data behind dynamic difficulty and anti-repetition."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()
        self.catalog = get_category_catalog()

    # ------------------------------------------------------------------
    # Dynamic difficulty
    # ------------------------------------------------------------------

    async def get_difficulty_scores(self, category_names: Sequence[str]) -> Dict[str, int]:
        """Difficulty (1-10) for each name, served from the catalog cache when fresh."""
        scores, missing = self.catalog.get_cached_difficulties(category_names)
        if not missing:
            return scores

        result = await self.db.execute(
            select(CategoryStats).where(CategoryStats.category_name.in_(missing))
        )
        rows = {row.category_name: row for row in result.scalars().all()}

        loaded = {}
        for name in missing:
            row = rows.get(name)
            if row is None:
                loaded[name] = compute_difficulty(0, 0, 0)
            else:
                loaded[name] = compute_difficulty(row.total_attempts, row.successful_attempts, row.dead_rounds)

        self.catalog.store_difficulties(loaded)
        scores.update(loaded)
        return scores

    async def get_category_stats(self, category_name: str) -> Optional[CategoryStats]:
        return await self.db.get(CategoryStats, category_name)

    async def _get_or_create_stats(self, category_name: str) -> CategoryStats:
        stats = await self.db.get(CategoryStats, category_name)
        if stats is None:
            stats = CategoryStats(
                category_name=category_name,
                total_attempts=0,
                successful_attempts=0,
                dead_rounds=0,
            )
            self.db.add(stats)
        return stats

    async def record_word_submission(self, category_name: str, accepted: bool) -> None:
        """Count one attempt (and a success when accepted) against a category."""
        stats = await self._get_or_create_stats(category_name)
        stats.total_attempts += 1
        if accepted:
            stats.successful_attempts += 1
        await self.db.flush()

    async def record_dead_round(self, category_name: str) -> None:
        stats = await self._get_or_create_stats(category_name)
        stats.dead_rounds += 1
        await self.db.flush()

    # ------------------------------------------------------------------
    # Cross-game category history
    # ------------------------------------------------------------------

    async def _latest_game_number(self, player_id: str) -> int:
        result = await self.db.execute(
            select(func.max(PlayerCategoryHistory.game_number))
            .where(PlayerCategoryHistory.player_id == player_id)
        )
        return result.scalar() or 0

    async def get_recent_category_names(self, player_ids: Iterable[str]) -> Set[str]:
        """Category names any of the players saw in their last N games."""
        games = self.settings.games_before_category_repeat
        names: Set[str] = set()

        for player_id in set(player_ids):
            latest = await self._latest_game_number(player_id)
            if latest == 0:
                continue
            result = await self.db.execute(
                select(PlayerCategoryHistory.category_name)
                .where(
                    PlayerCategoryHistory.player_id == player_id,
                    PlayerCategoryHistory.game_number > latest - games,
                )
            )
            names.update(result.scalars().all())

        return names

    async def record_match_categories(
        self,
        room_id: UUID,
        player_ids: Iterable[str],
        base_category: Optional[str],
        mini_category: Optional[str],
    ) -> None:
        """Open a new game number for each player and record the match's first categories."""
        for player_id in set(player_ids):
            game_number = await self._latest_game_number(player_id) + 1
            if base_category:
                self._add_history(player_id, room_id, game_number, base_category, CategoryType.BASE)
            if mini_category:
                self._add_history(player_id, room_id, game_number, mini_category, CategoryType.MINI)
        await self.db.flush()

    async def record_mini_category(self, room_id: UUID, player_ids: Iterable[str], mini_category: str) -> None:
        """Record a later-round mini category under each player's current game number."""
        for player_id in set(player_ids):
            result = await self.db.execute(
                select(func.max(PlayerCategoryHistory.game_number))
                .where(
                    PlayerCategoryHistory.player_id == player_id,
                    PlayerCategoryHistory.room_id == room_id,
                )
            )
            game_number = result.scalar()
            if game_number is None:
                game_number = await self._latest_game_number(player_id) + 1
            self._add_history(player_id, room_id, game_number, mini_category, CategoryType.MINI)
        await self.db.flush()

    def _add_history(
        self,
        player_id: str,
        room_id: UUID,
        game_number: int,
        category_name: str,
        category_type: CategoryType,
    ) -> None:
        self.db.add(
            PlayerCategoryHistory(
                history_id=uuid.uuid4(),
                player_id=player_id,
                room_id=room_id,
                game_number=game_number,
                category_name=category_name,
                category_type=category_type.value,
            )
        )

    # ------------------------------------------------------------------
    # Category + letter history
    # ------------------------------------------------------------------

    async def get_recent_category_letter_pairs(self, player_ids: Iterable[str]) -> Set[Tuple[str, str]]:
        """Recent (lower-cased category name, letter) pairs across the players."""
        limit = self.settings.category_letter_history_limit
        pairs: Set[Tuple[str, str]] = set()

        for player_id in set(player_ids):
            result = await self.db.execute(
                select(CategoryLetterHistory.category_name, CategoryLetterHistory.letter)
                .where(CategoryLetterHistory.player_id == player_id)
                .order_by(CategoryLetterHistory.last_used_at.desc())
                .limit(limit)
            )
            pairs.update((row.category_name.lower(), row.letter.upper()) for row in result)

        return pairs

    async def record_category_letter(self, player_id: str, category_name: str, letter: str) -> None:
        """Upsert the (player, category, letter) row with the current time."""
        letter = letter.upper()
        result = await self.db.execute(
            select(CategoryLetterHistory).where(
                CategoryLetterHistory.player_id == player_id,
                CategoryLetterHistory.category_name == category_name,
                CategoryLetterHistory.letter == letter,
            )
        )
        row = result.scalar_one_or_none()
        now = datetime.now(UTC)
        if row is None:
            self.db.add(
                CategoryLetterHistory(
                    id=uuid.uuid4(),
                    player_id=player_id,
                    category_name=category_name,
                    letter=letter,
                    last_used_at=now,
                )
            )
        else:
            row.last_used_at = now
        await self.db.flush()

    async def list_category_stats(self) -> List[CategoryStats]:
        result = await self.db.execute(select(CategoryStats).order_by(CategoryStats.category_name))
        return list(result.scalars().all())
