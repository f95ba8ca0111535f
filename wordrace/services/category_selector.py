"""Category selection for rounds and matches."""
import logging
import math
import random
from typing import AbstractSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from wordrace.services.category_catalog import get_category_catalog
from wordrace.services.category_pool import CategoryItem
from wordrace.services.category_scoring import (
    BROAD_BREADTH_THRESHOLD,
    DEFAULT_DIFFICULTY,
    breadth_score,
    build_score_inputs,
    score_category,
)
from wordrace.services.category_stats_service import CategoryStatsService

logger = logging.getLogger(__name__)

MIN_CANDIDATES_AFTER_FAILED_FILTER = 10
MIN_CANDIDATES_AFTER_BREADTH_FILTER = 5
CONSECUTIVE_FAILURES_FOR_BROAD = 2
TOP_TIER_MIN = 5
TOP_TIER_FRACTION = 0.2


def filter_mini_candidates(
    pool: Sequence[CategoryItem],
    used_ids: Iterable[str],
    failed_ids: Iterable[str],
    consecutive_failures: int,
    base_category: Optional[str],
    history_names: AbstractSet[str],
) -> List[CategoryItem]:
    """Apply the exclusion and fallback rules to the mini category pool."""
    used = set(used_ids)
    failed = set(failed_ids)

    candidates = [
        category for category in pool
        if category.id not in used
        and category.id != base_category
        and category.name != base_category
        and category.name not in history_names
    ]

    without_failed = [category for category in candidates if category.id not in failed]
    if len(without_failed) >= MIN_CANDIDATES_AFTER_FAILED_FILTER:
        candidates = without_failed

    if consecutive_failures >= CONSECUTIVE_FAILURES_FOR_BROAD:
        broad = [category for category in candidates if breadth_score(category) >= BROAD_BREADTH_THRESHOLD]
        if len(broad) >= MIN_CANDIDATES_AFTER_BREADTH_FILTER:
            candidates = broad

    if not candidates:
        candidates = [category for category in pool if category.id not in used]

    if not candidates:
        logger.warning("All mini categories exhausted, resetting to full pool")
        candidates = list(pool)

    return candidates


def rank_mini_candidates(
    candidates: Sequence[CategoryItem],
    letters: Sequence[str],
    history_names: AbstractSet[str],
    recent_pairs: AbstractSet[Tuple[str, str]],
    difficulties: Mapping[str, int],
) -> List[Tuple[CategoryItem, float]]:
    """Score every candidate and sort best first."""
    scored = []
    for category in candidates:
        inputs = build_score_inputs(
            category,
            letters,
            difficulties.get(category.name, DEFAULT_DIFFICULTY),
            history_names,
            recent_pairs,
        )
        scored.append((category, score_category(inputs)))
    scored.sort(key=lambda item: item[1], reverse=True)
    return scored


def select_mini_category(
    pool: Sequence[CategoryItem],
    letters: Sequence[str],
    used_ids: Iterable[str] = (),
    failed_ids: Iterable[str] = (),
    consecutive_failures: int = 0,
    base_category: Optional[str] = None,
    history_names: AbstractSet[str] = frozenset(),
    recent_pairs: AbstractSet[Tuple[str, str]] = frozenset(),
    difficulties: Mapping[str, int] = None,
    rng: Optional[random.Random] = None,
) -> CategoryItem:
    """Pick the next round's mini category.

    Candidates are ranked by :func:`score_category` and one is drawn uniformly
    from the top max(5, 20%) so selection stays unpredictable.
    """
    candidates = filter_mini_candidates(
        pool, used_ids, failed_ids, consecutive_failures, base_category, history_names
    )
    return choose_from_candidates(candidates, letters, history_names, recent_pairs, difficulties or {}, rng=rng)


def choose_from_candidates(
    candidates: Sequence[CategoryItem],
    letters: Sequence[str],
    history_names: AbstractSet[str],
    recent_pairs: AbstractSet[Tuple[str, str]],
    difficulties: Mapping[str, int],
    rng: Optional[random.Random] = None,
) -> CategoryItem:
    rng = rng or random
    ranked = rank_mini_candidates(candidates, letters, history_names, recent_pairs, difficulties)

    top_count = max(TOP_TIER_MIN, math.floor(len(ranked) * TOP_TIER_FRACTION))
    category, _ = rng.choice(ranked[:top_count])
    return category


def select_base_category(
    pool: Sequence[CategoryItem],
    history_names: AbstractSet[str] = frozenset(),
    rng: Optional[random.Random] = None,
) -> CategoryItem:
    """Pick the locked grand category, avoiding names players saw recently."""
    rng = rng or random
    available = [category for category in pool if category.name not in history_names]
    if not available:
        logger.warning("All base categories recently used by these players, falling back to full pool")
        available = list(pool)
    return rng.choice(available)


class CategorySelector:
    """Gathers player history and difficulty data, then applies the selectors."""

    def __init__(self, db: AsyncSession, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng
        self.catalog = get_category_catalog()
        self.stats_service = CategoryStatsService(db)

    async def choose_base_category(self, player_ids: Sequence[str]) -> CategoryItem:
        pool = await self.catalog.get_base_categories()
        history_names = await self.stats_service.get_recent_category_names(player_ids)
        return select_base_category(pool, history_names, rng=self.rng)

    async def choose_mini_category(
        self,
        letters: Sequence[str],
        player_ids: Sequence[str],
        used_ids: Iterable[str],
        failed_ids: Iterable[str],
        consecutive_failures: int,
        base_category: Optional[str],
    ) -> CategoryItem:
        pool = await self.catalog.get_mini_categories()
        history_names = await self.stats_service.get_recent_category_names(player_ids)
        recent_pairs = await self.stats_service.get_recent_category_letter_pairs(player_ids)

        candidates = filter_mini_candidates(
            pool, used_ids, failed_ids, consecutive_failures, base_category, history_names
        )
        difficulties = await self.stats_service.get_difficulty_scores([c.name for c in candidates])

        category = choose_from_candidates(
            candidates, letters, history_names, recent_pairs, difficulties, rng=self.rng
        )
        logger.debug(
            f"Selected mini category {category.name} ({category.id}) from {len(candidates)} candidates, "
            f"{consecutive_failures=}"
        )
        return category
