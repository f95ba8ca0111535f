"""Category scoring heuristics.

The score of a candidate mini category is a pure function of a small typed
record, so the formula can be tested without a database or randomness.
"""
import math
from dataclasses import dataclass
from typing import AbstractSet, Iterable, Sequence, Tuple

from wordrace.services.category_pool import CategoryItem
from wordrace.services.letter_generator import has_tough_letter

DEFAULT_BREADTH = 5
DEFAULT_DIFFICULTY = 5

BREADTH_WEIGHT = 0.25
COMPATIBILITY_WEIGHT = 0.35
EASE_WEIGHT = 0.40

HARD_DIFFICULTY_THRESHOLD = 7
HARD_DIFFICULTY_PENALTY = 2.0
BALANCED_DIFFICULTY_RANGE = (4, 6)
BALANCED_DIFFICULTY_BONUS = 1.0
TOUGH_FRIENDLY_BONUS = 3.0
FRESHNESS_BONUS = 2.0
REPEATED_PAIR_PENALTY = 50.0

BROAD_BREADTH_THRESHOLD = 6

TOUGH_LETTER_FRIENDLY_KEYWORDS = (
    "Animals", "Countries", "Cities", "Foods", "Science", "Chemical",
    "Words ending", "Words starting", "letter words", "Scrabble", "Dictionary",
)


def _id_range(start: int, end: int) -> set:
    return {f"c{number}" for number in range(start, end + 1)}


# Categories with plenty of answers for Q, X, Z, J, K and V
TOUGH_LETTER_FRIENDLY_IDS = frozenset(
    _id_range(1, 8) | _id_range(16, 20)                 # animals
    | _id_range(81, 87) | {"c97", "c99", "c100"}         # geography
    | {"c136"} | _id_range(190, 192)                     # science
    | _id_range(21, 30) | {"c35", "c36"}                 # foods
    | _id_range(111, 115)                                # sports
    | {"c118", "c119", "c151", "c152"}                   # music
    | _id_range(61, 64)                                  # professions
    | _id_range(181, 188)                                # word structure
    | _id_range(160, 166) | {"c169"}                     # objects
    | _id_range(101, 108)                                # clothing
    | _id_range(9, 13) | _id_range(195, 199)             # nature
    | _id_range(141, 148)                                # actions
    | _id_range(201, 205)                                # species
)


def breadth_score(category: CategoryItem) -> int:
    """Static 1-10 breadth score from the category's pool segment."""
    try:
        number = int(category.id.lstrip("c"))
    except ValueError:
        return DEFAULT_BREADTH

    if number <= 110:
        return 9
    if number <= 160:
        return 6
    if number <= 180:
        return 7
    return 3


def is_tough_letter_friendly(category: CategoryItem) -> bool:
    if category.id in TOUGH_LETTER_FRIENDLY_IDS:
        return True
    name = category.name.lower()
    return any(keyword.lower() in name for keyword in TOUGH_LETTER_FRIENDLY_KEYWORDS)


def letter_compatibility(category: CategoryItem, letters: Sequence[str]) -> float:
    """Estimate (0-1) how well a category works with the round letters."""
    if not has_tough_letter(letters):
        return 1.0 if breadth_score(category) >= DEFAULT_BREADTH else 0.8
    if is_tough_letter_friendly(category):
        return 0.9
    return 0.3


@dataclass(frozen=True)
class CategoryScoreInputs:
    """Everything the score formula needs for one candidate."""
    breadth: int
    compatibility: float
    difficulty: int
    has_tough_letter: bool
    tough_friendly: bool
    in_cross_game_history: bool
    repeated_letter_pairs: int = 0

    @property
    def ease(self) -> int:
        return 11 - self.difficulty


def score_category(inputs: CategoryScoreInputs) -> float:
    """Weighted category score; higher is a better fit for the next round."""
    score = (
        inputs.breadth * BREADTH_WEIGHT
        + inputs.compatibility * 10 * COMPATIBILITY_WEIGHT
        + inputs.ease * EASE_WEIGHT
    )

    if inputs.difficulty > HARD_DIFFICULTY_THRESHOLD:
        score -= HARD_DIFFICULTY_PENALTY
    low, high = BALANCED_DIFFICULTY_RANGE
    if low <= inputs.difficulty <= high:
        score += BALANCED_DIFFICULTY_BONUS

    if inputs.has_tough_letter and inputs.tough_friendly:
        score += TOUGH_FRIENDLY_BONUS

    if not inputs.in_cross_game_history:
        score += FRESHNESS_BONUS

    score -= REPEATED_PAIR_PENALTY * inputs.repeated_letter_pairs
    return score


def count_repeated_pairs(
    category: CategoryItem,
    letters: Iterable[str],
    recent_pairs: AbstractSet[Tuple[str, str]],
) -> int:
    """Count round letters already seen with this category recently.

    ``recent_pairs`` holds (lower-cased category name, upper-case letter).
    """
    name = category.name.lower()
    return sum(1 for letter in letters if (name, letter.upper()) in recent_pairs)


def build_score_inputs(
    category: CategoryItem,
    letters: Sequence[str],
    difficulty: int,
    history_names: AbstractSet[str],
    recent_pairs: AbstractSet[Tuple[str, str]],
) -> CategoryScoreInputs:
    return CategoryScoreInputs(
        breadth=breadth_score(category),
        compatibility=letter_compatibility(category, letters),
        difficulty=difficulty,
        has_tough_letter=has_tough_letter(letters),
        tough_friendly=is_tough_letter_friendly(category),
        in_cross_game_history=category.name in history_names,
        repeated_letter_pairs=count_repeated_pairs(category, letters, recent_pairs),
    )


def compute_difficulty(total_attempts: int, successful_attempts: int, dead_rounds: int) -> int:
    """Dynamic 1-10 difficulty from historical play.

    1 is very easy (every attempt accepted, no dead rounds); 10 very hard.
    Categories with no history score the default of 5.
    """
    if total_attempts <= 0 and dead_rounds <= 0:
        return DEFAULT_DIFFICULTY

    base = float(DEFAULT_DIFFICULTY)
    if total_attempts > 0:
        success_rate = successful_attempts / total_attempts
        base = 1 + (1 - success_rate) * 9

    dead_round_penalty = dead_rounds / (dead_rounds + total_attempts + 1) * 3

    clamped = max(1.0, min(10.0, base + dead_round_penalty))
    return int(math.floor(clamped + 0.5))
