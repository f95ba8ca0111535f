"""Round letter generation.

Every round set has exactly five letters with exactly one tough letter, at
least one vowel, and no letter appearing more than twice.
"""
import logging
import random
from collections import Counter
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

TOUGH_LETTERS = ("Q", "X", "Z", "J", "K", "V")
VOWELS = ("A", "E", "I", "O", "U")
COMMON_LETTERS = tuple("ABCDEFGHILMNOPRSTUWY")

ROUND_LETTER_COUNT = 5
MAX_LETTER_REPEATS = 2
GENERATION_ATTEMPTS = 100
REPLACEMENT_ATTEMPTS = 50


def is_tough_letter(letter: str) -> bool:
    return bool(letter) and letter.upper() in TOUGH_LETTERS


def has_tough_letter(letters: Sequence[str]) -> bool:
    return any(is_tough_letter(letter) for letter in letters)


def is_valid_letter_set(letters: Sequence[str]) -> bool:
    """Check the round letter invariants."""
    upper = [letter.upper() for letter in letters]
    if len(upper) != ROUND_LETTER_COUNT:
        return False
    if sum(1 for letter in upper if letter in TOUGH_LETTERS) != 1:
        return False
    if not any(letter in VOWELS for letter in upper):
        return False
    return max(Counter(upper).values()) <= MAX_LETTER_REPEATS


def generate_round_letters(rng: Optional[random.Random] = None) -> List[str]:
    """Generate a fresh five-letter round set.

    Draws one tough letter, one vowel and three common letters, rejecting any
    draw with a letter repeated more than twice. Falls back to a constructed
    set with unique common letters if no draw succeeds.
    """
    rng = rng or random

    for _ in range(GENERATION_ATTEMPTS):
        letters = [rng.choice(TOUGH_LETTERS), rng.choice(VOWELS)]
        letters.extend(rng.choice(COMMON_LETTERS) for _ in range(3))

        if max(Counter(letters).values()) > MAX_LETTER_REPEATS:
            continue

        rng.shuffle(letters)
        return letters

    logger.warning("Letter generation exhausted attempts, using constructed fallback")
    vowel = rng.choice(VOWELS)
    commons = rng.sample([letter for letter in COMMON_LETTERS if letter != vowel], 3)
    letters = [rng.choice(TOUGH_LETTERS), vowel, *commons]
    rng.shuffle(letters)
    return letters


def _replacement_pool(remaining: Sequence[str]) -> Sequence[str]:
    if not any(letter in VOWELS for letter in remaining):
        return VOWELS
    if not has_tough_letter(remaining):
        return TOUGH_LETTERS
    return COMMON_LETTERS


def _can_add(remaining: Sequence[str], candidate: str) -> bool:
    if remaining.count(candidate) >= MAX_LETTER_REPEATS:
        return False
    return not (candidate in TOUGH_LETTERS and has_tough_letter(remaining))


def replace_used_letter(
    current: Sequence[str],
    used: str,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Swap one occurrence of ``used`` for a new letter, keeping the set valid.

    A missing vowel is restored first, then a missing tough letter, otherwise a
    common letter is drawn. Random draws are bounded; after that the pool is
    scanned in order for the first letter that fits.
    """
    rng = rng or random
    remaining = [letter.upper() for letter in current]
    used = used.upper()

    if used in remaining:
        remaining.remove(used)
    elif len(remaining) >= ROUND_LETTER_COUNT:
        # Nothing to replace; keep the set as is
        return remaining

    pool = _replacement_pool(remaining)

    for _ in range(REPLACEMENT_ATTEMPTS):
        candidate = rng.choice(pool)
        if _can_add(remaining, candidate):
            return [*remaining, candidate]

    for candidate in pool:
        if _can_add(remaining, candidate):
            return [*remaining, candidate]

    # Common pool was saturated; any letter that keeps the invariants will do
    for candidate in (*VOWELS, *COMMON_LETTERS):
        if candidate not in TOUGH_LETTERS and _can_add(remaining, candidate):
            return [*remaining, candidate]

    logger.error(f"Could not find a replacement letter for {used} in {list(current)}")
    return [*remaining, used]
