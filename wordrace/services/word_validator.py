"""Word validation interface and the local structural validator."""
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence
import logging
import re

from wordrace.config import get_settings

logger = logging.getLogger(__name__)

WORD_PATTERN = re.compile(r"^[A-Z]+$")
MIN_WORD_LENGTH = 2
MAX_WORD_LENGTH = 30


@dataclass(frozen=True)
class WordValidationResult:
    valid: bool
    fits_category: bool
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.valid and self.fits_category


def normalize_word(word: str) -> str:
    return (word or "").strip().upper()


def check_structure(
    word: str,
    allowed_start_letters: Optional[Sequence[str]] = None,
    used_words: Iterable[str] = (),
) -> Optional[str]:
    """Return a rejection reason for structural problems, or None if the word is well formed."""
    if not WORD_PATTERN.match(word):
        return "Words may only contain letters"
    if len(word) < MIN_WORD_LENGTH:
        return f"Words must be at least {MIN_WORD_LENGTH} letters"
    if len(word) > MAX_WORD_LENGTH:
        return f"Words must be at most {MAX_WORD_LENGTH} letters"
    if allowed_start_letters is not None:
        allowed = {letter.upper() for letter in allowed_start_letters}
        if word[0] not in allowed:
            return f"Word must start with one of: {', '.join(sorted(allowed))}"
    if word in {normalize_word(used) for used in used_words}:
        return "Word already used in this category"
    return None


class LocalWordValidator:
    """Structural checks only; category fit is assumed.

    Used in development and tests. Production deployments point
    ``WORD_VALIDATOR_URL`` at the dictionary/category oracle instead.
    """

    async def validate(
        self,
        word: str,
        category: str,
        allowed_start_letters: Optional[Sequence[str]] = None,
        used_words: Iterable[str] = (),
    ) -> WordValidationResult:
        word = normalize_word(word)
        reason = check_structure(word, allowed_start_letters, used_words)
        if reason:
            return WordValidationResult(valid=False, fits_category=False, reason=reason)
        return WordValidationResult(valid=True, fits_category=True)

    async def close(self) -> None:
        return None


_local_validator: Optional[LocalWordValidator] = None


def get_word_validator():
    """Get the configured word validator (remote oracle or local)."""
    global _local_validator
    settings = get_settings()
    if settings.use_word_validator_api:
        from wordrace.services.word_validation_client import get_word_validation_client
        return get_word_validation_client()
    if _local_validator is None:
        _local_validator = LocalWordValidator()
    return _local_validator
