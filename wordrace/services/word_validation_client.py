"""Client for the remote word validation oracle."""
import asyncio
import logging
from typing import Iterable, Optional, Sequence, Tuple
import aiohttp
from aiohttp import ClientTimeout, ClientError

from wordrace.config import get_settings
from wordrace.services.word_validator import WordValidationResult, check_structure, normalize_word
from wordrace.utils.cache import SimpleCache

logger = logging.getLogger(__name__)

UNAVAILABLE_REASON = "Validation service unavailable - please try again"


class WordValidationClient:
    """
    Client for the remote word validation service.

    Failures are closed: if the oracle cannot answer, the word is treated as
    invalid. Session is created lazily on first use and closed on shutdown.
    """

    def __init__(self):
        self.settings = get_settings()
        self.base_url = self.settings.word_validator_url.rstrip('/')
        self.timeout = ClientTimeout(total=self.settings.word_validator_timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None
        self._cache = SimpleCache(default_ttl=self.settings.word_validation_cache_ttl_seconds)

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        """Ensure session exists and is not closed."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            logger.debug("Created new aiohttp session for word validation client")

    async def close(self):
        """Close the underlying aiohttp client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed aiohttp session for word validation client")
        self._session = None

    async def _make_request(self, payload: dict) -> Tuple[WordValidationResult, bool]:
        """POST to the oracle. Returns the result and whether it is a definitive answer."""
        await self._ensure_session()
        url = f"{self.base_url}/validate-word"

        try:
            async with self._session.post(url, json=payload) as response:
                if response.status == 200:
                    data = await response.json()
                    if not isinstance(data, dict):
                        logger.error(f"Unexpected word validator payload: {type(data)}")
                        return WordValidationResult(False, False, UNAVAILABLE_REASON), False
                    return WordValidationResult(
                        valid=bool(data.get("valid", False)),
                        fits_category=bool(data.get("fitsCategory", data.get("fits_category", False))),
                        reason=data.get("reason"),
                    ), True
                error_text = await response.text()
                logger.error(f"Word validator API error {response.status}: {error_text}")
                return WordValidationResult(False, False, UNAVAILABLE_REASON), False

        except asyncio.TimeoutError:
            logger.error(f"Word validator API timeout for {payload.get('word')}")
            return WordValidationResult(False, False, UNAVAILABLE_REASON), False
        except ClientError as e:
            logger.error(f"Word validator API client error: {e}")
            return WordValidationResult(False, False, UNAVAILABLE_REASON), False
        except ValueError as e:
            logger.error(f"Word validator API returned malformed JSON: {e}")
            return WordValidationResult(False, False, UNAVAILABLE_REASON), False

    async def validate(
        self,
        word: str,
        category: str,
        allowed_start_letters: Optional[Sequence[str]] = None,
        used_words: Iterable[str] = (),
    ) -> WordValidationResult:
        """
        Validate a word against a category.

        Structural checks (letters, start letter, repeats) run locally first;
        the oracle is only consulted for words that pass them. Oracle answers
        are cached per (word, category).
        """
        word = normalize_word(word)
        used_words = list(used_words)
        reason = check_structure(word, allowed_start_letters, used_words)
        if reason:
            return WordValidationResult(valid=False, fits_category=False, reason=reason)

        cache_key = f"{category.lower()}|{word}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        payload = {
            "word": word,
            "category": category,
            "allowedLetters": list(allowed_start_letters) if allowed_start_letters is not None else None,
            "usedWords": used_words,
        }
        logger.info(f"Validating word: {word} for category: {category}")
        result, definitive = await self._make_request(payload)

        # Outages are retried on the next submission
        if definitive:
            self._cache.set(cache_key, result)
        return result

    async def health_check(self) -> bool:
        """Check if the word validation service is healthy."""
        await self._ensure_session()
        url = f"{self.base_url}/healthz"

        try:
            async with self._session.get(url) as response:
                if response.status == 200:
                    data = await response.json()
                    return data.get("status") == "ok"
                logger.error(f"Word validator health check failed: {response.status}")
                return False

        except asyncio.TimeoutError:
            logger.error("Word validator health check timeout")
            return False
        except ClientError as e:
            logger.error(f"Word validator health check client error: {e}")
            return False


_word_validation_client: Optional[WordValidationClient] = None


def get_word_validation_client() -> WordValidationClient:
    """Get singleton word validation client instance."""
    global _word_validation_client
    if _word_validation_client is None:
        _word_validation_client = WordValidationClient()
    return _word_validation_client
