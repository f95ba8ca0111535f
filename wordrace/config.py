"""Settings for the WordRace server, read from the environment and ``.env``."""
import logging
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError

logger = logging.getLogger(__name__)

SQLITE_LOCAL_URL = "sqlite+aiosqlite:///./wordrace.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = SQLITE_LOCAL_URL
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Redis (optional, falls back to in-memory)
    redis_url: str = ""

    # Application
    frontend_url: str = "http://localhost:5173"
    environment: str = "development"
    allowed_origins: str = ""  # Comma-separated; defaults to the frontend and localhost dev servers

    # Logging
    log_dir: str = "logs"
    log_level: str = "INFO"

    # Room configuration
    room_code_length: int = 6
    room_min_players: int = 2
    private_room_max_players: int = 12
    public_room_max_players: int = 10
    public_room_preferred_players: int = 3

    # Round timing (seconds)
    round_duration_seconds: int = 60
    tough_letter_bonus_seconds: int = 15
    win_overlay_seconds: int = 3
    bonus_safety_timeout_seconds: int = 18
    failed_rounds_before_reshuffle: int = 3

    # Player lifecycle
    waiting_kick_seconds: int = 60  # Lobby players unseen this long are removed
    playing_kick_seconds: int = 90  # In-game players unseen this long are removed
    stale_room_minutes: int = 5
    room_lock_timeout_seconds: int = 10
    maintenance_interval_seconds: int = 60

    # Grand word
    grand_word_min_length: int = 4

    # Category selection
    games_before_category_repeat: int = 5
    category_letter_history_limit: int = 100
    category_cache_ttl_seconds: float = 300.0
    category_catalog_url: str = ""  # Optional remote catalog, built-in pool otherwise

    # Word validation
    use_word_validator_api: bool = False
    word_validator_url: str = "http://localhost:8001"
    word_validator_timeout_seconds: int = 10
    word_validation_cache_ttl_seconds: float = 600.0

    @model_validator(mode="after")
    def check_round_timing(self):
        if self.bonus_safety_timeout_seconds < self.win_overlay_seconds:
            raise ValueError("bonus_safety_timeout_seconds must be at least win_overlay_seconds")
        if self.failed_rounds_before_reshuffle < 1:
            raise ValueError("failed_rounds_before_reshuffle must be at least 1")
        if self.room_min_players < 1:
            raise ValueError("room_min_players must be at least 1")
        return self

    @field_validator("database_url")
    @classmethod
    def use_async_driver(cls, value: str) -> str:
        return normalize_database_url(value)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def normalize_database_url(url: str) -> str:
    """Force the asyncpg driver for Postgres URLs; blank or unparsable URLs fall back to SQLite."""
    if not url:
        logger.warning("Empty DATABASE_URL, using SQLite fallback")
        return SQLITE_LOCAL_URL

    try:
        parsed = make_url(url)
    except ArgumentError as e:
        logger.error(f"Invalid DATABASE_URL ({e}), using SQLite fallback")
        return SQLITE_LOCAL_URL

    if parsed.drivername in ("postgres", "postgresql", "postgresql+psycopg2"):
        logger.info(f"Database driver {parsed.drivername} replaced with postgresql+asyncpg")
        parsed = parsed.set(drivername="postgresql+asyncpg")
    # render_as_string keeps special characters in the password escaped
    return parsed.render_as_string(hide_password=False)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
