"""Tests for settings validation."""
import pytest
from pydantic import ValidationError

from wordrace.config import SQLITE_LOCAL_URL, Settings, normalize_database_url


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgres://user:pw@db:5432/wordrace", "postgresql+asyncpg://user:pw@db:5432/wordrace"),
        ("postgresql://user:pw@db/wordrace", "postgresql+asyncpg://user:pw@db/wordrace"),
        ("postgresql+asyncpg://user:pw@db/wordrace", "postgresql+asyncpg://user:pw@db/wordrace"),
        ("sqlite+aiosqlite:///./other.db", "sqlite+aiosqlite:///./other.db"),
        ("", SQLITE_LOCAL_URL),
        ("not a url", SQLITE_LOCAL_URL),
    ],
)
def test_normalize_database_url(url, expected):
    assert normalize_database_url(url) == expected


def test_settings_normalize_url_from_input():
    settings = Settings(database_url="postgres://user:pw@db/wordrace")

    assert settings.database_url == "postgresql+asyncpg://user:pw@db/wordrace"


def test_bonus_window_cannot_be_shorter_than_win_overlay():
    with pytest.raises(ValidationError):
        Settings(win_overlay_seconds=5, bonus_safety_timeout_seconds=3)


def test_reshuffle_threshold_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(failed_rounds_before_reshuffle=0)
