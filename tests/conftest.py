"""Pytest configuration and fixtures."""
import os
from datetime import datetime, UTC
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config as AlembicConfig
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Ensure the application uses a dedicated SQLite database during tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
# In-memory queues and locks
os.environ["REDIS_URL"] = ""
# Use the local structural validator instead of the remote oracle
os.environ["USE_WORD_VALIDATOR_API"] = "false"
os.environ["CATEGORY_CATALOG_URL"] = ""
os.environ["ENVIRONMENT"] = "test"

from wordrace.config import get_settings
from wordrace.database import Base, build_engine
from wordrace.models.base import RoomStatus
from wordrace.services.category_catalog import get_category_catalog
from wordrace.services.room_service import RoomService
from wordrace.services.word_validator import WordValidationResult


BASE_DIR = Path(__file__).resolve().parent.parent
TEST_DB_PATH = BASE_DIR / "test.db"
settings = get_settings()


@pytest.fixture(scope="session", autouse=True)
def apply_migrations():
    """Apply database migrations against the test database."""
    if TEST_DB_PATH.exists():
        try:
            TEST_DB_PATH.unlink()
        except PermissionError:
            pass  # Migrations will run against the existing file

    alembic_cfg = AlembicConfig(str(BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(alembic_cfg, "head")

    yield

    if TEST_DB_PATH.exists():
        try:
            TEST_DB_PATH.unlink()
        except PermissionError:
            # Still in use on Windows; cleaned up on the next run
            pass


@pytest.fixture
async def test_engine():
    """Create test database engine using the same database as migrations."""
    engine = build_engine(settings)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture(autouse=True)
async def clean_database(test_engine):
    """Start every test from empty tables and a cold category cache."""
    async with test_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(delete(table))
    get_category_catalog().clear()
    yield


@pytest.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()
        await session.close()


@pytest.fixture
async def test_app(session_factory):
    """Create test app with database override."""
    from wordrace.main import app
    from wordrace.database import get_db

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac


class StubValidator:
    """Accepts every word except those listed as not fitting the category."""

    def __init__(self, rejected=()):
        self.rejected = {word.upper() for word in rejected}
        self.calls = []

    async def validate(self, word, category, allowed_start_letters=None, used_words=()):
        self.calls.append((word.upper(), category))
        if word.upper() in self.rejected:
            return WordValidationResult(valid=True, fits_category=False)
        return WordValidationResult(valid=True, fits_category=True)

    async def close(self):
        return None


@pytest.fixture
def validator_factory():
    return StubValidator


@pytest.fixture
def stub_validator():
    return StubValidator()


@pytest.fixture
def room_factory(db_session):
    """Factory for a committed room whose first player is the host."""

    async def _create_room(player_ids=("p1", "p2"), room_type="private"):
        service = RoomService(db_session)
        room = await service.create_room(player_ids[0], player_ids[0].upper(), room_type)
        for player_id in player_ids[1:]:
            await service.join_room(room.code, player_id, player_id.upper())
        await db_session.commit()
        return room

    return _create_room


@pytest.fixture
def playing_room_factory(db_session, room_factory):
    """Factory for a room already in round 1 with known letters and categories."""

    async def _create_playing_room(
        player_ids=("p1", "p2"),
        letters=("Q", "A", "R", "T", "S"),
        mini_category="Birds",
        mini_category_id="c5",
        base_category="Animals",
        round_start_time=None,
    ):
        room = await room_factory(player_ids)
        room.status = RoomStatus.PLAYING.value
        room.round_number = 1
        room.letters = list(letters)
        room.base_category = base_category
        room.current_mini_category = mini_category
        room.current_mini_category_id = mini_category_id
        room.used_mini_category_ids = [mini_category_id]
        room.round_start_time = round_start_time or datetime.now(UTC)

        players = await RoomService(db_session).get_players(room.room_id)
        for player in players:
            player.tutorial_complete = True
        await db_session.commit()
        return room

    return _create_playing_room
