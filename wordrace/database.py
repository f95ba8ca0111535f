"""Async engine, session factory and the declarative base."""
import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.engine.url import make_url

from wordrace.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Seconds SQLite waits on a locked database file before raising
SQLITE_BUSY_TIMEOUT = 30


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the engine for ``settings.database_url``.

    SQLite gets a busy timeout so concurrent room requests queue instead of
    failing; Postgres gets a bounded pool and SSL outside development.
    """
    url = make_url(settings.database_url)
    connect_args: Dict[str, Any] = {}
    engine_kwargs: Dict[str, Any] = {}

    if url.drivername.startswith("sqlite"):
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
    else:
        if settings.environment == "production":
            connect_args["ssl"] = "require"
        engine_kwargs.update(
            pool_size=max(1, settings.db_pool_size),
            max_overflow=max(0, settings.db_max_overflow),
            pool_recycle=3600,
        )

    logger.debug(f"Creating database engine for {url.drivername}")
    return create_async_engine(
        settings.database_url,
        echo=settings.environment == "development",
        connect_args=connect_args,
        pool_pre_ping=True,
        **engine_kwargs,
    )


engine = build_engine(get_settings())

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """FastAPI dependency yielding one session per request."""
    async with AsyncSessionLocal() as session:
        yield session
