"""Liveness and status endpoints."""
from datetime import datetime, UTC
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from wordrace.config import get_settings
from wordrace.database import engine
from wordrace.services.category_catalog import get_category_catalog
from wordrace.utils import lock_client, queue_client
from wordrace.utils.datetime_helpers import isoformat_utc
from wordrace.version import APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter()


async def _database_reachable() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


@router.get("/health")
async def health_check():
    """503 when the database is down; otherwise reports the queue and lock backends."""
    if not await _database_reachable():
        return JSONResponse(
            status_code=503,
            content={"status": "error", "detail": "Database connection failed"},
        )
    return {
        "status": "ok",
        "database": "connected",
        "queues": queue_client.backend,
        "locks": lock_client.backend,
    }
@router.get("/status")
async def game_status():
    """Version, environment, word validation mode and category catalog freshness."""
    settings = get_settings()

    validation_mode = "remote" if settings.use_word_validator_api else "local"
    if settings.use_word_validator_api:
        from wordrace.services.word_validation_client import get_word_validation_client
        validation_healthy = await get_word_validation_client().health_check()
    else:
        validation_healthy = True

    catalog = get_category_catalog()
    refreshed_at = catalog.last_refreshed_at()

    return {
        "version": APP_VERSION,
        "environment": settings.environment,
        "word_validation": {
            "mode": validation_mode,
            "healthy": validation_healthy,
        },
        "category_catalog": {
            "source": "remote" if catalog.catalog_url else "built-in",
            "refreshed_at": (
                isoformat_utc(datetime.fromtimestamp(refreshed_at, UTC)) if refreshed_at else None
            ),
        },
    }
