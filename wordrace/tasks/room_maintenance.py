"""Background task for abandoned room cleanup."""
import asyncio
import logging

from wordrace.config import get_settings
from wordrace.database import AsyncSessionLocal
from wordrace.services.player_lifecycle_service import PlayerLifecycleService

logger = logging.getLogger(__name__)

# Track if maintenance task is running to prevent concurrent executions
_maintenance_task_running = False


async def run_room_maintenance() -> int:
    """Delete abandoned rooms once.

    Polls already sweep on every request; this covers rooms nobody polls.

    Returns:
        int: Number of rooms deleted (0 if a run was already in progress)
    """
    global _maintenance_task_running

    if _maintenance_task_running:
        logger.debug("Room maintenance already running, skipping")
        return 0

    _maintenance_task_running = True
    try:
        async with AsyncSessionLocal() as db:
            deleted = await PlayerLifecycleService(db).sweep_stale_rooms()
            await db.commit()
        if deleted:
            logger.info(f"Room maintenance completed: {deleted} stale rooms deleted")
        return deleted
    except Exception as e:
        logger.error(f"Error during room maintenance: {e}", exc_info=True)
        return 0
    finally:
        _maintenance_task_running = False


async def schedule_periodic_maintenance(interval_seconds: int = None) -> None:
    """Run room maintenance forever at a fixed interval."""
    interval_seconds = interval_seconds or get_settings().maintenance_interval_seconds
    logger.info(f"Starting room maintenance scheduler (interval: {interval_seconds}s)")

    while True:
        try:
            await asyncio.sleep(interval_seconds)
            await run_room_maintenance()
        except asyncio.CancelledError:
            logger.info("Room maintenance scheduler cancelled")
            break
        except Exception as e:
            logger.error(f"Unexpected error in maintenance scheduler: {e}", exc_info=True)
            await asyncio.sleep(60)
