"""Shared helper utilities for service modules."""
from typing import Awaitable, Callable
import logging

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def run_best_effort(
    db: AsyncSession,
    description: str,
    operation: Callable[[], Awaitable[object]],
) -> bool:
    """Run a secondary write inside a savepoint.

    A failure rolls back only the savepoint and is logged; the surrounding
    game transaction carries on.

    Returns:
        bool: True if the operation completed
    """
    savepoint = await db.begin_nested()
    try:
        await operation()
        await savepoint.commit()
        return True
    except Exception as e:
        await savepoint.rollback()
        logger.error(f"Failed to {description}: {e}", exc_info=True)
        return False
