"""Category catalog and player statistics router."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from wordrace.database import get_db
from wordrace.models.base import GameResult
from wordrace.schemas.category import (
    CategoryItemResponse,
    CategoryListResponse,
    CategoryStatsResponse,
    GameSessionStatsResponse,
    PlayerStatsResponse,
)
from wordrace.services.category_catalog import get_category_catalog
from wordrace.services.category_stats_service import CategoryStatsService
from wordrace.services.game_session_stats_service import GameSessionStatsService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories():
    """Base and mini category pools currently served to the selector."""
    catalog = get_category_catalog()
    base = await catalog.get_base_categories()
    mini = await catalog.get_mini_categories()
    return CategoryListResponse(
        base=[CategoryItemResponse(id=item.id, name=item.name) for item in base],
        mini=[CategoryItemResponse(id=item.id, name=item.name) for item in mini],
    )


@router.get("/categories/stats", response_model=List[CategoryStatsResponse])
async def list_category_stats(db: AsyncSession = Depends(get_db)):
    """Recorded attempts and dead rounds per category with the derived difficulty."""
    service = CategoryStatsService(db)
    rows = await service.list_category_stats()
    difficulties = await service.get_difficulty_scores([row.category_name for row in rows])
    return [
        CategoryStatsResponse(
            category_name=row.category_name,
            total_attempts=row.total_attempts,
            successful_attempts=row.successful_attempts,
            dead_rounds=row.dead_rounds,
            difficulty=difficulties[row.category_name],
        )
        for row in rows
    ]


@router.get("/players/{player_id}/stats", response_model=PlayerStatsResponse)
async def get_player_stats(player_id: str, db: AsyncSession = Depends(get_db)):
    sessions = await GameSessionStatsService(db).get_player_stats(player_id)
    finished = [stats for stats in sessions if stats.result is not None]
    return PlayerStatsResponse(
        player_id=player_id,
        games_played=len(finished),
        wins=sum(1 for stats in finished if stats.result == GameResult.WIN.value),
        sessions=[GameSessionStatsResponse.model_validate(stats) for stats in sessions],
    )
