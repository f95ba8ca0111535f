"""Category and player statistics schemas."""
from datetime import datetime
from typing import List, Optional

from wordrace.schemas.base import BaseSchema


class CategoryItemResponse(BaseSchema):
    id: str
    name: str


class CategoryListResponse(BaseSchema):
    base: List[CategoryItemResponse]
    mini: List[CategoryItemResponse]


class CategoryStatsResponse(BaseSchema):
    category_name: str
    total_attempts: int
    successful_attempts: int
    dead_rounds: int
    difficulty: int


class GameSessionStatsResponse(BaseSchema):
    room_code: str
    players_count: int
    game_start_time: datetime
    game_end_time: Optional[datetime]
    mini_categories_seen: int
    grand_attempt_count: int
    total_letters_collected: Optional[int]
    total_rounds: Optional[int]
    result: Optional[str]
    final_grand_word: Optional[str]


class PlayerStatsResponse(BaseSchema):
    player_id: str
    games_played: int
    wins: int
    sessions: List[GameSessionStatsResponse]
