"""Database models."""
from wordrace.models.room import Room
from wordrace.models.room_player import RoomPlayer
from wordrace.models.round_history import RoundHistory
from wordrace.models.used_word import UsedWord
from wordrace.models.category_stats import CategoryStats
from wordrace.models.player_category_history import PlayerCategoryHistory
from wordrace.models.category_letter_history import CategoryLetterHistory
from wordrace.models.game_session_stats import GameSessionStats

__all__ = [
    "Room",
    "RoomPlayer",
    "RoundHistory",
    "UsedWord",
    "CategoryStats",
    "PlayerCategoryHistory",
    "CategoryLetterHistory",
    "GameSessionStats",
]
