"""Business logic services."""
from wordrace.services.analytics_service import AnalyticsService
from wordrace.services.category_catalog import CategoryCatalog, get_category_catalog
from wordrace.services.category_selector import CategorySelector
from wordrace.services.category_stats_service import CategoryStatsService
from wordrace.services.game_session_stats_service import GameSessionStatsService
from wordrace.services.player_lifecycle_service import PlayerLifecycleService
from wordrace.services.room_controller import RoomController
from wordrace.services.room_service import RoomService
from wordrace.services.round_service import RoundService
from wordrace.services.submission_service import SubmissionResult, SubmissionService
from wordrace.services.word_validator import LocalWordValidator, WordValidationResult, get_word_validator

__all__ = [
    "AnalyticsService",
    "CategoryCatalog",
    "get_category_catalog",
    "CategorySelector",
    "CategoryStatsService",
    "GameSessionStatsService",
    "PlayerLifecycleService",
    "RoomController",
    "RoomService",
    "RoundService",
    "SubmissionResult",
    "SubmissionService",
    "LocalWordValidator",
    "WordValidationResult",
    "get_word_validator",
]
