"""Cross-game category history per player."""
from sqlalchemy import Column, String, DateTime, Integer, Index
from datetime import datetime, UTC
import uuid

from wordrace.database import Base
from wordrace.models.base import get_uuid_column


class PlayerCategoryHistory(Base):
    """A category a player saw in a given game.

    ``game_number`` increases per player with each started match. Rows are
    kept after their room is deleted, so there is no foreign key to rooms.
    """
    __tablename__ = "player_category_history"

    history_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    player_id = Column(String(64), nullable=False)
    room_id = get_uuid_column(nullable=True)
    game_number = Column(Integer, nullable=False)
    category_name = Column(String(200), nullable=False)
    category_type = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    __table_args__ = (
        Index("ix_player_category_history_player_game", "player_id", "game_number"),
    )

    def __repr__(self):
        return f"<PlayerCategoryHistory(player_id={self.player_id}, game={self.game_number}, name={self.category_name})>"
