"""Per-player per-match statistics."""
from sqlalchemy import Column, String, DateTime, Integer, Index
from datetime import datetime, UTC
import uuid

from wordrace.database import Base
from wordrace.models.base import get_uuid_column


class GameSessionStats(Base):
    """One row per player per match.

    A row is "open" until ``game_end_time`` is set; a rematch in the same
    room opens a new row. No foreign key to rooms so stats outlive the room.
    """
    __tablename__ = "game_session_stats"

    id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    room_id = get_uuid_column(nullable=False)
    room_code = Column(String(12), nullable=False)
    player_id = Column(String(64), nullable=False)
    display_name = Column(String(50), nullable=True)
    players_count = Column(Integer, nullable=False, default=1)

    game_start_time = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    game_end_time = Column(DateTime(timezone=True), nullable=True)
    mini_categories_seen = Column(Integer, nullable=False, default=1)

    grand_attempt_count = Column(Integer, nullable=False, default=0)
    first_grand_attempt_time = Column(DateTime(timezone=True), nullable=True)
    letters_at_first_grand_attempt = Column(Integer, nullable=True)
    rounds_before_first_grand_attempt = Column(Integer, nullable=True)

    total_letters_collected = Column(Integer, nullable=True)
    total_rounds = Column(Integer, nullable=True)
    result = Column(String(10), nullable=True)
    final_grand_word = Column(String(100), nullable=True)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("ix_game_session_stats_room_player", "room_id", "player_id"),
        Index("ix_game_session_stats_player", "player_id"),
    )

    def __repr__(self):
        return f"<GameSessionStats(room={self.room_code}, player_id={self.player_id}, result={self.result})>"
