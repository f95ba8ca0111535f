"""Room model: one multiplayer match container and its round state."""
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Integer,
    JSON,
)
from datetime import datetime, UTC
import uuid

from wordrace.database import Base
from wordrace.models.base import get_uuid_column, RoomStatus, RoomType


class Room(Base):
    """Game room.

    Holds the room/round state machine fields. JSON list columns are always
    reassigned (never mutated in place) so SQLAlchemy detects the change.
    """
    __tablename__ = "rooms"

    room_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    code = Column(String(12), unique=True, nullable=False, index=True)

    status = Column(String(20), nullable=False, default=RoomStatus.WAITING.value)
    room_type = Column(String(20), nullable=False, default=RoomType.PRIVATE.value)
    host_player_id = Column(String(64), nullable=False)

    # Configuration
    min_players = Column(Integer, nullable=False, default=2)
    max_players = Column(Integer, nullable=False, default=12)
    preferred_players = Column(Integer, nullable=False, default=0)

    # Round state
    round_number = Column(Integer, nullable=False, default=0)
    failed_rounds = Column(Integer, nullable=False, default=0)
    letters = Column(JSON, nullable=False, default=list)
    base_category = Column(String(200), nullable=True)
    current_mini_category = Column(String(200), nullable=True)
    current_mini_category_id = Column(String(50), nullable=True)
    round_start_time = Column(DateTime(timezone=True), nullable=True)
    round_winner_id = Column(String(64), nullable=True)
    round_winning_word = Column(String(100), nullable=True)
    round_won_at = Column(DateTime(timezone=True), nullable=True)
    shuffle_votes = Column(JSON, nullable=False, default=list)
    used_mini_category_ids = Column(JSON, nullable=False, default=list)
    failed_mini_category_ids = Column(JSON, nullable=False, default=list)

    # Match outcome
    match_winner_id = Column(String(64), nullable=True)
    match_winning_word = Column(String(100), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
    finished_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Room(id={self.room_id}, code={self.code}, status={self.status}, round={self.round_number})>"
