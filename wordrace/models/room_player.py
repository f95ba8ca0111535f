"""Room player model."""
from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Boolean,
    JSON,
    UniqueConstraint,
)
from datetime import datetime, UTC
import uuid

from wordrace.database import Base
from wordrace.models.base import get_uuid_column


class RoomPlayer(Base):
    """A player's membership in a room.

    ``collected_letters`` only grows during a match and is reset on rematch.
    """
    __tablename__ = "room_players"

    room_player_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    room_id = get_uuid_column(
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
    )
    player_id = Column(String(64), nullable=False, index=True)
    display_name = Column(String(50), nullable=False)

    collected_letters = Column(JSON, nullable=False, default=list)
    tutorial_complete = Column(Boolean, nullable=False, default=False)
    is_ready = Column(Boolean, nullable=False, default=True)

    joined_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    last_seen_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    __table_args__ = (
        UniqueConstraint("room_id", "player_id", name="uq_room_players_room_player"),
    )

    def __repr__(self):
        return f"<RoomPlayer(room_id={self.room_id}, player_id={self.player_id}, letters={self.collected_letters})>"
