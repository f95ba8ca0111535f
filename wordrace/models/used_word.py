"""Used word model: append-only audit of accepted submissions."""
from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Integer,
    Index,
)
from datetime import datetime, UTC
import uuid

from wordrace.database import Base
from wordrace.models.base import get_uuid_column


class UsedWord(Base):
    """An accepted word. ``word`` is stored upper-case."""
    __tablename__ = "used_words"

    used_word_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    room_id = get_uuid_column(
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
    )
    player_id = Column(String(64), nullable=False)
    round_number = Column(Integer, nullable=False)
    category = Column(String(200), nullable=False)
    word = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    __table_args__ = (
        Index("ix_used_words_room_category", "room_id", "category"),
        Index("ix_used_words_room_round_player", "room_id", "round_number", "player_id"),
    )

    def __repr__(self):
        return f"<UsedWord(room_id={self.room_id}, round={self.round_number}, word={self.word})>"
