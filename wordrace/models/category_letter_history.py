"""Recent (category, letter) combinations per player."""
from sqlalchemy import Column, String, DateTime, UniqueConstraint, Index
from datetime import datetime, UTC
import uuid

from wordrace.database import Base
from wordrace.models.base import get_uuid_column


class CategoryLetterHistory(Base):
    """Last time a player won with a letter under a mini category."""
    __tablename__ = "category_letter_history"

    id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    player_id = Column(String(64), nullable=False)
    category_name = Column(String(200), nullable=False)
    letter = Column(String(1), nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    __table_args__ = (
        UniqueConstraint("player_id", "category_name", "letter", name="uq_category_letter_history"),
        Index("ix_category_letter_history_player_used", "player_id", "last_used_at"),
    )

    def __repr__(self):
        return f"<CategoryLetterHistory(player_id={self.player_id}, category={self.category_name}, letter={self.letter})>"
