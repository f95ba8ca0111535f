"""Round history model."""
from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    UniqueConstraint,
)
from datetime import datetime, UTC
import uuid

from wordrace.database import Base
from wordrace.models.base import get_uuid_column


class RoundHistory(Base):
    """Snapshot of the letters and mini category a round was played with."""
    __tablename__ = "round_history"

    round_history_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
    room_id = get_uuid_column(
        ForeignKey("rooms.room_id", ondelete="CASCADE"),
        nullable=False,
    )
    round_number = Column(Integer, nullable=False)
    letters = Column(JSON, nullable=False)
    mini_category = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    __table_args__ = (
        UniqueConstraint("room_id", "round_number", name="uq_round_history_room_round"),
    )

    def __repr__(self):
        return f"<RoundHistory(room_id={self.room_id}, round={self.round_number}, category={self.mini_category})>"
