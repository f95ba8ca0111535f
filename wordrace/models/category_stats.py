"""Aggregate per-category play statistics."""
from sqlalchemy import Column, String, DateTime, Integer
from datetime import datetime, UTC

from wordrace.database import Base


class CategoryStats(Base):
    """Attempts, acceptances and dead rounds for one mini category name.

    Feeds the dynamic difficulty score used by the category selector.
    """
    __tablename__ = "category_stats"

    category_name = Column(String(200), primary_key=True)
    total_attempts = Column(Integer, nullable=False, default=0)
    successful_attempts = Column(Integer, nullable=False, default=0)
    dead_rounds = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self):
        return (
            f"<CategoryStats(name={self.category_name}, attempts={self.total_attempts}, "
            f"successes={self.successful_attempts}, dead={self.dead_rounds})>"
        )
