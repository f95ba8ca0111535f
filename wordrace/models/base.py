"""Base utilities for SQLAlchemy models."""
from enum import Enum
import uuid
from sqlalchemy import Column, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.sql import sqltypes


class RoomStatus(str, Enum):
    """Room status enumeration for type safety."""
    WAITING = "waiting"
    TUTORIAL = "tutorial"
    PLAYING = "playing"
    FINISHED = "finished"


# Statuses in which a room still has a live roster
ACTIVE_ROOM_STATUSES = (RoomStatus.WAITING.value, RoomStatus.TUTORIAL.value, RoomStatus.PLAYING.value)


class RoomType(str, Enum):
    """Room visibility enumeration."""
    PRIVATE = "private"
    PUBLIC = "public"


class CategoryType(str, Enum):
    """Kind of category recorded in a player's cross-game history."""
    BASE = "base"
    MINI = "mini"


class GameResult(str, Enum):
    """Final outcome recorded in game session stats."""
    WIN = "win"
    LOSS = "loss"


class UUIDType(sqltypes.TypeDecorator):
    """UUID stored natively on PostgreSQL and as 32-char hex elsewhere."""

    impl = sqltypes.String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    @staticmethod
    def _coerce_uuid(value):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))

    def process_bind_param(self, value, dialect):
        value = self._coerce_uuid(value)
        if value is None or dialect.name == "postgresql":
            return value
        return value.hex

    def process_result_value(self, value, dialect):
        return self._coerce_uuid(value)


def get_uuid_column(*args, **kwargs):
    """Get a UUID column that adapts to the database dialect.

    Example:
        room_id = get_uuid_column(primary_key=True, default=uuid.uuid4)
        foreign_id = get_uuid_column(ForeignKey("rooms.room_id"), nullable=False)
    """
    return Column(UUIDType(), *args, **kwargs)
