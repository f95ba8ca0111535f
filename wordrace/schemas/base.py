"""Shared schema base for API responses."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_serializer

from wordrace.utils.datetime_helpers import isoformat_utc


class BaseSchema(BaseModel):
    """Reads ORM rows directly and renders every timestamp as UTC ``...Z``."""

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("*", mode="wrap", when_used="json")
    def _serialize_timestamps(self, value, handler):
        if isinstance(value, datetime):
            return isoformat_utc(value)
        return handler(value)
