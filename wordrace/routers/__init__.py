"""API routers."""
from wordrace.routers import categories, health, rooms

__all__ = ["categories", "health", "rooms"]
