"""FastAPI dependencies."""
import logging
import re

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)

PLAYER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-:.]{1,64}$")


def _mask_identifier(identifier: str) -> str:
    """Mask an identifier for logging."""
    if not identifier:
        return "<missing>"
    if len(identifier) <= 8:
        return f"{identifier[:2]}...{identifier[-2:]}"
    return f"{identifier[:4]}...{identifier[-4:]}"


async def get_player_id(x_player_id: str | None = Header(default=None)) -> str:
    """Stable opaque player id supplied by the client in ``X-Player-Id``."""
    if not x_player_id:
        raise HTTPException(status_code=401, detail="Missing X-Player-Id header")

    player_id = x_player_id.strip()
    if not PLAYER_ID_PATTERN.match(player_id):
        logger.warning(f"Rejected malformed player id {_mask_identifier(player_id)}")
        raise HTTPException(status_code=400, detail="Invalid X-Player-Id header")
    return player_id
