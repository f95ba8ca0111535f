"""Inactive-player kicks and abandoned-room sweeps."""
from datetime import datetime, UTC, timedelta
from typing import List, Optional
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from wordrace.config import get_settings
from wordrace.models.base import ACTIVE_ROOM_STATUSES, RoomStatus
from wordrace.models.room import Room
from wordrace.models.room_player import RoomPlayer
from wordrace.services.room_service import RoomService
from wordrace.utils.datetime_helpers import idle_for_at_least

logger = logging.getLogger(__name__)


class PlayerLifecycleService:
    """Removes players that stopped polling and deletes abandoned rooms."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()
        self.room_service = RoomService(db)

    async def _kick_inactive(self, room: Room, max_idle_seconds: int, now: Optional[datetime]) -> List[str]:
        players = await self.room_service.get_players(room.room_id)
        stale = [
            player for player in players
            if idle_for_at_least(player.last_seen_at, max_idle_seconds, now)
        ]
        kicked = []
        for player in stale:
            kicked.append(player.player_id)
            await self.room_service.remove_player(room, player)
            logger.info(f"Kicked inactive player {player.player_id} from room {room.code} ({room.status})")
        return kicked

    async def kick_inactive_from_waiting(self, room: Room, now: Optional[datetime] = None) -> bool:
        """Drop lobby players unseen for the waiting threshold.

        Returns:
            bool: True if the room was deleted because nobody is left
        """
        if room.status != RoomStatus.WAITING.value:
            return False

        kicked = await self._kick_inactive(room, self.settings.waiting_kick_seconds, now)
        if not kicked:
            return False

        if await self.room_service.count_players(room.room_id) == 0:
            await self.room_service.delete_room(room)
            return True
        await self.db.flush()
        return False

    async def kick_inactive_from_game(self, room: Room, now: Optional[datetime] = None) -> List[str]:
        """Drop tutorial/playing players unseen for the in-game threshold.

        An emptied room is marked finished rather than deleted; the sweep
        removes it later.
        """
        if room.status not in (RoomStatus.TUTORIAL.value, RoomStatus.PLAYING.value):
            return []

        kicked = await self._kick_inactive(room, self.settings.playing_kick_seconds, now)
        if kicked and await self.room_service.count_players(room.room_id) == 0:
            room.status = RoomStatus.FINISHED.value
            room.finished_at = datetime.now(UTC)
            logger.info(f"Room {room.code} finished: all players inactive")
        if kicked:
            await self.db.flush()
        return kicked

    async def sweep_stale_rooms(self, now: Optional[datetime] = None) -> int:
        """Delete abandoned rooms with their dependent rows.

        A room is abandoned when:
        - it is active and its most recently seen player has been gone longer
          than the stale threshold,
        - it has no players and was created (or finished) before that threshold, or
        - it finished before the threshold and nobody has polled it since.

        Returns:
            int: Number of rooms deleted
        """
        now = now or datetime.now(UTC)
        cutoff = now - timedelta(minutes=self.settings.stale_room_minutes)

        inactive_result = await self.db.execute(
            select(Room)
            .join(RoomPlayer, RoomPlayer.room_id == Room.room_id)
            .where(Room.status.in_(ACTIVE_ROOM_STATUSES))
            .group_by(Room.room_id)
            .having(func.max(RoomPlayer.last_seen_at) < cutoff)
        )
        stale_rooms = {room.room_id: (room, "all players inactive") for room in inactive_result.scalars().all()}

        empty_result = await self.db.execute(
            select(Room)
            .outerjoin(RoomPlayer, RoomPlayer.room_id == Room.room_id)
            .where(
                func.coalesce(Room.finished_at, Room.created_at) < cutoff,
                RoomPlayer.room_player_id.is_(None),
            )
        )
        for room in empty_result.scalars().all():
            stale_rooms.setdefault(room.room_id, (room, "empty"))

        finished_result = await self.db.execute(
            select(Room)
            .outerjoin(RoomPlayer, RoomPlayer.room_id == Room.room_id)
            .where(
                Room.status == RoomStatus.FINISHED.value,
                func.coalesce(Room.finished_at, Room.updated_at) < cutoff,
            )
            .group_by(Room.room_id)
            .having(
                or_(
                    func.count(RoomPlayer.room_player_id) == 0,
                    func.max(RoomPlayer.last_seen_at) < cutoff,
                )
            )
        )
        for room in finished_result.scalars().all():
            stale_rooms.setdefault(room.room_id, (room, "finished and unattended"))

        for room, reason in stale_rooms.values():
            logger.info(f"Cleaning up room {room.code} ({reason})")
            await self.room_service.delete_room(room)

        if stale_rooms:
            await self.db.flush()
        return len(stale_rooms)
