"""Room membership service: create, join, leave, matchmaking and host transfer."""
from datetime import datetime, UTC
from typing import List, Optional, Sequence
from uuid import UUID
import logging
import random
import string
import uuid

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from wordrace.config import get_settings
from wordrace.models.base import ACTIVE_ROOM_STATUSES, RoomStatus, RoomType
from wordrace.models.room import Room
from wordrace.models.room_player import RoomPlayer
from wordrace.models.round_history import RoundHistory
from wordrace.models.used_word import UsedWord
from wordrace.utils.exceptions import (
    PlayerNotInRoomError,
    RoomCodeGenerationError,
    RoomFullError,
    RoomNotFoundError,
    WrongRoomStatusError,
)

logger = logging.getLogger(__name__)

# Exclude ambiguous characters: O, I, L, 0, 1
ROOM_CODE_ALPHABET = (
    string.ascii_uppercase.replace('O', '').replace('I', '').replace('L', '')
    + string.digits.replace('0', '').replace('1', '')
)
MAX_CODE_ATTEMPTS = 10


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class RoomService:
    """Reads and mutates room membership.

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_room_by_code(self, code: str, for_update: bool = False) -> Room:
        """Load a room by code.

        Raises:
            RoomNotFoundError: If no room has this code
        """
        stmt = select(Room).where(Room.code == normalize_code(code))
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        room = result.scalar_one_or_none()
        if not room:
            raise RoomNotFoundError(f"Room {normalize_code(code)} not found")
        return room

    async def get_players(self, room_id: UUID) -> List[RoomPlayer]:
        """Room players, oldest joiner first."""
        result = await self.db.execute(
            select(RoomPlayer)
            .where(RoomPlayer.room_id == room_id)
            .order_by(RoomPlayer.joined_at.asc(), RoomPlayer.room_player_id.asc())
        )
        return list(result.scalars().all())

    async def get_player(self, room_id: UUID, player_id: str) -> Optional[RoomPlayer]:
        result = await self.db.execute(
            select(RoomPlayer).where(
                RoomPlayer.room_id == room_id,
                RoomPlayer.player_id == player_id,
            )
        )
        return result.scalar_one_or_none()

    async def require_player(self, room: Room, player_id: str) -> RoomPlayer:
        player = await self.get_player(room.room_id, player_id)
        if not player:
            raise PlayerNotInRoomError(f"Player is not in room {room.code}")
        return player

    async def count_players(self, room_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(RoomPlayer.room_player_id)).where(RoomPlayer.room_id == room_id)
        )
        return result.scalar() or 0

    async def get_active_room_for_player(self, player_id: str) -> Optional[Room]:
        """Most recently joined room in waiting/tutorial/playing the player belongs to."""
        result = await self.db.execute(
            select(Room)
            .join(RoomPlayer, RoomPlayer.room_id == Room.room_id)
            .where(
                RoomPlayer.player_id == player_id,
                Room.status.in_(ACTIVE_ROOM_STATUSES),
            )
            .order_by(RoomPlayer.joined_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_active_room_codes(self, player_id: str) -> List[str]:
        """Codes of every waiting/tutorial/playing room the player belongs to."""
        result = await self.db.execute(
            select(Room.code)
            .join(RoomPlayer, RoomPlayer.room_id == Room.room_id)
            .where(
                RoomPlayer.player_id == player_id,
                Room.status.in_(ACTIVE_ROOM_STATUSES),
            )
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Creation and membership
    # ------------------------------------------------------------------

    async def _generate_unique_code(self, max_attempts: int = MAX_CODE_ATTEMPTS) -> str:
        """Generate a room code not used by any existing room.

        Raises:
            RoomCodeGenerationError: If every attempt collided
        """
        for _ in range(max_attempts):
            code = ''.join(random.choices(ROOM_CODE_ALPHABET, k=self.settings.room_code_length))
            result = await self.db.execute(select(Room.room_id).where(Room.code == code))
            if result.scalar_one_or_none() is None:
                return code

        raise RoomCodeGenerationError("Failed to generate unique room code after maximum attempts")

    async def create_room(
        self,
        player_id: str,
        display_name: str,
        room_type: RoomType = RoomType.PRIVATE,
    ) -> Room:
        """Create a room with the caller as host and first ready player."""
        await self.leave_other_rooms(player_id)

        room_type = RoomType(room_type)
        is_public = room_type == RoomType.PUBLIC
        now = datetime.now(UTC)

        room = Room(
            room_id=uuid.uuid4(),
            code=await self._generate_unique_code(),
            status=RoomStatus.WAITING.value,
            room_type=room_type.value,
            host_player_id=player_id,
            min_players=self.settings.room_min_players,
            max_players=(
                self.settings.public_room_max_players if is_public
                else self.settings.private_room_max_players
            ),
            preferred_players=self.settings.public_room_preferred_players if is_public else 0,
            round_number=0,
            failed_rounds=0,
            letters=[],
            shuffle_votes=[],
            used_mini_category_ids=[],
            failed_mini_category_ids=[],
            created_at=now,
        )
        self.db.add(room)
        self.db.add(self._new_player(room.room_id, player_id, display_name, now))
        await self.db.flush()

        logger.info(f"Created {room_type.value} room {room.code} for host {player_id}")
        return room

    @staticmethod
    def _new_player(room_id: UUID, player_id: str, display_name: str, now: datetime) -> RoomPlayer:
        return RoomPlayer(
            room_player_id=uuid.uuid4(),
            room_id=room_id,
            player_id=player_id,
            display_name=display_name,
            collected_letters=[],
            tutorial_complete=False,
            is_ready=True,
            joined_at=now,
            last_seen_at=now,
        )

    async def join_room(self, code: str, player_id: str, display_name: str) -> Room:
        """Join a waiting room, or rejoin a room the player is already in.

        Raises:
            RoomNotFoundError: Unknown code
            WrongRoomStatusError: Room is not waiting and the player is not a member
            RoomFullError: Room is at max capacity
        """
        room = await self.get_room_by_code(code, for_update=True)

        existing = await self.get_player(room.room_id, player_id)
        if existing:
            await self.leave_other_rooms(player_id, keep_room_id=room.room_id)
            existing.last_seen_at = datetime.now(UTC)
            await self.db.flush()
            logger.info(f"Player {player_id} rejoined room {room.code}")
            return room

        if room.status != RoomStatus.WAITING.value:
            raise WrongRoomStatusError("Game already in progress")

        if await self.count_players(room.room_id) >= room.max_players:
            raise RoomFullError(f"Room is full (max {room.max_players} players)")

        await self.leave_other_rooms(player_id, keep_room_id=room.room_id)
        self.db.add(self._new_player(room.room_id, player_id, display_name, datetime.now(UTC)))
        await self.db.flush()
        logger.info(f"Player {player_id} joined room {room.code}")
        return room

    async def leave_room(self, room: Room, player_id: str) -> bool:
        """Remove the player from the room.

        Returns:
            bool: True if the room was deleted because it became empty
        """
        player = await self.require_player(room, player_id)
        remaining = await self.remove_player(room, player)
        if not remaining:
            await self.delete_room(room)
            return True
        return False

    async def leave_other_rooms(self, player_id: str, keep_room_id: Optional[UUID] = None) -> int:
        """Remove the player from every other active room they belong to.

        Callers hold the room lock of each code from :meth:`get_active_room_codes`.

        Returns:
            int: Number of rooms left
        """
        stmt = (
            select(Room)
            .join(RoomPlayer, RoomPlayer.room_id == Room.room_id)
            .where(
                RoomPlayer.player_id == player_id,
                Room.status.in_(ACTIVE_ROOM_STATUSES),
            )
        )
        if keep_room_id is not None:
            stmt = stmt.where(Room.room_id != keep_room_id)
        result = await self.db.execute(stmt)
        rooms = list(result.scalars().all())

        for room in rooms:
            player = await self.get_player(room.room_id, player_id)
            if player is None:
                continue
            remaining = await self.remove_player(room, player)
            if not remaining:
                if room.status == RoomStatus.WAITING.value:
                    await self.delete_room(room)
                else:
                    room.status = RoomStatus.FINISHED.value
                    room.finished_at = datetime.now(UTC)
            logger.info(f"Removed player {player_id} from room {room.code} before joining another")

        if rooms:
            await self.db.flush()
        return len(rooms)

    async def remove_player(self, room: Room, player: RoomPlayer) -> List[RoomPlayer]:
        """Delete a membership, purge its shuffle vote and hand off host.

        Returns:
            List[RoomPlayer]: Players still in the room, oldest joiner first
        """
        player_id = player.player_id
        await self.db.delete(player)
        await self.db.flush()

        if player_id in (room.shuffle_votes or []):
            room.shuffle_votes = [vote for vote in room.shuffle_votes if vote != player_id]

        remaining = await self.get_players(room.room_id)
        if remaining and room.host_player_id == player_id:
            self.transfer_host(room, remaining)
        return remaining

    @staticmethod
    def transfer_host(room: Room, players: Sequence[RoomPlayer]) -> Optional[str]:
        """Give host to the oldest joiner. ``players`` must be ordered by join time."""
        if not players:
            return None
        new_host = players[0].player_id
        if new_host != room.host_player_id:
            logger.info(f"Transferred host of room {room.code} from {room.host_player_id} to {new_host}")
            room.host_player_id = new_host
        return new_host

    async def delete_room(self, room: Room) -> None:
        """Delete a room and every row that references it."""
        room_id = room.room_id
        await self.db.execute(delete(UsedWord).where(UsedWord.room_id == room_id))
        await self.db.execute(delete(RoundHistory).where(RoundHistory.room_id == room_id))
        await self.db.execute(delete(RoomPlayer).where(RoomPlayer.room_id == room_id))
        await self.db.execute(delete(Room).where(Room.room_id == room_id))
        logger.info(f"Deleted room {room.code}")

    # ------------------------------------------------------------------
    # Matchmaking
    # ------------------------------------------------------------------

    async def find_public_room_with_space(self) -> Optional[Room]:
        """Best public waiting room with space: most players first, then oldest."""
        player_counts = (
            select(
                RoomPlayer.room_id,
                func.count(RoomPlayer.room_player_id).label("player_count"),
            )
            .group_by(RoomPlayer.room_id)
            .subquery()
        )
        count_col = func.coalesce(player_counts.c.player_count, 0)
        result = await self.db.execute(
            select(Room)
            .outerjoin(player_counts, Room.room_id == player_counts.c.room_id)
            .where(
                Room.status == RoomStatus.WAITING.value,
                Room.room_type == RoomType.PUBLIC.value,
                count_col < Room.max_players,
            )
            .order_by(count_col.desc(), Room.created_at.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def matchmake(self, player_id: str, display_name: str, candidate_code: Optional[str] = None) -> Room:
        """Put the player into a public room, creating one if none has space.

        ``candidate_code`` is the room picked by :meth:`find_public_room_with_space`
        before its lock was taken; it is re-checked here and skipped if it
        filled up, started or vanished in the meantime.
        """
        existing = await self.get_active_room_for_player(player_id)
        if existing:
            logger.info(f"Player {player_id} already in active room {existing.code}")
            return existing

        if candidate_code:
            try:
                room = await self.get_room_by_code(candidate_code, for_update=True)
            except RoomNotFoundError:
                room = None
            if (
                room is not None
                and room.status == RoomStatus.WAITING.value
                and room.room_type == RoomType.PUBLIC.value
                and await self.count_players(room.room_id) < room.max_players
            ):
                self.db.add(self._new_player(room.room_id, player_id, display_name, datetime.now(UTC)))
                await self.db.flush()
                logger.info(f"Matched player {player_id} into public room {room.code}")
                return room
            logger.info(f"Public room {candidate_code} no longer has space for {player_id}")

        return await self.create_room(player_id, display_name, RoomType.PUBLIC)
