# app/store/registry.py
from __future__ import annotations

import logging
import random
import string
from dataclasses import dataclass
from typing import Dict, List, Optional

from app.domain.common.errors import RoomError
from app.domain.common.types import Mode, Visibility
from app.domain.lobby.balancer import assign_team
from app.store.models import PlayerStore, RoomStore, UNSET_COLOR
from app.util.timeutil import now_ms

logger = logging.getLogger(__name__)


@dataclass
class RoomConfig:
    capacity: int = 8
    visibility: Visibility = "PUBLIC"
    name: str = "ROOM"
    mode: Mode = "TEAM"
    nickname: str = "Player"


@dataclass
class LeaveOutcome:
    room_id: str
    closed: bool
    new_host: Optional[str] = None
    room: Optional[RoomStore] = None


def _gen_room_code(n: int = 6) -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(n))


class RoomRegistry:
    """
    In-memory room registry: room_id -> RoomStore.

    Owned by the app (app.state.registry), never module-global.
    All methods are synchronous and must only be called from the event loop,
    so a mutation always runs to completion before another handler sees the room.
    Failed operations raise RoomError before touching any state.
    """

    def __init__(
        self,
        *,
        max_rooms: int = 100,
        min_capacity: int = 2,
        max_capacity: int = 8,
        team_cap: int = 3,
        max_health: int = 100,
        code_length: int = 6,
    ) -> None:
        self.max_rooms = max_rooms
        self.min_capacity = min_capacity
        self.max_capacity = max_capacity
        self.team_cap = team_cap
        self.max_health = max_health
        self.code_length = code_length
        # insertion order == creation order
        self._rooms: Dict[str, RoomStore] = {}

    # ----------------------------
    # Lookups
    # ----------------------------
    def __len__(self) -> int:
        return len(self._rooms)

    def get(self, room_id: str) -> Optional[RoomStore]:
        return self._rooms.get(room_id)

    def info(self, room_id: str) -> RoomStore:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomError("NOT_FOUND", f"Room {room_id} not found")
        return room

    def all_rooms(self) -> List[RoomStore]:
        return list(self._rooms.values())

    def rooms_of(self, player_id: str) -> List[RoomStore]:
        return [r for r in self._rooms.values() if player_id in r.players]

    def room_of(self, player_id: str) -> Optional[RoomStore]:
        for r in self._rooms.values():
            if player_id in r.players:
                return r
        return None

    def list_public(self, limit: int = 3) -> List[RoomStore]:
        """Newest PUBLIC + WAITING rooms first; limit is a display cap."""
        out: List[RoomStore] = []
        for room in reversed(list(self._rooms.values())):
            if room.visibility == "PUBLIC" and room.status == "WAITING":
                out.append(room)
                if len(out) >= limit:
                    break
        return out

    # ----------------------------
    # Mutations
    # ----------------------------
    def clamp_capacity(self, capacity: int) -> int:
        return max(self.min_capacity, min(self.max_capacity, int(capacity)))

    def _fresh_code(self) -> str:
        while True:
            code = _gen_room_code(self.code_length)
            if code not in self._rooms:
                return code

    def new_player(self, player_id: str, nickname: str) -> PlayerStore:
        return PlayerStore(
            id=player_id,
            nickname=nickname,
            team=None,
            color=UNSET_COLOR,
            ready=False,
            health=self.max_health,
            joined_at=now_ms(),
        )

    def create(self, requester_id: str, config: RoomConfig) -> RoomStore:
        if len(self._rooms) >= self.max_rooms:
            raise RoomError("ROOM_LIMIT")

        code = self._fresh_code()
        player = self.new_player(requester_id, config.nickname)
        room = RoomStore(
            room_id=code,
            host_id=requester_id,
            capacity=self.clamp_capacity(config.capacity),
            status="WAITING",
            visibility=config.visibility,
            name=(config.name or "").strip() or "ROOM",
            mode=config.mode,
            created_at=now_ms(),
        )
        if room.is_team_mode:
            # creator always starts on A
            player.team = "A"
            room.next_team_hint = "B"
        room.players[requester_id] = player

        self._rooms[code] = room
        logger.info("room created room=%s host=%s mode=%s cap=%s", code, requester_id, room.mode, room.capacity)
        return room

    def join(self, room_id: str, requester_id: str, nickname: str) -> RoomStore:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomError("NOT_FOUND", f"Room {room_id} not found")
        if room.status != "WAITING":
            raise RoomError("IN_PROGRESS")

        existing = room.players.get(requester_id)
        if existing is not None:
            existing.nickname = nickname
            return room

        if len(room.players) >= room.capacity:
            raise RoomError("FULL")

        team = None
        if room.is_team_mode:
            # assign_team flips the hint only when it returns a team
            team = assign_team(room, self.team_cap)
            if team is None:
                raise RoomError("FULL", "Both teams are full")

        player = self.new_player(requester_id, nickname)
        player.team = team
        room.players[requester_id] = player
        logger.info("player joined room=%s pid=%s team=%s", room_id, requester_id, team)
        return room

    def leave(self, requester_id: str, *, keep: Optional[str] = None) -> List[LeaveOutcome]:
        """
        Remove requester from every room it is in (except `keep`). Never fails.
        Host leaves -> promote a remaining player; last player leaves -> delete room.
        """
        outcomes: List[LeaveOutcome] = []
        for room in self.rooms_of(requester_id):
            if room.room_id == keep:
                continue
            room.players.pop(requester_id, None)

            if not room.players:
                self._rooms.pop(room.room_id, None)
                logger.info("room closed room=%s", room.room_id)
                outcomes.append(LeaveOutcome(room_id=room.room_id, closed=True))
                continue

            new_host = None
            if room.host_id == requester_id:
                new_host = next(iter(room.players))
                room.host_id = new_host
                logger.info("host migrated room=%s from=%s to=%s", room.room_id, requester_id, new_host)
            outcomes.append(LeaveOutcome(room_id=room.room_id, closed=False, new_host=new_host, room=room))
        return outcomes

    def member(self, room_id: str, player_id: str) -> PlayerStore:
        """Strict membership lookup used by operations that name a room explicitly."""
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomError("NO_ROOM", f"Room {room_id} not found")
        player = room.players.get(player_id)
        if player is None:
            raise RoomError("NOT_IN_ROOM")
        return player

    def current(self, player_id: str) -> RoomStore:
        """The caller's room, or NO_ROOM."""
        room = self.room_of(player_id)
        if room is None:
            raise RoomError("NO_ROOM")
        return room

    def set_nickname(self, player_id: str, nickname: str) -> RoomStore:
        room = self.current(player_id)
        room.players[player_id].nickname = nickname
        return room
