# app/domain/combat/health.py
from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Tuple

from app.domain.common.errors import RoomError
from app.domain.common.events import Broadcast, Publish, to_room
from app.domain.common.scheduler import RoomScheduler
from app.store.models import RoomStore
from app.store.registry import RoomRegistry
from app.transport.protocols import OutHealthUpdate
from app.util.timeutil import now_ms

logger = logging.getLogger(__name__)


class HealthAuthority:
    """
    Authoritative per-player health.

    - apply_damage clamps to [0, max_health] and returns the update broadcast.
    - A hit carrying hit_id is applied once per target per dedup window; hits without one
      are applied every time they arrive.
    - Reaching 0 schedules a respawn. There is no per-player respawn token, so
      a second death before the first respawn fires schedules a second one;
      both restore max_health and broadcast it.
    """

    def __init__(
        self,
        *,
        registry: RoomRegistry,
        scheduler: RoomScheduler,
        publish: Publish,
        max_health: int = 100,
        respawn_delay_sec: float = 3.0,
        dedup_window_sec: float = 2.0,
    ) -> None:
        self.registry = registry
        self.scheduler = scheduler
        self.publish = publish
        self.max_health = max_health
        self.respawn_delay_sec = respawn_delay_sec
        self.dedup_window_sec = dedup_window_sec
        # (room_id, target_id, hit_id) -> monotonic time first seen
        self._seen_hits: Dict[Tuple[str, str, str], float] = {}

    def _is_duplicate(self, room_id: str, target_id: str, hit_id: Optional[str]) -> bool:
        if not hit_id:
            return False
        now = time.monotonic()
        cutoff = now - self.dedup_window_sec
        self._seen_hits = {k: t for k, t in self._seen_hits.items() if t >= cutoff}
        key = (room_id, target_id, hit_id)
        if key in self._seen_hits:
            return True
        self._seen_hits[key] = now
        return False

    def apply_damage(
        self,
        room: RoomStore,
        target_id: str,
        amount: int,
        *,
        hit_id: Optional[str] = None,
    ) -> Tuple[int, List[Broadcast]]:
        target = room.players.get(target_id)
        if target is None:
            raise RoomError("NOT_IN_ROOM", f"Player {target_id} is not in this room")

        if self._is_duplicate(room.room_id, target_id, hit_id):
            logger.debug("duplicate hit ignored room=%s hit=%s", room.room_id, hit_id)
            return target.health, []

        amount = max(0, int(amount))
        target.health = min(self.max_health, max(0, target.health - amount))

        events = to_room(
            room.room_id,
            OutHealthUpdate(player_id=target_id, health=target.health, damage=amount, ts=now_ms()),
        )

        if target.health == 0:
            logger.info("player died room=%s pid=%s", room.room_id, target_id)
            self.schedule_respawn(room.room_id, target_id)

        return target.health, events

    def schedule_respawn(self, room_id: str, player_id: str) -> None:
        async def _respawn() -> None:
            room = self.registry.get(room_id)
            if room is None:
                return
            player = room.players.get(player_id)
            if player is None:
                return
            player.health = self.max_health
            logger.info("player respawned room=%s pid=%s", room_id, player_id)
            await self.publish(
                to_room(room_id, OutHealthUpdate(player_id=player_id, health=player.health, damage=0, ts=now_ms()))
            )

        self.scheduler.schedule(room_id, self.respawn_delay_sec, _respawn, name=f"respawn:{player_id}")

    def reset_all(self, room: RoomStore) -> None:
        for p in room.players.values():
            p.health = self.max_health

    def forget_room(self, room_id: str) -> None:
        self._seen_hits = {k: t for k, t in self._seen_hits.items() if k[0] != room_id}
