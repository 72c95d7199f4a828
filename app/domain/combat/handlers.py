# app/domain/combat/handlers.py
from __future__ import annotations

from typing import Optional

from app.domain.common.errors import RoomError
from app.domain.common.replies import Result, ack, fail
from app.transport.protocols import InDamage


async def handle_damage(*, app, pid: Optional[str], msg: InDamage) -> Result:
    try:
        room = app.state.registry.current(pid)
        health, broadcasts = app.state.health.apply_damage(room, msg.target_id, msg.amount, hit_id=msg.hit_id)
    except RoomError as e:
        return [fail(msg, e)], []
    return [ack(msg, player_id=msg.target_id, health=health)], broadcasts
