# app/domain/relay/handlers.py
from __future__ import annotations

from typing import Optional

from app.domain.common.events import to_room
from app.domain.common.replies import Result
from app.transport.protocols import InRelay, OutRelay


async def handle_relay(*, app, pid: Optional[str], msg: InRelay) -> Result:
    """
    Forward movement / aim / shoot / particle / chat / game events verbatim to
    the other members of the sender's room. No ack; roomless senders are dropped.
    """
    room = app.state.registry.room_of(pid) if pid else None
    if room is None:
        return [], []
    return [], to_room(room.room_id, OutRelay(type=msg.type, by=pid, data=msg.data), exclude_pid=pid)
