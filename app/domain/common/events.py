# app/domain/common/events.py
"""
Room-scoped broadcast envelope.

Handlers never touch sockets: they return Broadcast items addressed to a room
topic, and the transport layer (WSManager.publish) resolves the live
connections bound to that room.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional


@dataclass
class Broadcast:
    room_id: str
    event: Any  # OutgoingEvent
    exclude_pid: Optional[str] = None


# WSManager.publish in production, a recorder in tests
Publish = Callable[[List[Broadcast]], Awaitable[None]]


def to_room(room_id: str, *events: Any, exclude_pid: Optional[str] = None) -> List[Broadcast]:
    return [Broadcast(room_id=room_id, event=e, exclude_pid=exclude_pid) for e in events]
