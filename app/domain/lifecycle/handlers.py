# app/domain/lifecycle/handlers.py
from __future__ import annotations

import logging
from typing import List, Optional

from app.domain.common.errors import RoomError
from app.domain.common.events import Broadcast, to_room
from app.domain.common.replies import Result, ack, fail
from app.store.registry import LeaveOutcome, RoomConfig
from app.transport.protocols import (
    InCreateRoom,
    InJoin,
    InLeave,
    InListRooms,
    InRoomInfo,
    OutError,
    OutPlayerJoined,
    OutPlayerLeft,
    OutRoomClosed,
    room_update,
)

logger = logging.getLogger(__name__)


def _departure_events(app, pid: str, outcomes: List[LeaveOutcome]) -> List[Broadcast]:
    """
    Turn registry leave outcomes into broadcasts and release per-room resources
    (pending timers, hit dedup cache) for rooms that were deleted.
    """
    out: List[Broadcast] = []
    for o in outcomes:
        if o.closed:
            app.state.scheduler.cancel_room(o.room_id)
            app.state.health.forget_room(o.room_id)
            out.extend(to_room(o.room_id, OutRoomClosed(room_id=o.room_id)))
            continue
        out.extend(
            to_room(
                o.room_id,
                room_update(o.room),
                OutPlayerLeft(pid=pid, host_id=o.room.host_id),
            )
        )
    return out


# -------------------------
# Handlers
# -------------------------

async def handle_create_room(*, app, pid: Optional[str], msg: InCreateRoom) -> Result:
    """
    Create a room with the caller as sole player + host.
    A connection sits in one room at a time, so any previous room is left
    after the new one exists (a ROOM_LIMIT rejection leaves the caller where it was).
    """
    if not pid:
        return [OutError(code="NO_PID", message="Missing pid for this connection")], []

    registry = app.state.registry
    cfg = RoomConfig(
        capacity=msg.capacity,
        visibility=msg.visibility,
        name=msg.name,
        mode=msg.mode,
        nickname=msg.nickname,
    )
    try:
        room = registry.create(pid, cfg)
    except RoomError as e:
        logger.warning("create_room rejected pid=%s code=%s", pid, e.code)
        return [fail(msg, e)], []

    departures = _departure_events(app, pid, registry.leave(pid, keep=room.room_id))
    return [ack(msg, room=room.snapshot())], departures + to_room(room.room_id, room_update(room))


async def handle_list_rooms(*, app, pid: Optional[str], msg: InListRooms) -> Result:
    limit = app.state.settings.LIST_LIMIT
    rooms = app.state.registry.list_public(limit=limit)
    return [ack(msg, rooms=[r.summary() for r in rooms])], []


async def handle_room_info(*, app, pid: Optional[str], msg: InRoomInfo) -> Result:
    try:
        room = app.state.registry.info(msg.room_id)
    except RoomError as e:
        return [fail(msg, e)], []
    return [ack(msg, room=room.snapshot())], []


async def handle_join(*, app, pid: Optional[str], msg: InJoin) -> Result:
    """
    Join:
    - reject missing / started / full rooms (team caps can fill a room early)
    - re-joining with a known id only updates the nickname
    - ack snapshot to joiner; broadcast roster + player_joined to the room
    """
    if not pid:
        return [OutError(code="NO_PID", message="Missing pid for this connection")], []

    registry = app.state.registry
    room = registry.get(msg.room_id)
    rejoin = room is not None and pid in room.players

    try:
        room = registry.join(msg.room_id, pid, msg.nickname)
    except RoomError as e:
        return [fail(msg, e)], []

    departures = _departure_events(app, pid, registry.leave(pid, keep=room.room_id))

    events = [room_update(room)]
    if not rejoin:
        events.append(OutPlayerJoined(pid=pid, nickname=msg.nickname))
    return [ack(msg, room=room.snapshot())], departures + to_room(room.room_id, *events)


async def handle_leave(*, app, pid: Optional[str], msg: InLeave) -> Result:
    """
    Leave every room the caller is in. Always succeeds.
    """
    if not pid:
        return [ack(msg, room_ids=[])], []

    outcomes = app.state.registry.leave(pid)
    return [ack(msg, room_ids=[o.room_id for o in outcomes])], _departure_events(app, pid, outcomes)


async def handle_disconnect(*, app, pid: Optional[str]) -> Result:
    """
    Called by transport when the socket goes away.
    Same cleanup as leave; nothing is sent back to the departed connection.
    """
    if not pid:
        return [], []

    outcomes = app.state.registry.leave(pid)
    return [], _departure_events(app, pid, outcomes)
