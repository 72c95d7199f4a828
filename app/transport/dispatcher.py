# app/transport/dispatcher.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple, Optional

from app.domain.common.events import Broadcast
from app.transport.protocols import (
    parse_incoming,
    OutError,
    OutgoingEvent,
    InCreateRoom,
    InListRooms,
    InRoomInfo,
    InJoin,
    InLeave,
    InToggleReady,
    InSelect,
    InSetColor,
    InSetTeam,
    InSetNickname,
    InStartGame,
    InDamage,
    InEndRound,
    InAugmentSelect,
    InRelay,
)
from app.domain.lifecycle.handlers import (
    handle_create_room,
    handle_list_rooms,
    handle_room_info,
    handle_join,
    handle_leave,
    handle_disconnect,
)
from app.domain.lobby.handlers import (
    handle_toggle_ready,
    handle_select,
    handle_set_color,
    handle_set_team,
    handle_set_nickname,
    handle_start_game,
)
from app.domain.combat.handlers import handle_damage
from app.domain.rounds.handlers import handle_end_round, handle_augment_select
from app.domain.relay.handlers import handle_relay

logger = logging.getLogger(__name__)

DispatchResult = Tuple[List[Dict[str, Any]], List[Broadcast]]
# (to_sender_events, to_room_broadcasts); sender events are JSON dicts,
# broadcast events are dumped to JSON dicts as well


_HANDLERS = {
    InCreateRoom: handle_create_room,
    InListRooms: handle_list_rooms,
    InRoomInfo: handle_room_info,
    InJoin: handle_join,
    InLeave: handle_leave,
    InToggleReady: handle_toggle_ready,
    InSelect: handle_select,
    InSetColor: handle_set_color,
    InSetTeam: handle_set_team,
    InSetNickname: handle_set_nickname,
    InStartGame: handle_start_game,
    InDamage: handle_damage,
    InEndRound: handle_end_round,
    InAugmentSelect: handle_augment_select,
    InRelay: handle_relay,
}


async def dispatch_message(
    *,
    app,
    pid: Optional[str],
    raw: Dict[str, Any],
) -> DispatchResult:
    """
    Transport layer calls this.
    - Parses + validates raw JSON
    - Routes to the correct domain handler
    - Returns (to_sender, to_room) with every event as a JSON dict

    NOTE: This file contains NO socket access and NO game rules.
    """
    try:
        msg = parse_incoming(raw)
    except ValueError as e:
        err = OutError(code="BAD_MESSAGE", message=str(e)).model_dump()
        return [err], []

    handler = _HANDLERS.get(type(msg))
    if handler is None:
        err = OutError(code="NOT_IMPLEMENTED", message=f"Handler not implemented for type={msg.type}").model_dump()
        return [err], []

    to_sender, to_room = await handler(app=app, pid=pid, msg=msg)
    return _dump(to_sender), _dump_broadcasts(to_room)


async def dispatch_disconnect(*, app, pid: Optional[str]) -> DispatchResult:
    """
    Transport calls this once the socket is gone. Same shape as dispatch_message.
    """
    to_sender, to_room = await handle_disconnect(app=app, pid=pid)
    return _dump(to_sender), _dump_broadcasts(to_room)


def _dump(events: List[OutgoingEvent]) -> List[Dict[str, Any]]:
    """
    Convert pydantic events -> JSON dicts.
    """
    return [e.model_dump() for e in events]


def _dump_broadcasts(items: List[Broadcast]) -> List[Broadcast]:
    return [
        Broadcast(room_id=b.room_id, event=b.event.model_dump(), exclude_pid=b.exclude_pid)
        for b in items
    ]
