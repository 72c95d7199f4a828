# app/domain/lobby/handlers.py
from __future__ import annotations

import logging
from typing import Optional

from app.domain.common.errors import RoomError
from app.domain.common.events import to_room
from app.domain.common.fsm import can_transition_to
from app.domain.common.replies import Result, ack, fail
from app.domain.common.validation import (
    all_colored,
    all_ready,
    color_taken,
    is_host,
    is_valid_color,
    normalize_color,
    team_has_space,
)
from app.transport.protocols import (
    InSelect,
    InSetColor,
    InSetNickname,
    InSetTeam,
    InStartGame,
    InToggleReady,
    OutGameStarted,
    OutReadyToStart,
    room_update,
)
from app.util.timeutil import now_ms

logger = logging.getLogger(__name__)


async def handle_toggle_ready(*, app, pid: Optional[str], msg: InToggleReady) -> Result:
    try:
        room = app.state.registry.current(pid)
    except RoomError as e:
        return [fail(msg, e)], []

    player = room.players[pid]
    player.ready = not player.ready

    events = [room_update(room)]
    if all_ready(room):
        events.append(OutReadyToStart(room_id=room.room_id, host_id=room.host_id))
    return [ack(msg, ready=player.ready)], to_room(room.room_id, *events)


async def handle_select(*, app, pid: Optional[str], msg: InSelect) -> Result:
    """
    Loose team/color pick from the lobby UI.
    Never errors: an invalid or already-taken color is skipped, and a team
    switch is skipped only when it would overfill that team.
    """
    room = app.state.registry.room_of(pid) if pid else None
    if room is None:
        return [ack(msg, team=False, color=False)], []

    player = room.players[pid]
    team_applied = False
    color_applied = False

    if msg.team is not None:
        cap = app.state.settings.TEAM_CAP
        if not room.is_team_mode or team_has_space(room, msg.team, cap, pid=pid):
            player.team = msg.team
            team_applied = True

    if msg.color is not None:
        color = normalize_color(msg.color)
        if is_valid_color(color) and not color_taken(room, color, by=pid):
            player.color = color
            color_applied = True

    broadcasts = to_room(room.room_id, room_update(room)) if (team_applied or color_applied) else []
    return [ack(msg, team=team_applied, color=color_applied)], broadcasts


async def handle_set_color(*, app, pid: Optional[str], msg: InSetColor) -> Result:
    """
    Strict color pick: validate everything, then write.
    """
    registry = app.state.registry
    try:
        player = registry.member(msg.room_id, pid)
        room = registry.get(msg.room_id)

        color = normalize_color(msg.color)
        if not is_valid_color(color):
            raise RoomError("INVALID_COLOR")
        if color_taken(room, color, by=pid):
            raise RoomError("COLOR_TAKEN")
    except RoomError as e:
        return [fail(msg, e)], []

    player.color = color
    return [ack(msg, color=color)], to_room(room.room_id, room_update(room))


async def handle_set_team(*, app, pid: Optional[str], msg: InSetTeam) -> Result:
    try:
        room = app.state.registry.current(pid)
        if room.is_team_mode and not team_has_space(room, msg.team, app.state.settings.TEAM_CAP, pid=pid):
            raise RoomError("FULL", f"Team {msg.team} is full")
    except RoomError as e:
        return [fail(msg, e)], []

    room.players[pid].team = msg.team
    return [ack(msg, team=msg.team)], to_room(room.room_id, room_update(room))


async def handle_set_nickname(*, app, pid: Optional[str], msg: InSetNickname) -> Result:
    try:
        room = app.state.registry.set_nickname(pid, msg.nickname)
    except RoomError as e:
        return [fail(msg, e)], []
    return [ack(msg, nickname=msg.nickname)], to_room(room.room_id, room_update(room))


async def handle_start_game(*, app, pid: Optional[str], msg: InStartGame) -> Result:
    """
    WAITING -> IN_PROGRESS. Host only, and every player needs a real color.
    """
    try:
        room = app.state.registry.current(pid)
        if not is_host(pid, room):
            raise RoomError("NOT_HOST")
        if not can_transition_to(room.status, "IN_PROGRESS"):
            raise RoomError("IN_PROGRESS")
        if not all_colored(room):
            raise RoomError("COLOR_NOT_READY")
    except RoomError as e:
        return [fail(msg, e)], []

    room.status = "IN_PROGRESS"
    room.started_at = now_ms()
    app.state.health.reset_all(room)
    logger.info("game started room=%s players=%d", room.room_id, len(room.players))

    started = OutGameStarted(
        room_id=room.room_id,
        status=room.status,
        started_at=room.started_at,
        players=[p.public() for p in room.players.values()],
    )
    return [ack(msg)], to_room(room.room_id, started)
