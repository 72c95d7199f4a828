# app/domain/rounds/handlers.py
from __future__ import annotations

import logging
from typing import Optional

from app.domain.common.errors import RoomError
from app.domain.common.events import to_room
from app.domain.common.replies import Result, ack, fail
from app.domain.common.validation import is_host, is_member
from app.domain.helpers.augments import is_round_complete, record_selection, selections_for
from app.store.models import RoundResult
from app.transport.protocols import (
    InAugmentSelect,
    InEndRound,
    OutAugmentComplete,
    OutRoundAugment,
    OutRoundResult,
)

logger = logging.getLogger(__name__)


def schedule_augment_phase(app, room_id: str, round_no: int) -> None:
    """
    Open the selection phase for round_no after the result screen delay.
    round_no is captured now; a second end_round inside the delay schedules
    its own broadcast with its own number.
    """
    registry = app.state.registry

    async def _open_phase() -> None:
        room = registry.get(room_id)
        if room is None:
            return
        roster = [{"id": p.id, "nickname": p.nickname, "color": p.color} for p in room.players.values()]
        logger.info("augment phase opened room=%s round=%s", room_id, round_no)
        await app.state.publish(to_room(room_id, OutRoundAugment(round=round_no, players=roster)))

    app.state.scheduler.schedule(
        room_id,
        app.state.settings.AUGMENT_PHASE_DELAY_SEC,
        _open_phase,
        name=f"augment:{round_no}",
    )


async def handle_end_round(*, app, pid: Optional[str], msg: InEndRound) -> Result:
    """
    Host reports a finished round:
    - bump current_round, log the results
    - broadcast round_result now, round_augment after the delay
    """
    try:
        room = app.state.registry.current(pid)
        if not is_host(pid, room):
            raise RoomError("NOT_HOST", "Only the host can end rounds")
    except RoomError as e:
        return [fail(msg, e)], []

    room.current_round += 1
    round_no = room.current_round
    room.round_results.append(RoundResult(round=round_no, players=list(msg.results)))

    schedule_augment_phase(app, room.room_id, round_no)

    return [ack(msg, round=round_no)], to_room(room.room_id, OutRoundResult(round=round_no, players=list(msg.results)))


async def handle_augment_select(*, app, pid: Optional[str], msg: InAugmentSelect) -> Result:
    """
    Record a player's augment pick; the reply says whether the round is complete.
    Every pick that finds the round complete broadcasts augment_complete
    (no "already announced" flag, so late corrections announce again).
    Picks for rounds that have not been played yet are dropped.
    """
    room = app.state.registry.get(msg.room_id)
    if room is None or not is_member(pid, room):
        return [ack(msg, complete=False)], []
    if not 1 <= msg.round <= room.current_round:
        logger.debug("augment pick for unplayed round dropped room=%s round=%s", room.room_id, msg.round)
        return [ack(msg, complete=False)], []

    record_selection(room, pid, msg.round, msg.choice_id)
    complete = is_round_complete(room, msg.round)
    if not complete:
        return [ack(msg, complete=False)], []

    logger.info("augment selection complete room=%s round=%s", room.room_id, msg.round)
    done = OutAugmentComplete(round=msg.round, selections=selections_for(room, msg.round))
    return [ack(msg, complete=True)], to_room(room.room_id, done)
