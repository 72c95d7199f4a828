# app/domain/common/fsm.py
from __future__ import annotations

from app.domain.common.types import RoomStatus


def can_transition_to(current: RoomStatus, target: RoomStatus) -> bool:
    """
    Validate room status transitions.
    Round / augment phases are broadcast-only sub-phases of IN_PROGRESS.
    ENDED is declared but nothing moves a room into it yet.
    """
    transitions: dict[RoomStatus, list[RoomStatus]] = {
        "WAITING": ["IN_PROGRESS"],
        "IN_PROGRESS": [],
        "ENDED": [],
    }
    return target in transitions.get(current, [])
