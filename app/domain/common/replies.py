# app/domain/common/replies.py
from __future__ import annotations

from typing import Any, List, Tuple

from app.domain.common.errors import RoomError
from app.domain.common.events import Broadcast
from app.transport.protocols import OutAck, OutgoingEvent

# Returns: (to_sender, to_room)
Result = Tuple[List[OutgoingEvent], List[Broadcast]]


def ack(msg: Any, **data: Any) -> OutAck:
    return OutAck(request=msg.type, rid=getattr(msg, "rid", None), ok=True, data=data)


def fail(msg: Any, err: RoomError) -> OutAck:
    return OutAck(
        request=msg.type,
        rid=getattr(msg, "rid", None),
        ok=False,
        error=err.code,
        message=err.message,
    )
