# app/transport/ws.py
from __future__ import annotations

import ipaddress
import logging
import uuid
from typing import List
from urllib.parse import urlparse

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.domain.common.events import Broadcast
from app.transport.dispatcher import dispatch_disconnect, dispatch_message
from app.transport.protocols import OutError, OutHello

logger = logging.getLogger(__name__)

router = APIRouter()


def _is_private_ip(host: str) -> bool:
    """Return True if host is a private IP (192.168.x.x, 10.x.x.x, 172.16-31.x.x)."""
    try:
        ip = ipaddress.ip_address(host)
        return ip.is_private
    except ValueError:
        return False


async def _check_origin_or_close(websocket: WebSocket) -> bool:
    settings = websocket.app.state.settings
    allowed = {o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()}

    origin = websocket.headers.get("origin")
    if origin is None or origin in allowed:
        return True
    if settings.WS_ALLOW_LAN_ORIGINS:
        o = urlparse(origin)
        if _is_private_ip(o.hostname or "") and o.port == 5173:
            return True
    logger.warning("ws origin rejected origin=%s", origin)
    await websocket.close(code=1008)
    return False


async def _sync_binding(websocket: WebSocket, pid: str) -> None:
    """Keep the socket's broadcast group in step with registry membership."""
    room = websocket.app.state.registry.room_of(pid)
    await websocket.app.state.wsman.bind(pid, room.room_id if room else None)


async def _publish(websocket: WebSocket, items: List[Broadcast]) -> None:
    await websocket.app.state.wsman.publish(items)


@router.websocket("/ws")
async def ws_gateway(websocket: WebSocket):
    """
    One connection = one player identity (pid), in at most one room at a time.
    Replies go back on this socket; room events go to every socket bound to the room.
    """
    if not await _check_origin_or_close(websocket):
        return

    await websocket.accept()

    pid = uuid.uuid4().hex[:10]
    wsman = websocket.app.state.wsman
    await wsman.add(pid, websocket)
    await websocket.send_json(OutHello(pid=pid).model_dump())
    logger.info("connected pid=%s", pid)

    try:
        while True:
            try:
                raw = await websocket.receive_json()
            except ValueError:
                await websocket.send_json(OutError(code="BAD_MESSAGE", message="Invalid JSON").model_dump())
                continue

            to_sender, to_room = await dispatch_message(app=websocket.app, pid=pid, raw=raw)

            # bind before any send so a joiner misses no room event
            await _sync_binding(websocket, pid)

            # unicast
            for e in to_sender:
                await websocket.send_json(e)

            await _publish(websocket, to_room)

    except WebSocketDisconnect:
        logger.info("disconnected pid=%s", pid)

    finally:
        # leave cleanup runs for clean and unexpected exits alike
        await wsman.remove(pid)
        _, to_room = await dispatch_disconnect(app=websocket.app, pid=pid)
        await _publish(websocket, to_room)
