# app/transport/ws_manager.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from fastapi import WebSocket

from app.domain.common.events import Broadcast

logger = logging.getLogger(__name__)


@dataclass
class Conn:
    pid: str
    ws: WebSocket


class WSManager:
    """
    In-memory connection registry.
    - pid -> websocket
    - room_id -> {pid} (the broadcast group a connection is bound to)
    Transport-only: no domain rules. A connection is bound to at most one room.
    """
    def __init__(self) -> None:
        self._conns: Dict[str, Conn] = {}
        self._groups: Dict[str, Set[str]] = {}
        self._room_of: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def add(self, pid: str, ws: WebSocket) -> None:
        async with self._lock:
            self._conns[pid] = Conn(pid=pid, ws=ws)

    async def remove(self, pid: str) -> None:
        async with self._lock:
            self._conns.pop(pid, None)
            self._unbind_locked(pid)

    async def bind(self, pid: str, room_id: Optional[str]) -> None:
        """Point pid's broadcast group at room_id (None = no room)."""
        async with self._lock:
            if self._room_of.get(pid) == room_id:
                return
            self._unbind_locked(pid)
            if room_id is not None:
                self._groups.setdefault(room_id, set()).add(pid)
                self._room_of[pid] = room_id

    def _unbind_locked(self, pid: str) -> None:
        room_id = self._room_of.pop(pid, None)
        if room_id is None:
            return
        group = self._groups.get(room_id)
        if group is None:
            return
        group.discard(pid)
        if not group:
            self._groups.pop(room_id, None)

    async def send_to_pid(self, pid: str, event: dict) -> None:
        async with self._lock:
            conn = self._conns.get(pid)
        if conn is None:
            return
        await conn.ws.send_json(event)

    async def broadcast(self, room_id: str, event: dict, exclude_pid: Optional[str] = None) -> None:
        # copy conns under lock, send outside lock
        async with self._lock:
            pids = list(self._groups.get(room_id, ()))
            conns = [self._conns[p] for p in pids if p in self._conns]

        for c in conns:
            if exclude_pid and c.pid == exclude_pid:
                continue
            try:
                await c.ws.send_json(event)
            except Exception:
                # dead socket; ws.py cleans up on disconnect
                logger.debug("broadcast to dead socket room=%s pid=%s", room_id, c.pid)

    async def publish(self, items: List[Broadcast]) -> None:
        """Deliver room-topic broadcasts (events may be models or dicts)."""
        for b in items:
            event = b.event if isinstance(b.event, dict) else b.event.model_dump()
            await self.broadcast(b.room_id, event, exclude_pid=b.exclude_pid)

    async def group_size(self, room_id: str) -> int:
        async with self._lock:
            return len(self._groups.get(room_id, ()))
