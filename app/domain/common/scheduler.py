# app/domain/common/scheduler.py
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Set

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None]]


class RoomScheduler:
    """
    Deferred actions (respawns, phase broadcasts) bound to a room's lifetime.

    Every task is filed under its room id; cancel_room() cancels all of them
    when the room is deleted. Callbacks must still re-check that the room (and
    player) exist when they run.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, Set[asyncio.Task]] = {}

    def schedule(self, room_id: str, delay_sec: float, callback: Callback, *, name: str = "task") -> asyncio.Task:
        async def runner() -> None:
            try:
                await asyncio.sleep(max(0.0, delay_sec))
            except asyncio.CancelledError:
                logger.debug("timer cancelled room=%s name=%s", room_id, name)
                return
            logger.debug("timer fired room=%s name=%s", room_id, name)
            try:
                await callback()
            except Exception:
                logger.exception("scheduled task failed room=%s name=%s", room_id, name)

        task = asyncio.get_running_loop().create_task(runner(), name=f"{room_id}:{name}")
        tasks = self._tasks.setdefault(room_id, set())
        tasks.add(task)
        task.add_done_callback(lambda t: self._forget(room_id, t))
        return task

    def _forget(self, room_id: str, task: asyncio.Task) -> None:
        tasks = self._tasks.get(room_id)
        if not tasks:
            return
        tasks.discard(task)
        if not tasks:
            self._tasks.pop(room_id, None)

    def cancel_room(self, room_id: str) -> int:
        tasks = self._tasks.pop(room_id, set())
        for t in tasks:
            if not t.done():
                t.cancel()
        if tasks:
            logger.info("cancelled %d pending timer(s) room=%s", len(tasks), room_id)
        return len(tasks)

    def pending(self, room_id: str) -> int:
        return sum(1 for t in self._tasks.get(room_id, set()) if not t.done())

    def cancel_all(self) -> None:
        for room_id in list(self._tasks):
            self.cancel_room(room_id)
