# app/domain/common/errors.py
from __future__ import annotations

from app.domain.common.types import ErrorCode

_DEFAULT_MESSAGES: dict[str, str] = {
    "ROOM_LIMIT": "Too many rooms are open, try again later",
    "NOT_FOUND": "Room not found",
    "IN_PROGRESS": "Game already in progress",
    "FULL": "Room is full",
    "NOT_HOST": "Only the host can do that",
    "COLOR_NOT_READY": "Every player must pick a color first",
    "INVALID_COLOR": "Color must look like #RRGGBB",
    "COLOR_TAKEN": "Color already taken",
    "NOT_IN_ROOM": "You are not in that room",
    "NO_ROOM": "You are not in a room",
}


class RoomError(Exception):
    """
    Raised by domain operations when validation fails.
    Always raised before any mutation, so the room is untouched.
    """

    def __init__(self, code: ErrorCode, message: str = "") -> None:
        self.code = code
        self.message = message or _DEFAULT_MESSAGES.get(code, code)
        super().__init__(f"{code}: {self.message}")
