# app/domain/common/types.py
from __future__ import annotations

from typing import Literal

Mode = Literal["TEAM", "FFA"]
Team = Literal["A", "B"]
Visibility = Literal["PUBLIC", "PRIVATE"]

# ENDED is declared for clients but no transition enters it yet.
RoomStatus = Literal["WAITING", "IN_PROGRESS", "ENDED"]

ErrorCode = Literal[
    "ROOM_LIMIT",
    "NOT_FOUND",
    "IN_PROGRESS",
    "FULL",
    "NOT_HOST",
    "COLOR_NOT_READY",
    "INVALID_COLOR",
    "COLOR_TAKEN",
    "NOT_IN_ROOM",
    "NO_ROOM",
]

TEAMS: tuple[Team, Team] = ("A", "B")


def other_team(team: Team) -> Team:
    return "B" if team == "A" else "A"
