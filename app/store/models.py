# app/store/models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.domain.common.types import TEAMS, Mode, RoomStatus, Team, Visibility

# Reserved "no color picked yet" value; never counts as a real selection.
UNSET_COLOR = "#888888"


class PlayerStore(BaseModel):
    id: str
    nickname: str
    team: Optional[Team] = None
    color: str = UNSET_COLOR
    ready: bool = False
    health: int = 100
    joined_at: int = 0

    def public(self) -> Dict[str, Any]:
        return self.model_dump()


class RoundResult(BaseModel):
    round: int
    players: List[Dict[str, Any]] = Field(default_factory=list)


class AugmentRound(BaseModel):
    selections: Dict[str, str] = Field(default_factory=dict)


class RoomStore(BaseModel):
    room_id: str
    host_id: str
    capacity: int
    status: RoomStatus = "WAITING"
    visibility: Visibility = "PUBLIC"
    name: str = "ROOM"
    mode: Mode = "TEAM"
    created_at: int
    started_at: int = 0
    next_team_hint: Team = "A"
    current_round: int = 0
    round_results: List[RoundResult] = Field(default_factory=list)
    augment_selections: Dict[int, AugmentRound] = Field(default_factory=dict)
    players: Dict[str, PlayerStore] = Field(default_factory=dict)

    @property
    def is_team_mode(self) -> bool:
        return self.mode == "TEAM"

    def team_counts(self) -> Dict[str, int]:
        counts = {t: 0 for t in TEAMS}
        for p in self.players.values():
            if p.team in counts:
                counts[p.team] += 1
        return counts

    def snapshot(self) -> Dict[str, Any]:
        """Client-facing room state (round history and selections stay server-side)."""
        return {
            "room_id": self.room_id,
            "host_id": self.host_id,
            "capacity": self.capacity,
            "status": self.status,
            "visibility": self.visibility,
            "name": self.name,
            "mode": self.mode,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "current_round": self.current_round,
            "players": [p.public() for p in self.players.values()],
        }

    def summary(self) -> Dict[str, Any]:
        return {
            "room_id": self.room_id,
            "host_id": self.host_id,
            "name": self.name,
            "mode": self.mode,
            "visibility": self.visibility,
            "status": self.status,
            "capacity": self.capacity,
            "created_at": self.created_at,
            "players": [{"id": p.id, "nickname": p.nickname, "ready": p.ready} for p in self.players.values()],
        }
