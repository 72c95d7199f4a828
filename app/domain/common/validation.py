# app/domain/common/validation.py
from __future__ import annotations

import re
from typing import Optional

from app.store.models import PlayerStore, RoomStore, UNSET_COLOR

_HEX_RE = re.compile(r"^#[0-9A-F]{6}$")


def normalize_color(raw: str) -> str:
    """'ff00aa' / '#ff00aa' -> '#FF00AA'."""
    s = (raw or "").strip()
    if s.startswith("#"):
        s = s[1:]
    return f"#{s.upper()}"


def is_valid_color(color: str) -> bool:
    """A real pick: well-formed #RRGGBB and not the unset sentinel."""
    return bool(_HEX_RE.match(color)) and color != UNSET_COLOR


def has_color(player: Optional[PlayerStore]) -> bool:
    return player is not None and is_valid_color(player.color)


def color_taken(room: RoomStore, color: str, *, by: Optional[str] = None) -> bool:
    """True if another player (not `by`) already wears this color."""
    return any(p.color == color for pid, p in room.players.items() if pid != by)


def all_colored(room: RoomStore) -> bool:
    return bool(room.players) and all(has_color(p) for p in room.players.values())


def all_ready(room: RoomStore) -> bool:
    return bool(room.players) and all(p.ready for p in room.players.values())


def is_host(player_id: Optional[str], room: RoomStore) -> bool:
    """Check if player is the room host."""
    return player_id is not None and room.host_id == player_id


def is_member(player_id: Optional[str], room: RoomStore) -> bool:
    return player_id is not None and player_id in room.players


def team_has_space(room: RoomStore, team: str, cap: int, *, pid: Optional[str] = None) -> bool:
    """Whether `pid` may sit on `team` without pushing it over cap."""
    if pid is not None:
        p = room.players.get(pid)
        if p is not None and p.team == team:
            return True
    return room.team_counts().get(team, 0) < cap
