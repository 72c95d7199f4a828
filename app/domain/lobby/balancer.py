# app/domain/lobby/balancer.py
from __future__ import annotations

from typing import Optional

from app.domain.common.types import Team, other_team
from app.store.models import RoomStore


def assign_team(room: RoomStore, cap: int) -> Optional[Team]:
    """
    Pick a team for a joining player.

    Counts are re-read from room.players on every call so departures are
    picked up without bookkeeping. Tries next_team_hint first, then the other
    team; the hint flips to the other team after a successful pick.
    Returns None when both teams are at cap (caller reports FULL).
    """
    counts = room.team_counts()
    first = room.next_team_hint
    for team in (first, other_team(first)):
        if counts[team] < cap:
            room.next_team_hint = other_team(team)
            return team
    return None
