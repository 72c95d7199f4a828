from __future__ import annotations

from typing import Dict

from app.store.models import AugmentRound, RoomStore


def record_selection(room: RoomStore, player_id: str, round_no: int, choice_id: str) -> bool:
    """
    Record (or overwrite) a player's augment choice for a round.
    Creates the round record on first use.
    Choices from non-members are dropped; returns whether it was recorded.
    """
    if player_id not in room.players:
        return False
    record = room.augment_selections.setdefault(round_no, AugmentRound())
    record.selections[player_id] = choice_id
    return True


def is_round_complete(room: RoomStore, round_no: int) -> bool:
    """
    True iff every player currently in the room has a choice for round_no.
    Uses the live roster: a late joiner is required, a leaver no longer is.
    """
    if not room.players:
        return False
    record = room.augment_selections.get(round_no)
    if record is None:
        return False
    return all(pid in record.selections for pid in room.players)


def selections_for(room: RoomStore, round_no: int) -> Dict[str, str]:
    record = room.augment_selections.get(round_no)
    return dict(record.selections) if record else {}
