from __future__ import annotations

from .augments import is_round_complete, record_selection, selections_for

__all__ = [
    "is_round_complete",
    "record_selection",
    "selections_for",
]
