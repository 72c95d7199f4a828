# app/util/timeutil.py
from __future__ import annotations

import time


def now_ms() -> int:
    """Epoch milliseconds (client-facing timestamps)."""
    return int(time.time() * 1000)
