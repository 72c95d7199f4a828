# app/settings.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel
import os


class Settings(BaseModel):
    APP_NAME: str = "kracker-server"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3001

    # Dev
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # WebSocket origin policy (comma-separated)
    WS_ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173,null"
    # Dev helper: allow any private LAN IP on port 5173
    WS_ALLOW_LAN_ORIGINS: bool = True

    # Rooms
    MAX_ROOMS: int = 100
    MIN_CAPACITY: int = 2
    MAX_CAPACITY: int = 8
    TEAM_CAP: int = 3
    LIST_LIMIT: int = 3

    # Combat / rounds
    MAX_HEALTH: int = 100
    RESPAWN_DELAY_SEC: float = 3.0
    AUGMENT_PHASE_DELAY_SEC: float = 3.0
    DAMAGE_DEDUP_WINDOW_SEC: float = 2.0


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "kracker-server"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT", "3001")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        LOG_FILE=os.getenv("LOG_FILE") or None,

        WS_ALLOWED_ORIGINS=os.getenv(
            "WS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,null",
        ),
        WS_ALLOW_LAN_ORIGINS=os.getenv("WS_ALLOW_LAN_ORIGINS", "true").lower()
        in ("1", "true", "yes", "y", "on"),

        MAX_ROOMS=int(os.getenv("MAX_ROOMS", "100")),
        MIN_CAPACITY=int(os.getenv("MIN_CAPACITY", "2")),
        MAX_CAPACITY=int(os.getenv("MAX_CAPACITY", "8")),
        TEAM_CAP=int(os.getenv("TEAM_CAP", "3")),
        LIST_LIMIT=int(os.getenv("LIST_LIMIT", "3")),

        MAX_HEALTH=int(os.getenv("MAX_HEALTH", "100")),
        RESPAWN_DELAY_SEC=float(os.getenv("RESPAWN_DELAY_SEC", "3")),
        AUGMENT_PHASE_DELAY_SEC=float(os.getenv("AUGMENT_PHASE_DELAY_SEC", "3")),
        DAMAGE_DEDUP_WINDOW_SEC=float(os.getenv("DAMAGE_DEDUP_WINDOW_SEC", "2")),
    )
