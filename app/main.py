# app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.domain.combat.health import HealthAuthority
from app.domain.common.scheduler import RoomScheduler
from app.logging_config import setup_logging
from app.settings import Settings, get_settings
from app.store.registry import RoomRegistry
from app.transport.admin import router as admin_router
from app.transport.ws import router as ws_router
from app.transport.ws_manager import WSManager

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    scheduler = RoomScheduler()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s up (max_rooms=%s)", settings.APP_NAME, settings.MAX_ROOMS)
        yield
        scheduler.cancel_all()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    allowed_origins = [o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()]
    if "null" not in allowed_origins:
        allowed_origins.append("null")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Composition root: every stateful service hangs off app.state
    registry = RoomRegistry(
        max_rooms=settings.MAX_ROOMS,
        min_capacity=settings.MIN_CAPACITY,
        max_capacity=settings.MAX_CAPACITY,
        team_cap=settings.TEAM_CAP,
        max_health=settings.MAX_HEALTH,
    )
    wsman = WSManager()
    app.state.settings = settings
    app.state.registry = registry
    app.state.scheduler = scheduler
    app.state.wsman = wsman
    app.state.publish = wsman.publish
    app.state.health = HealthAuthority(
        registry=registry,
        scheduler=scheduler,
        publish=wsman.publish,
        max_health=settings.MAX_HEALTH,
        respawn_delay_sec=settings.RESPAWN_DELAY_SEC,
        dedup_window_sec=settings.DAMAGE_DEDUP_WINDOW_SEC,
    )

    @app.get("/health")
    async def health():
        return {"ok": True, "rooms": len(app.state.registry)}

    app.include_router(ws_router)
    app.include_router(admin_router)
    return app


app = create_app()
