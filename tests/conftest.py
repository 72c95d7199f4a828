import pytest

from app.domain.combat.health import HealthAuthority
from app.domain.common.scheduler import RoomScheduler
from app.settings import Settings
from app.store.registry import RoomRegistry
from app.transport.dispatcher import dispatch_message


class Recorder:
    """Stands in for WSManager.publish: keeps every scheduled broadcast."""

    def __init__(self):
        self.items = []

    async def __call__(self, items):
        for b in items:
            event = b.event if isinstance(b.event, dict) else b.event.model_dump()
            self.items.append((b.room_id, event))

    def of_type(self, t):
        return [e for _, e in self.items if e.get("type") == t]


class FakeApp:
    def __init__(self, settings):
        registry = RoomRegistry(
            max_rooms=settings.MAX_ROOMS,
            min_capacity=settings.MIN_CAPACITY,
            max_capacity=settings.MAX_CAPACITY,
            team_cap=settings.TEAM_CAP,
            max_health=settings.MAX_HEALTH,
        )
        scheduler = RoomScheduler()
        recorder = Recorder()
        health = HealthAuthority(
            registry=registry,
            scheduler=scheduler,
            publish=recorder,
            max_health=settings.MAX_HEALTH,
            respawn_delay_sec=settings.RESPAWN_DELAY_SEC,
            dedup_window_sec=settings.DAMAGE_DEDUP_WINDOW_SEC,
        )
        self.state = type(
            "State",
            (),
            {
                "settings": settings,
                "registry": registry,
                "scheduler": scheduler,
                "publish": recorder,
                "health": health,
            },
        )()


@pytest.fixture
def settings():
    return Settings(
        MAX_ROOMS=5,
        RESPAWN_DELAY_SEC=0.05,
        AUGMENT_PHASE_DELAY_SEC=0.05,
        DAMAGE_DEDUP_WINDOW_SEC=5.0,
    )


@pytest.fixture
def app(settings):
    return FakeApp(settings)


@pytest.fixture
def send(app):
    """send("p1", type="join", ...) -> (to_sender, to_room) as the socket would see them."""

    async def _send(pid, **raw):
        return await dispatch_message(app=app, pid=pid, raw=raw)

    return _send
