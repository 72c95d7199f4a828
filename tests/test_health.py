import asyncio

import pytest

from app.domain.common.errors import RoomError
from app.store.registry import RoomConfig


def _room(app, *pids):
    reg = app.state.registry
    room = reg.create(pids[0], RoomConfig(mode="FFA", nickname=pids[0]))
    for pid in pids[1:]:
        reg.join(room.room_id, pid, pid)
    return room


@pytest.mark.asyncio
async def test_damage_clamps_and_broadcasts(app):
    room = _room(app, "a", "b")
    health = app.state.health

    hp, events = health.apply_damage(room, "b", 30)
    assert hp == 70
    assert events[0].event.player_id == "b"
    assert events[0].event.health == 70
    assert events[0].event.damage == 30

    hp, _ = health.apply_damage(room, "b", 500)
    assert hp == 0
    hp, _ = health.apply_damage(room, "b", 10)
    assert hp == 0
    app.state.scheduler.cancel_all()


@pytest.mark.asyncio
async def test_unknown_target_is_not_in_room(app):
    room = _room(app, "a")
    with pytest.raises(RoomError) as exc:
        app.state.health.apply_damage(room, "ghost", 10)
    assert exc.value.code == "NOT_IN_ROOM"


@pytest.mark.asyncio
async def test_death_schedules_single_respawn(app):
    room = _room(app, "a", "b")
    app.state.health.apply_damage(room, "b", 100)
    assert app.state.scheduler.pending(room.room_id) == 1

    await asyncio.sleep(0.15)

    assert room.players["b"].health == 100
    updates = app.state.publish.of_type("health_update")
    assert len(updates) == 1
    assert updates[0]["player_id"] == "b"
    assert updates[0]["health"] == 100
    assert app.state.scheduler.pending(room.room_id) == 0


@pytest.mark.asyncio
async def test_overlapping_deaths_respawn_twice(app):
    room = _room(app, "a", "b")
    health = app.state.health
    health.apply_damage(room, "b", 100)
    health.apply_damage(room, "b", 100)

    await asyncio.sleep(0.15)

    updates = app.state.publish.of_type("health_update")
    assert [u["health"] for u in updates] == [100, 100]
    assert room.players["b"].health == 100


@pytest.mark.asyncio
async def test_hit_id_applies_once_within_window(app):
    room = _room(app, "a", "b")
    health = app.state.health

    hp, events = health.apply_damage(room, "b", 20, hit_id="h1")
    assert hp == 80 and events
    hp, events = health.apply_damage(room, "b", 20, hit_id="h1")
    assert hp == 80 and events == []

    # no hit id: duplicates apply
    health.apply_damage(room, "b", 20)
    hp, _ = health.apply_damage(room, "b", 20)
    assert hp == 40


@pytest.mark.asyncio
async def test_respawn_skipped_when_player_left(app):
    room = _room(app, "a", "b")
    app.state.health.apply_damage(room, "b", 100)
    app.state.registry.leave("b")

    await asyncio.sleep(0.15)
    assert app.state.publish.of_type("health_update") == []


@pytest.mark.asyncio
async def test_room_close_cancels_pending_respawn(app, send):
    to_sender, _ = await send("a", type="create_room", nickname="a", mode="FFA")
    room_id = to_sender[0]["data"]["room"]["room_id"]
    await send("a", type="damage", target_id="a", amount=100)
    assert app.state.scheduler.pending(room_id) == 1

    await send("a", type="leave")
    assert app.state.scheduler.pending(room_id) == 0

    await asyncio.sleep(0.15)
    assert app.state.publish.of_type("health_update") == []


@pytest.mark.asyncio
async def test_damage_message_round_trip(app, send):
    to_sender, _ = await send("a", type="create_room", nickname="a", mode="FFA")
    room_id = to_sender[0]["data"]["room"]["room_id"]
    await send("b", type="join", room_id=room_id, nickname="b")

    to_sender, to_room = await send("a", type="damage", target_id="b", amount=25, rid="x")
    assert to_sender[0]["ok"] is True
    assert to_sender[0]["rid"] == "x"
    assert to_sender[0]["data"] == {"player_id": "b", "health": 75}
    assert to_room[0].event["type"] == "health_update"

    to_sender, _ = await send("a", type="damage", target_id="nobody", amount=5)
    assert to_sender[0]["error"] == "NOT_IN_ROOM"

    to_sender, _ = await send("c", type="damage", target_id="b", amount=5)
    assert to_sender[0]["error"] == "NO_ROOM"


@pytest.mark.asyncio
async def test_shared_hit_id_damages_each_target_once(app, send):
    to_sender, _ = await send("a", type="create_room", nickname="a", mode="FFA")
    room_id = to_sender[0]["data"]["room"]["room_id"]
    await send("b", type="join", room_id=room_id, nickname="b")
    await send("c", type="join", room_id=room_id, nickname="c")

    to_sender, _ = await send("a", type="damage", target_id="b", amount=30, hit_id="blast-1")
    assert to_sender[0]["data"] == {"player_id": "b", "health": 70}
    to_sender, to_room = await send("a", type="damage", target_id="c", amount=30, hit_id="blast-1")
    assert to_sender[0]["data"] == {"player_id": "c", "health": 70}
    assert to_room[0].event["player_id"] == "c"

    to_sender, to_room = await send("a", type="damage", target_id="c", amount=30, hit_id="blast-1")
    assert to_sender[0]["data"] == {"player_id": "c", "health": 70}
    assert to_room == []
