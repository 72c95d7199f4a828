import asyncio

import pytest


def room_events(to_room, t):
    return [b.event for b in to_room if b.event.get("type") == t]


async def _room_with(send, *pids):
    to_sender, _ = await send(pids[0], type="create_room", nickname=pids[0], mode="FFA")
    room_id = to_sender[0]["data"]["room"]["room_id"]
    for pid in pids[1:]:
        await send(pid, type="join", room_id=room_id, nickname=pid)
    return room_id


def _played(app, room_id, rounds):
    # rounds already finished, without waiting on the phase timer
    app.state.registry.get(room_id).current_round = rounds


@pytest.mark.asyncio
async def test_end_round_broadcasts_result_then_opens_augment_phase(send, app):
    room_id = await _room_with(send, "a", "b")
    results = [{"id": "a", "kills": 2}, {"id": "b", "kills": 0}]

    to_sender, to_room = await send("a", type="end_round", results=results)
    assert to_sender[0]["data"] == {"round": 1}
    assert room_events(to_room, "round_result") == [{"type": "round_result", "round": 1, "players": results}]
    assert app.state.publish.of_type("round_augment") == []

    await asyncio.sleep(0.15)

    phases = app.state.publish.of_type("round_augment")
    assert len(phases) == 1
    assert phases[0]["round"] == 1
    assert [p["id"] for p in phases[0]["players"]] == ["a", "b"]
    assert set(phases[0]["players"][0]) == {"id", "nickname", "color"}

    room = app.state.registry.get(room_id)
    assert room.current_round == 1
    assert room.round_results[0].players == results


@pytest.mark.asyncio
async def test_end_round_host_only(send):
    await _room_with(send, "a", "b")
    to_sender, to_room = await send("b", type="end_round")
    assert to_sender[0]["error"] == "NOT_HOST"
    assert to_room == []

    to_sender, _ = await send("z", type="end_round")
    assert to_sender[0]["error"] == "NO_ROOM"


@pytest.mark.asyncio
async def test_quick_end_rounds_each_open_their_own_phase(send, app):
    await _room_with(send, "a")
    await send("a", type="end_round")
    await send("a", type="end_round")

    await asyncio.sleep(0.15)
    assert sorted(e["round"] for e in app.state.publish.of_type("round_augment")) == [1, 2]


@pytest.mark.asyncio
async def test_augment_phase_dropped_when_room_closes(send, app):
    await _room_with(send, "a")
    await send("a", type="end_round")
    await send("a", type="leave")

    await asyncio.sleep(0.15)
    assert app.state.publish.of_type("round_augment") == []


@pytest.mark.asyncio
async def test_augment_barrier_completes_on_last_pick(send, app):
    room_id = await _room_with(send, "a", "b")
    _played(app, room_id, 1)

    to_sender, to_room = await send("a", type="augment_select", room_id=room_id, round=1, choice_id="speed")
    assert to_sender[0]["data"] == {"complete": False}
    assert to_room == []

    to_sender, to_room = await send("b", type="augment_select", room_id=room_id, round=1, choice_id="armor")
    assert to_sender[0]["data"] == {"complete": True}
    done = room_events(to_room, "augment_complete")
    assert done == [{"type": "augment_complete", "round": 1, "selections": {"a": "speed", "b": "armor"}}]

    # a correction re-announces with the new pick
    _, to_room = await send("a", type="augment_select", room_id=room_id, round=1, choice_id="jump")
    assert room_events(to_room, "augment_complete")[0]["selections"] == {"a": "jump", "b": "armor"}


@pytest.mark.asyncio
async def test_augment_rounds_are_independent(send, app):
    room_id = await _room_with(send, "a", "b")
    _played(app, room_id, 2)
    await send("a", type="augment_select", room_id=room_id, round=1, choice_id="x")
    to_sender, _ = await send("b", type="augment_select", room_id=room_id, round=2, choice_id="y")
    assert to_sender[0]["data"] == {"complete": False}


@pytest.mark.asyncio
async def test_augment_barrier_follows_live_roster(send, app):
    room_id = await _room_with(send, "a", "b", "c")
    _played(app, room_id, 1)
    await send("a", type="augment_select", room_id=room_id, round=1, choice_id="x")
    await send("b", type="augment_select", room_id=room_id, round=1, choice_id="y")

    # c leaves: the next pick finds everyone still present done
    await send("c", type="leave")
    to_sender, to_room = await send("a", type="augment_select", room_id=room_id, round=1, choice_id="x")
    assert to_sender[0]["data"] == {"complete": True}
    assert room_events(to_room, "augment_complete")[0]["selections"] == {"a": "x", "b": "y"}

    # a late joiner has no pick yet and stalls the round
    await send("d", type="join", room_id=room_id, nickname="d")
    to_sender, _ = await send("b", type="augment_select", room_id=room_id, round=1, choice_id="y")
    assert to_sender[0]["data"] == {"complete": False}


@pytest.mark.asyncio
async def test_augment_select_from_outsider_is_dropped(send, app):
    room_id = await _room_with(send, "a")
    _played(app, room_id, 1)

    to_sender, to_room = await send("ghost", type="augment_select", room_id=room_id, round=1, choice_id="x")
    assert to_sender[0]["ok"] is True
    assert to_sender[0]["data"] == {"complete": False}
    assert to_room == []
    assert app.state.registry.get(room_id).augment_selections == {}

    to_sender, _ = await send("a", type="augment_select", room_id="NOPE00", round=1, choice_id="x")
    assert to_sender[0]["data"] == {"complete": False}


@pytest.mark.asyncio
async def test_augment_select_for_unplayed_round_is_dropped(send, app):
    room_id = await _room_with(send, "a", "b")
    room = app.state.registry.get(room_id)

    for round_no in (0, 1, 99):
        to_sender, to_room = await send("a", type="augment_select", room_id=room_id, round=round_no, choice_id="x")
        assert to_sender[0]["data"] == {"complete": False}
        assert to_room == []
    assert room.augment_selections == {}

    # a leaver leaves nothing behind under a future round
    await send("a", type="leave")
    assert all("a" not in r.selections for r in room.augment_selections.values())

    _played(app, room_id, 1)
    to_sender, _ = await send("b", type="augment_select", room_id=room_id, round=2, choice_id="y")
    assert to_sender[0]["data"] == {"complete": False}
    to_sender, _ = await send("b", type="augment_select", room_id=room_id, round=1, choice_id="y")
    assert to_sender[0]["data"] == {"complete": True}
