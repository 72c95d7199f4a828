from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["rooms"])


@router.get("/rooms")
async def list_public_rooms(request: Request):
    """
    Public lobby listing (same view as the list_rooms socket request).
    """
    registry = request.app.state.registry
    limit = request.app.state.settings.LIST_LIMIT
    return {"rooms": [r.summary() for r in registry.list_public(limit=limit)]}


@router.get("/admin/rooms")
async def list_rooms(request: Request):
    """
    List all active rooms (debug/admin).
    """
    registry = request.app.state.registry
    scheduler = request.app.state.scheduler
    wsman = request.app.state.wsman

    rooms = []
    for room in registry.all_rooms():
        rooms.append(
            {
                "room_id": room.room_id,
                "mode": room.mode,
                "status": room.status,
                "visibility": room.visibility,
                "capacity": room.capacity,
                "current_round": room.current_round,
                "players": len(room.players),
                "connected": await wsman.group_size(room.room_id),
                "pending_timers": scheduler.pending(room.room_id),
                "created_at": room.created_at,
            }
        )

    return {"rooms": rooms, "max_rooms": registry.max_rooms}


@router.get("/admin/rooms/{room_id}")
async def room_detail(room_id: str, request: Request):
    """
    Full server-side view of one room, including round history and augment picks.
    """
    room = request.app.state.registry.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room.model_dump()
