# app/transport/protocols.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from app.domain.common.types import ErrorCode, Mode, RoomStatus, Team, Visibility


# =========================
# Incoming (Client -> Server)
# =========================

class InBase(BaseModel):
    type: str
    # client correlation id, echoed back on the ack
    rid: Optional[str] = None


# ---- Rooms ----

class InCreateRoom(InBase):
    type: Literal["create_room"] = "create_room"
    capacity: int = 8
    visibility: Visibility = "PUBLIC"
    name: str = Field(default="", max_length=40)
    mode: Mode = "TEAM"
    nickname: str = Field(min_length=1, max_length=24)


class InListRooms(InBase):
    type: Literal["list_rooms"] = "list_rooms"


class InRoomInfo(InBase):
    type: Literal["room_info"] = "room_info"
    room_id: str


class InJoin(InBase):
    type: Literal["join"] = "join"
    room_id: str
    nickname: str = Field(min_length=1, max_length=24)


class InLeave(InBase):
    type: Literal["leave"] = "leave"


# ---- Lobby ----

class InToggleReady(InBase):
    type: Literal["toggle_ready"] = "toggle_ready"


class InSelect(InBase):
    """Loose team/color pick: bad or duplicate colors are ignored."""
    type: Literal["select"] = "select"
    team: Optional[Team] = None
    color: Optional[str] = None


class InSetColor(InBase):
    type: Literal["set_color"] = "set_color"
    room_id: str
    color: str


class InSetTeam(InBase):
    type: Literal["set_team"] = "set_team"
    team: Team


class InSetNickname(InBase):
    type: Literal["set_nickname"] = "set_nickname"
    nickname: str = Field(min_length=1, max_length=24)


class InStartGame(InBase):
    type: Literal["start_game"] = "start_game"


# ---- Game ----

class InDamage(InBase):
    type: Literal["damage"] = "damage"
    target_id: str
    amount: int = Field(ge=0)
    # optional dedup key for retried deliveries of the same hit
    hit_id: Optional[str] = None


class InEndRound(InBase):
    type: Literal["end_round"] = "end_round"
    results: List[Dict[str, Any]] = Field(default_factory=list)


class InAugmentSelect(InBase):
    type: Literal["augment_select"] = "augment_select"
    room_id: str
    round: int = Field(ge=0)
    choice_id: str = Field(min_length=1, max_length=64)


# ---- Relay (opaque payloads) ----

RelayType = Literal["move", "pose", "shoot", "particle", "chat", "game_event"]


class InRelay(InBase):
    type: RelayType
    data: Dict[str, Any] = Field(default_factory=dict)


IncomingMessage = Union[
    InCreateRoom,
    InListRooms,
    InRoomInfo,
    InJoin,
    InLeave,
    InToggleReady,
    InSelect,
    InSetColor,
    InSetTeam,
    InSetNickname,
    InStartGame,
    InDamage,
    InEndRound,
    InAugmentSelect,
    InRelay,
]


# =========================
# Outgoing (Server -> Client)
# =========================

class OutBase(BaseModel):
    type: str


class OutError(OutBase):
    """Transport-level failure (unparseable message)."""
    type: Literal["error"] = "error"
    code: str
    message: str


class OutAck(OutBase):
    """Direct reply to a request."""
    type: Literal["ack"] = "ack"
    request: str
    rid: Optional[str] = None
    ok: bool = True
    error: Optional[ErrorCode] = None
    message: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)


class OutHello(OutBase):
    type: Literal["hello"] = "hello"
    pid: str


class OutRoomUpdate(OutBase):
    type: Literal["room_update"] = "room_update"
    room: Dict[str, Any]
    players: List[Dict[str, Any]]


class OutPlayerJoined(OutBase):
    type: Literal["player_joined"] = "player_joined"
    pid: str
    nickname: str


class OutPlayerLeft(OutBase):
    type: Literal["player_left"] = "player_left"
    pid: str
    host_id: Optional[str] = None


class OutRoomClosed(OutBase):
    type: Literal["room_closed"] = "room_closed"
    room_id: str


class OutReadyToStart(OutBase):
    type: Literal["ready_to_start"] = "ready_to_start"
    room_id: str
    host_id: str


class OutGameStarted(OutBase):
    type: Literal["game_started"] = "game_started"
    room_id: str
    status: RoomStatus
    started_at: int
    players: List[Dict[str, Any]]


class OutHealthUpdate(OutBase):
    type: Literal["health_update"] = "health_update"
    player_id: str
    health: int
    damage: int = 0
    ts: int


class OutRoundResult(OutBase):
    type: Literal["round_result"] = "round_result"
    round: int
    players: List[Dict[str, Any]]


class OutRoundAugment(OutBase):
    """Selection phase opened for `round`."""
    type: Literal["round_augment"] = "round_augment"
    round: int
    players: List[Dict[str, Any]]


class OutAugmentComplete(OutBase):
    type: Literal["augment_complete"] = "augment_complete"
    round: int
    selections: Dict[str, str]


class OutRelay(OutBase):
    type: RelayType
    by: str
    data: Dict[str, Any] = Field(default_factory=dict)


OutgoingEvent = Union[
    OutError,
    OutAck,
    OutHello,
    OutRoomUpdate,
    OutPlayerJoined,
    OutPlayerLeft,
    OutRoomClosed,
    OutReadyToStart,
    OutGameStarted,
    OutHealthUpdate,
    OutRoundResult,
    OutRoundAugment,
    OutAugmentComplete,
    OutRelay,
]


# =========================
# Parser helpers
# =========================

_INCOMING_BY_TYPE = {
    "create_room": InCreateRoom,
    "list_rooms": InListRooms,
    "room_info": InRoomInfo,
    "join": InJoin,
    "leave": InLeave,
    "toggle_ready": InToggleReady,
    "select": InSelect,
    "set_color": InSetColor,
    "set_team": InSetTeam,
    "set_nickname": InSetNickname,
    "start_game": InStartGame,
    "damage": InDamage,
    "end_round": InEndRound,
    "augment_select": InAugmentSelect,
    "move": InRelay,
    "pose": InRelay,
    "shoot": InRelay,
    "particle": InRelay,
    "chat": InRelay,
    "game_event": InRelay,
}


def parse_incoming(payload: Dict[str, Any]) -> IncomingMessage:
    """
    Convert raw dict -> validated message model.
    Raises ValueError (pydantic.ValidationError is one) if invalid.
    """
    if not isinstance(payload, dict):
        raise ValueError("Message must be a JSON object")

    t = payload.get("type")
    if not isinstance(t, str):
        raise ValueError("Missing/invalid type")

    cls = _INCOMING_BY_TYPE.get(t)
    if cls is None:
        raise ValueError(f"Unknown message type: {t}")

    return cls.model_validate(payload)


def room_update(room) -> OutRoomUpdate:
    snap = room.snapshot()
    players = snap.pop("players")
    return OutRoomUpdate(room=snap, players=players)
