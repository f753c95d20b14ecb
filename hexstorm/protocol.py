"""Client/server message protocol.

Every frame on the game socket is a JSON envelope ``{"event": ..., "data": ...}``.
Server messages form a closed, discriminated union on ``event``; the only
client command is ``playerMove``.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Any, Dict, Literal, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ProtocolError
from .models import GameStateSnapshot, PlayerSlot

__all__ = [
    "ServerEvent",
    "ClientEvent",
    "AssignPlayerMessage",
    "SpectatorMessage",
    "GameStateMessage",
    "GameErrorPayload",
    "GameErrorMessage",
    "ServerMessage",
    "PlayerMovePayload",
    "PlayerMoveMessage",
    "ClientMessage",
    "decode_client_message",
    "encode_server_message",
]


class ServerEvent(str, Enum):
    """Server -> client event names"""
    ASSIGN_PLAYER = "assignPlayer"
    SPECTATOR = "spectator"
    GAME_STATE = "gameState"
    GAME_ERROR = "gameError"


class ClientEvent(str, Enum):
    """Client -> server event names"""
    PLAYER_MOVE = "playerMove"


class AssignPlayerMessage(BaseModel):
    """Sent once to a connection bound to a player slot"""
    event: Literal["assignPlayer"] = "assignPlayer"
    data: PlayerSlot


class SpectatorMessage(BaseModel):
    """Sent once to a connection that arrives after both slots are taken"""
    event: Literal["spectator"] = "spectator"
    data: Literal[True] = True


class GameStateMessage(BaseModel):
    """Full state snapshot"""
    event: Literal["gameState"] = "gameState"
    data: GameStateSnapshot


class GameErrorPayload(BaseModel):
    message: str


class GameErrorMessage(BaseModel):
    """Informational error, e.g. the opponent left mid-game"""
    event: Literal["gameError"] = "gameError"
    data: GameErrorPayload


ServerMessage = Annotated[
    Union[AssignPlayerMessage, SpectatorMessage, GameStateMessage, GameErrorMessage],
    Field(discriminator="event"),
]


class PlayerMovePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    color: str


class PlayerMoveMessage(BaseModel):
    """The only client command: pick a colour"""
    event: Literal["playerMove"] = "playerMove"
    data: PlayerMovePayload


ClientMessage = PlayerMoveMessage

_CLIENT_MESSAGE_TYPES: Dict[ClientEvent, Type[BaseModel]] = {
    ClientEvent.PLAYER_MOVE: PlayerMoveMessage,
}


def decode_client_message(raw: Union[str, bytes]) -> ClientMessage:
    """Parse one client frame, raising ProtocolError if it is malformed."""
    try:
        envelope = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ProtocolError("Frame is not valid JSON") from exc

    if not isinstance(envelope, dict):
        raise ProtocolError("Frame must be a JSON object")

    name = envelope.get("event")
    try:
        event = ClientEvent(name)
    except ValueError as exc:
        raise ProtocolError("Unknown event", event=str(name)) from exc

    try:
        return _CLIENT_MESSAGE_TYPES[event].model_validate(envelope)
    except ValidationError as exc:
        raise ProtocolError(
            "Invalid payload",
            event=event.value,
            context={"errors": exc.error_count()},
        ) from exc


def encode_server_message(message: BaseModel) -> Dict[str, Any]:
    """Return the JSON-ready envelope for a server message."""
    return message.model_dump(mode="json", by_alias=True)
