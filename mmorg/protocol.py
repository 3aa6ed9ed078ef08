"""
Wire protocol for the shared world server.

Messages are JSON objects discriminated by their ``action`` field.
Using Pydantic models for structure and validation.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ProtocolDecodeError(ValueError):
    """Raised when an inbound payload cannot be decoded into a message."""


# =============================================================================
# Enums
# =============================================================================

class Facing(str, Enum):
    """Direction a player sprite is facing."""
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


class Direction(str, Enum):
    """Movement direction sent with a move command."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


class ServerAction(str, Enum):
    """Server to client actions."""
    JOIN_GAME = "join_game"
    PLAYER_JOINED = "player_joined"
    PLAYERS_MOVED = "players_moved"
    PLAYER_LEFT = "player_left"


class ClientAction(str, Enum):
    """Client to server actions."""
    JOIN_GAME = "join_game"
    MOVE = "move"
    STOP = "stop"


# =============================================================================
# Shared records
# =============================================================================

class Player(BaseModel):
    """A player as broadcast by the server."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    username: str = ""
    x: float
    y: float
    facing: str = Facing.SOUTH.value
    avatar: str
    animation_frame: Optional[int] = Field(default=None, alias="animationFrame", ge=0)


class AvatarFrames(BaseModel):
    """Frame image sources for each stored direction. West mirrors east."""
    model_config = ConfigDict(extra="ignore")

    north: List[str] = Field(default_factory=list)
    south: List[str] = Field(default_factory=list)
    east: List[str] = Field(default_factory=list)


class AvatarDefinition(BaseModel):
    """A named set of directional sprite frames."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    frames: AvatarFrames = Field(default_factory=AvatarFrames)


# =============================================================================
# Server -> client messages
# =============================================================================

class _ServerMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class JoinGameMessage(_ServerMessage):
    """Acknowledgment of our join_game request."""
    action: ServerAction = ServerAction.JOIN_GAME
    success: bool
    player_id: Optional[str] = Field(default=None, alias="playerId")
    players: Dict[str, Player] = Field(default_factory=dict)
    avatars: Dict[str, AvatarDefinition] = Field(default_factory=dict)
    error: Optional[str] = None


class PlayerJoinedMessage(_ServerMessage):
    """A peer entered the world."""
    action: ServerAction = ServerAction.PLAYER_JOINED
    player: Player
    avatar: AvatarDefinition


class PlayersMovedMessage(_ServerMessage):
    """Updated records for players whose state changed."""
    action: ServerAction = ServerAction.PLAYERS_MOVED
    players: Dict[str, Player]


class PlayerLeftMessage(_ServerMessage):
    """A peer left the world."""
    action: ServerAction = ServerAction.PLAYER_LEFT
    player_id: str = Field(alias="playerId")


class UnrecognizedMessage(BaseModel):
    """Any message whose action this client does not handle."""
    action: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


ServerMessage = Union[
    JoinGameMessage,
    PlayerJoinedMessage,
    PlayersMovedMessage,
    PlayerLeftMessage,
    UnrecognizedMessage,
]

SERVER_MESSAGE_TYPES = {
    ServerAction.JOIN_GAME: JoinGameMessage,
    ServerAction.PLAYER_JOINED: PlayerJoinedMessage,
    ServerAction.PLAYERS_MOVED: PlayersMovedMessage,
    ServerAction.PLAYER_LEFT: PlayerLeftMessage,
}


# =============================================================================
# Client -> server commands
# =============================================================================

class JoinGameCommand(BaseModel):
    action: ClientAction = ClientAction.JOIN_GAME
    username: str


class MoveCommand(BaseModel):
    action: ClientAction = ClientAction.MOVE
    direction: Direction


class StopCommand(BaseModel):
    action: ClientAction = ClientAction.STOP


ClientMessage = Union[JoinGameCommand, MoveCommand, StopCommand]


# =============================================================================
# Codec
# =============================================================================

def decode_server_message(data: Union[str, bytes]) -> ServerMessage:
    """
    Decode one inbound frame.

    Args:
        data: Raw websocket frame (JSON text).

    Returns:
        The matching message variant, or UnrecognizedMessage for actions
        this client does not know about.

    Raises:
        ProtocolDecodeError: Invalid JSON, a non-object payload, or a known
            action whose payload fails validation.
    """
    try:
        obj = json.loads(data)
    except (TypeError, ValueError) as e:
        raise ProtocolDecodeError(f"Invalid JSON: {e}") from e

    if not isinstance(obj, dict):
        raise ProtocolDecodeError(f"Expected a JSON object, got {type(obj).__name__}")

    action = obj.get("action")
    try:
        message_type = SERVER_MESSAGE_TYPES[ServerAction(action)]
    except (TypeError, ValueError):
        return UnrecognizedMessage(action=action if isinstance(action, str) else None, raw=obj)

    try:
        return message_type.model_validate(obj)
    except ValidationError as e:
        raise ProtocolDecodeError(f"Invalid {action} payload: {e}") from e


def encode_client_message(message: ClientMessage) -> str:
    """Encode an outbound command as compact JSON."""
    return json.dumps(message.model_dump(mode="json"), separators=(",", ":"))
