"""
Message handlers for server-to-client events.

Each handler applies one message to the world state, then re-derives the
viewport and asks for a redraw.
"""

from typing import Optional, Union

from ..core.event_bus import EventBus, EventType, get_event_bus
from ..game.world_state import WorldState
from ..logging_config import get_logger
from ..protocol import (
    JoinGameMessage,
    PlayerJoinedMessage,
    PlayerLeftMessage,
    PlayersMovedMessage,
    ProtocolDecodeError,
    ServerMessage,
    UnrecognizedMessage,
    decode_server_message,
)
from ..rendering.camera import Camera
from ..rendering.sprite_manager import SpriteManager

logger = get_logger(__name__)


class ProtocolReconciler:
    """
    Applies decoded server messages to the local world mirror.

    Messages are handled one at a time, each to completion, so the world
    state is never seen half-updated.
    """

    def __init__(
        self,
        world_state: WorldState,
        camera: Camera,
        sprite_manager: SpriteManager,
        event_bus: Optional[EventBus] = None,
    ):
        self.world_state = world_state
        self.camera = camera
        self.sprite_manager = sprite_manager
        self.event_bus = event_bus or get_event_bus()

    def handle_raw(self, data: Union[str, bytes]) -> Optional[ServerMessage]:
        """
        Decode and apply one inbound frame.

        Malformed frames are logged and dropped.

        Returns:
            The decoded message, or None if it was discarded.
        """
        try:
            message = decode_server_message(data)
        except ProtocolDecodeError as e:
            logger.error(f"Error parsing server message: {e}")
            return None

        self.handle_message(message)
        return message

    def handle_message(self, message: ServerMessage) -> None:
        """Route a decoded message to its handler."""
        if isinstance(message, JoinGameMessage):
            self.handle_join_game(message)
        elif isinstance(message, PlayerJoinedMessage):
            self.handle_player_joined(message)
        elif isinstance(message, PlayersMovedMessage):
            self.handle_players_moved(message)
        elif isinstance(message, PlayerLeftMessage):
            self.handle_player_left(message)
        elif isinstance(message, UnrecognizedMessage):
            logger.warning(f"Unknown message type: {message.action}")
        else:
            logger.warning(f"Unhandled message variant: {type(message).__name__}")

    # =================================================================
    # EVENT HANDLERS
    # =================================================================

    def handle_join_game(self, message: JoinGameMessage) -> None:
        """Handle the join acknowledgment: replace the whole world."""
        if not message.success:
            logger.error(f"Failed to join game: {message.error}")
            self.event_bus.emit(EventType.JOIN_FAILED, {"error": message.error})
            return

        if message.player_id is None:
            logger.error("Join acknowledged without a player id")
            self.event_bus.emit(EventType.JOIN_FAILED, {"error": "missing playerId"})
            return

        self.world_state.replace(message.player_id, message.players, message.avatars)
        self.sprite_manager.preload_avatars(self.world_state.avatars)

        local_player = self.world_state.local_player
        if local_player is None:
            logger.warning(f"Local player {message.player_id} missing from join snapshot")
        else:
            logger.info(f"Successfully joined game as {local_player.username}")

        self.camera.update(local_player)
        self._request_redraw("join_game")
        self.event_bus.emit(EventType.GAME_STARTED, {"player_id": message.player_id})

    def handle_player_joined(self, message: PlayerJoinedMessage) -> None:
        """Handle player joined event."""
        player = message.player
        logger.info(f"Player joined: {player.username}")

        self.world_state.upsert_player(player)
        self.world_state.add_avatar(message.avatar)
        self.sprite_manager.preload_avatars(self.world_state.avatars)

        self._request_redraw("player_joined")
        self.event_bus.emit(EventType.PLAYER_JOINED, {"player_id": player.id, "username": player.username})

    def handle_players_moved(self, message: PlayersMovedMessage) -> None:
        """Handle movement updates for one or more players."""
        applied = self.world_state.merge_players(message.players)

        # The local player may be among them
        self.camera.update(self.world_state.local_player)
        self._request_redraw("players_moved")
        self.event_bus.emit(EventType.PLAYERS_MOVED, {"count": applied})

    def handle_player_left(self, message: PlayerLeftMessage) -> None:
        """Handle player left event."""
        player = self.world_state.players.get(message.player_id)
        removed = self.world_state.remove_player(message.player_id)

        if removed:
            logger.info(f"Player left: {player.username}")
            self.event_bus.emit(EventType.PLAYER_LEFT, {"player_id": message.player_id})
        else:
            logger.debug(f"Player left for unknown id {message.player_id}")

        self._request_redraw("player_left")

    def _request_redraw(self, reason: str) -> None:
        self.event_bus.emit(EventType.REDRAW_REQUESTED, {"reason": reason})
