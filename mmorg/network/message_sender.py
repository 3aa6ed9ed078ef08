"""
Message sender for client-to-server communication.

Provides type-safe methods for every command the client sends.
"""

from ..logging_config import get_logger
from ..protocol import (
    ClientMessage,
    Direction,
    JoinGameCommand,
    MoveCommand,
    StopCommand,
    encode_client_message,
)
from .connection import ConnectionManager

logger = get_logger(__name__)


class MessageSender:
    """Sends commands to the server with proper formatting."""

    def __init__(self, connection: ConnectionManager):
        self.connection = connection

    async def _send(self, message: ClientMessage) -> bool:
        """Send a message to the server."""
        return await self.connection.send(encode_client_message(message))

    async def join_game(self, username: str) -> bool:
        """Ask to join the world under a display name."""
        logger.info(f"Joining game as {username}")
        return await self._send(JoinGameCommand(username=username))

    async def move(self, direction: Direction) -> bool:
        """Send move command."""
        logger.debug(f"Moving {direction.value}")
        return await self._send(MoveCommand(direction=direction))

    async def stop(self) -> bool:
        """Send stop command."""
        logger.debug("Stop moving")
        return await self._send(StopCommand())
