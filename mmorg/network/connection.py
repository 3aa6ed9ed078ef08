"""
WebSocket connection management.

Handles the connection lifecycle, fixed-delay reconnection and frame routing.
"""

import asyncio
from enum import Enum, auto
from typing import Any, Awaitable, Callable, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from ..constants import RECONNECT_DELAY_SECONDS
from ..core.event_bus import EventBus, EventType, get_event_bus
from ..logging_config import get_logger

logger = get_logger(__name__)

Frame = Union[str, bytes]
Connector = Callable[[str], Awaitable[Any]]


class ConnectionState(Enum):
    """WebSocket connection states."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    RECONNECTING = auto()
    CLOSED = auto()


async def _default_connector(url: str):
    return await websockets.connect(url)


class ConnectionManager:
    """
    Keeps a websocket to the game server open.

    ``run()`` loops until ``close()``: connect, hand each frame to the message
    callback in arrival order, and after any drop wait a fixed delay and try
    again. There is no backoff and no attempt limit.
    """

    def __init__(
        self,
        url: str,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
        event_bus: Optional[EventBus] = None,
        connector: Optional[Connector] = None,
    ):
        self.url = url
        self.reconnect_delay = reconnect_delay
        self._event_bus = event_bus or get_event_bus()
        self._connector = connector or _default_connector
        self._websocket = None
        self._state = ConnectionState.DISCONNECTED
        self._closing = asyncio.Event()
        self._on_open: Optional[Callable[[], Awaitable[None]]] = None
        self._on_message: Optional[Callable[[Frame], None]] = None
        self.connection_attempts = 0

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if websocket is connected."""
        return self._websocket is not None and self._state == ConnectionState.CONNECTED

    def set_handlers(
        self,
        on_open: Optional[Callable[[], Awaitable[None]]] = None,
        on_message: Optional[Callable[[Frame], None]] = None,
    ) -> None:
        """Register the callbacks for connection open and inbound frames."""
        self._on_open = on_open
        self._on_message = on_message

    async def run(self) -> None:
        """Connect and stay connected until close() is called."""
        while not self._closing.is_set():
            await self._run_once()

            if self._closing.is_set():
                break

            self._state = ConnectionState.RECONNECTING
            self._event_bus.emit(EventType.RECONNECTING, {"delay": self.reconnect_delay})
            logger.info(f"Reconnecting in {self.reconnect_delay:.1f}s")

            try:
                await asyncio.wait_for(self._closing.wait(), timeout=self.reconnect_delay)
            except asyncio.TimeoutError:
                pass

        self._state = ConnectionState.CLOSED
        logger.info("Connection loop stopped")

    async def _run_once(self) -> None:
        """One connection attempt, returning when the socket is gone."""
        self._state = ConnectionState.CONNECTING
        self.connection_attempts += 1
        self._event_bus.emit(EventType.CONNECTING, {"attempt": self.connection_attempts})

        try:
            logger.info(f"Connecting to {self.url}")
            self._websocket = await self._connector(self.url)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to connect to server: {e}")
            self._state = ConnectionState.DISCONNECTED
            return

        self._state = ConnectionState.CONNECTED
        self._event_bus.emit(EventType.CONNECTED)
        logger.info("Connected to game server")

        try:
            if self._on_open:
                await self._on_open()

            async for frame in self._websocket:
                self._dispatch(frame)

        except ConnectionClosed as e:
            logger.warning(f"Connection closed by server: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
        finally:
            websocket, self._websocket = self._websocket, None
            self._state = ConnectionState.DISCONNECTED
            await self._close_socket(websocket)
            self._event_bus.emit(EventType.DISCONNECTED)
            logger.info("Disconnected from game server")

    def _dispatch(self, frame: Frame) -> None:
        """Hand one frame to the message callback; a failing callback never ends the stream."""
        if not self._on_message:
            return
        try:
            self._on_message(frame)
        except Exception as e:
            logger.error(f"Error in message handler: {e}", exc_info=True)

    async def send(self, text: str) -> bool:
        """
        Send a text frame to the server.

        Returns:
            True if the frame was handed to the socket.
        """
        if not self.is_connected:
            logger.warning("Cannot send message: not connected")
            return False

        try:
            await self._websocket.send(text)
            return True
        except Exception as e:
            logger.error(f"Failed to send message: {e}")
            return False

    async def close(self) -> None:
        """Stop reconnecting and close the socket."""
        self._closing.set()
        websocket, self._websocket = self._websocket, None
        await self._close_socket(websocket)

    @staticmethod
    async def _close_socket(websocket) -> None:
        if websocket is None:
            return
        try:
            await websocket.close()
        except Exception as e:
            logger.warning(f"Error closing websocket: {e}")
