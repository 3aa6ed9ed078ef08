"""
Movement intent tracking.

Turns key edges into the smallest stream of move/stop commands the server
needs. Position is never changed locally; it only comes back through
players_moved.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Dict, Mapping, Optional, Protocol, Set

from ..logging_config import get_logger
from ..protocol import Direction

logger = get_logger(__name__)


class MovementKey(str, Enum):
    """Logical movement keys."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def direction(self) -> Direction:
        return Direction(self.value)


class CommandSender(Protocol):
    async def move(self, direction: Direction) -> bool: ...

    async def stop(self) -> bool: ...


def any_key_held(keys: Mapping["MovementKey", bool]) -> bool:
    """Aggregate moving state: true while any movement key is held."""
    return any(keys.values())


class MovementIntentController:
    """
    Tracks which movement keys are held and emits move/stop commands.

    Each key-down edge sends its own move command, even while already moving.
    A single stop is sent when the last held key is released.
    """

    def __init__(
        self,
        sender: CommandSender,
        dispatch: Optional[Callable[[Awaitable[bool]], None]] = None,
    ):
        self.sender = sender
        self._dispatch = dispatch or self._fire_and_forget
        self._keys: Dict[MovementKey, bool] = {key: False for key in MovementKey}
        self._pending: Set[asyncio.Task] = set()

    @property
    def is_moving(self) -> bool:
        return any_key_held(self._keys)

    @property
    def held_keys(self) -> Set[MovementKey]:
        return {key for key, held in self._keys.items() if held}

    def is_held(self, key: MovementKey) -> bool:
        return self._keys[key]

    def key_down(self, key: MovementKey, repeat: bool = False) -> bool:
        """
        Handle a key press.

        Args:
            key: Logical key pressed.
            repeat: True for auto-repeat events from the input source.

        Returns:
            True if a move command was sent.
        """
        if repeat or self._keys[key]:
            return False

        self._keys[key] = True
        logger.debug(f"Moving {key.value}")
        self._dispatch(self.sender.move(key.direction))
        return True

    def key_up(self, key: MovementKey) -> bool:
        """
        Handle a key release.

        Returns:
            True if a stop command was sent.
        """
        if not self._keys[key]:
            return False

        was_moving = any_key_held(self._keys)
        self._keys[key] = False
        if was_moving and not any_key_held(self._keys):
            return self._send_stop()
        return False

    def release_all(self) -> bool:
        """
        Release every held key, e.g. when the window loses focus.

        Returns:
            True if a stop command was sent.
        """
        if not any_key_held(self._keys):
            return False

        for key in MovementKey:
            self._keys[key] = False
        return self._send_stop()

    def _send_stop(self) -> bool:
        logger.debug("Stopped moving")
        self._dispatch(self.sender.stop())
        return True

    def _fire_and_forget(self, coro: Awaitable[bool]) -> None:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        """Log any exceptions from fire-and-forget sends."""
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error(f"Movement command failed: {exc}", exc_info=exc)
