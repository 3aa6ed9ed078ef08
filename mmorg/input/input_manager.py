"""
Input handling for the client.

Maps pygame keyboard events to logical movement keys.
"""

from typing import Dict, Optional

import pygame

from ..config import KeyBindings, get_config
from ..game.movement import MovementIntentController, MovementKey
from ..logging_config import get_logger

logger = get_logger(__name__)


def key_name_to_code(key_name: str) -> int:
    """Convert key name to pygame key code, 0 if unknown."""
    try:
        return pygame.key.key_code(key_name.lower())
    except ValueError:
        return 0


class InputManager:
    """Routes key events to the movement controller."""

    def __init__(
        self,
        movement: MovementIntentController,
        key_bindings: Optional[KeyBindings] = None,
    ):
        self.movement = movement
        self.key_bindings = key_bindings or get_config().key_bindings
        self._setup_key_mapping()

    def _setup_key_mapping(self) -> None:
        """Setup key to movement mapping from config."""
        self.key_map: Dict[int, MovementKey] = {}

        bindings = {
            MovementKey.UP: self.key_bindings.move_up,
            MovementKey.DOWN: self.key_bindings.move_down,
            MovementKey.LEFT: self.key_bindings.move_left,
            MovementKey.RIGHT: self.key_bindings.move_right,
        }
        for movement_key, key_names in bindings.items():
            for key_name in key_names:
                code = key_name_to_code(key_name)
                if code:
                    self.key_map[code] = movement_key
                else:
                    logger.warning(f"Unknown key binding '{key_name}' for {movement_key.value}")

    def process_event(self, event: pygame.event.Event) -> bool:
        """
        Handle one pygame event.

        Returns:
            True if the event was a movement key or a focus change.
        """
        if event.type == pygame.KEYDOWN:
            key = self.key_map.get(event.key)
            if key is None:
                return False
            # pygame sets no repeat flag; repeats only arrive if key repeat is enabled
            self.movement.key_down(key, repeat=getattr(event, "repeat", False))
            return True

        if event.type == pygame.KEYUP:
            key = self.key_map.get(event.key)
            if key is None:
                return False
            self.movement.key_up(key)
            return True

        if event.type == pygame.WINDOWFOCUSLOST:
            self.movement.release_all()
            return True

        return False
