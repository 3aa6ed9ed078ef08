"""Local game state: world mirror and movement intent."""

from .movement import MovementIntentController, MovementKey, any_key_held
from .world_state import WorldState

__all__ = [
    "MovementIntentController",
    "MovementKey",
    "WorldState",
    "any_key_held",
]
