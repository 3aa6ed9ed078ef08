"""
Camera management.

Handles viewport positioning and coordinate transformations.
"""

from typing import Optional, Tuple

from ..protocol import Player


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def compute_viewport_origin(
    player_x: float,
    player_y: float,
    screen_width: int,
    screen_height: int,
    world_width: int,
    world_height: int,
) -> Tuple[float, float]:
    """
    Top-left world coordinate of a screen-sized view centered on the player.

    The view never leaves the world. When the world is smaller than the
    screen on an axis, that axis is pinned to 0.
    """
    x = clamp(player_x - screen_width / 2, 0, max(0, world_width - screen_width))
    y = clamp(player_y - screen_height / 2, 0, max(0, world_height - screen_height))
    return (x, y)


class Camera:
    """
    Viewport onto the world background.

    (x, y) is the world coordinate drawn at the surface's top-left corner.
    """

    def __init__(self, screen_width: int, screen_height: int, world_width: int, world_height: int):
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.world_width = world_width
        self.world_height = world_height

        self.x: float = 0.0
        self.y: float = 0.0

    @property
    def origin(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def update(self, player: Optional[Player]) -> None:
        """Center on the local player. Keeps the previous viewport before joining."""
        if player is None:
            return

        self.x, self.y = compute_viewport_origin(
            player.x,
            player.y,
            self.screen_width,
            self.screen_height,
            self.world_width,
            self.world_height,
        )

    def world_to_screen(self, world_x: float, world_y: float) -> Tuple[float, float]:
        """Convert world coordinates to screen coordinates."""
        return (world_x - self.x, world_y - self.y)

    def is_on_screen(self, screen_x: float, screen_y: float, margin: int = 0) -> bool:
        """Check if a screen position is within the surface plus a margin."""
        return (-margin <= screen_x <= self.screen_width + margin and
                -margin <= screen_y <= self.screen_height + margin)

    def handle_resize(self, width: int, height: int) -> None:
        """Handle window resize."""
        self.screen_width = width
        self.screen_height = height
