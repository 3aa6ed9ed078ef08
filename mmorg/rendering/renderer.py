"""
Main renderer.

Draws the world background through the camera, then every player's sprite
and username label on top, in one pass per redraw request.
"""

from typing import Optional, Tuple

import pygame

from ..constants import (
    AVATAR_SIZE,
    BLACK,
    CULL_MARGIN,
    LABEL_FONT_NAME,
    LABEL_FONT_SIZE,
    LABEL_OFFSET,
    LABEL_OUTLINE_WIDTH,
    WHITE,
)
from ..game.world_state import WorldState
from ..logging_config import get_logger
from ..protocol import Player
from .camera import Camera
from .sprite_manager import ImageHandle, SpriteManager

logger = get_logger(__name__)


class Renderer:
    """
    Composes one frame of the world view.

    Rendering reads the world state and camera and touches nothing but the
    target surface, so redrawing unchanged state yields identical pixels.
    """

    def __init__(
        self,
        screen: pygame.Surface,
        sprite_manager: SpriteManager,
        avatar_size: int = AVATAR_SIZE,
        label_font: Optional[pygame.font.Font] = None,
    ):
        self.screen = screen
        self.sprite_manager = sprite_manager
        self.avatar_size = avatar_size
        self.world_image: Optional[ImageHandle] = None

        # Cached font (created once, reused for performance)
        self.label_font = label_font or pygame.font.SysFont(LABEL_FONT_NAME, LABEL_FONT_SIZE)

    def set_world_image(self, handle: ImageHandle) -> None:
        self.world_image = handle

    def render(self, world_state: WorldState, camera: Camera) -> bool:
        """
        Render one frame.

        Players are drawn even while the world background is missing, over a
        cleared surface.

        Returns:
            True if the world background was drawn.
        """
        # 1. Clear
        self.screen.fill(BLACK)

        # 2. World background, viewport rectangle as source area
        background_drawn = self.world_image is not None and self.world_image.complete
        if background_drawn:
            origin_x, origin_y = camera.origin
            width, height = self.screen.get_size()
            source_rect = pygame.Rect(int(origin_x), int(origin_y), width, height)
            self.screen.blit(self.world_image.surface, (0, 0), source_rect)

        # 3. Players
        for player in world_state.players.values():
            self.render_player(player, camera)

        return background_drawn

    def render_player(self, player: Player, camera: Camera) -> bool:
        """
        Draw one player's sprite and name.

        Returns:
            True if the player was drawn, False if culled or not loaded yet.
        """
        screen_x, screen_y = camera.world_to_screen(player.x, player.y)
        if not camera.is_on_screen(screen_x, screen_y, CULL_MARGIN):
            return False

        frame_index = player.animation_frame or 0
        handle, mirrored = self.sprite_manager.get_frame(player.avatar, player.facing, frame_index)
        if handle is None or not handle.complete:
            return False

        sprite = self._prepare_sprite(handle.surface, mirrored)
        center = (round(screen_x), round(screen_y))
        self.screen.blit(sprite, sprite.get_rect(center=center))

        self._render_label(player.username, center[0], center[1] - self.avatar_size // 2 - LABEL_OFFSET)
        return True

    def _prepare_sprite(self, surface: pygame.Surface, mirrored: bool) -> pygame.Surface:
        if surface.get_size() != (self.avatar_size, self.avatar_size):
            surface = pygame.transform.scale(surface, (self.avatar_size, self.avatar_size))
        if mirrored:
            # Flipping the whole frame mirrors it about its own vertical center line
            surface = pygame.transform.flip(surface, True, False)
        return surface

    def _render_label(self, text: str, center_x: int, baseline_y: int) -> None:
        """Draw text with a dark outline first, then the fill on top."""
        if not text:
            return

        outline = self.label_font.render(text, True, BLACK)
        fill = self.label_font.render(text, True, WHITE)
        rect = fill.get_rect(midbottom=(center_x, baseline_y))

        for dx, dy in _outline_offsets(LABEL_OUTLINE_WIDTH // 2):
            self.screen.blit(outline, rect.move(dx, dy))
        self.screen.blit(fill, rect)

    def handle_resize(self, screen: pygame.Surface) -> None:
        """Handle window resize."""
        self.screen = screen
        logger.info(f"Render target resized to {screen.get_width()}x{screen.get_height()}")


def _outline_offsets(radius: int) -> Tuple[Tuple[int, int], ...]:
    return tuple(
        (dx, dy)
        for dx in range(-radius, radius + 1)
        for dy in range(-radius, radius + 1)
        if (dx, dy) != (0, 0)
    )
