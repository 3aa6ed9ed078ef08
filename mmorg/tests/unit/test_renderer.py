"""
Unit tests for frame rendering.

Draws into an off-screen surface and inspects pixels.
"""

import pygame
import pytest
import pytest_asyncio

from mmorg.game.world_state import WorldState
from mmorg.protocol import AvatarDefinition, AvatarFrames
from mmorg.rendering.camera import Camera
from mmorg.rendering.renderer import Renderer
from mmorg.rendering.sprite_manager import SpriteManager

GREEN = (0, 128, 0)
RED = (255, 0, 0)
BLUE = (0, 0, 255)
MAGENTA = (255, 0, 255)


def _split_sprite() -> pygame.Surface:
    """32x32 sprite, left half red and right half blue."""
    surface = pygame.Surface((32, 32))
    surface.fill(BLUE)
    surface.fill(RED, pygame.Rect(0, 0, 16, 32))
    return surface


SURFACES = {
    "world.png": lambda: _solid(GREEN, (400, 400)),
    "hero/east.png": _split_sprite,
    "hero/north.png": lambda: _solid(RED, (64, 64)),
}


def _solid(color, size) -> pygame.Surface:
    surface = pygame.Surface(size)
    surface.fill(color)
    return surface


async def _reader(source):
    return source.encode()


def _decoder(data, source):
    if source not in SURFACES:
        raise ValueError(f"no test image for {source}")
    return SURFACES[source]()


HERO = AvatarDefinition(
    name="hero",
    frames=AvatarFrames(north=["hero/north.png"], south=["hero/missing.png"], east=["hero/east.png"]),
)


@pytest_asyncio.fixture
async def scene():
    """Renderer over a 200x200 surface with the world and hero loaded."""
    sprite_manager = SpriteManager(reader=_reader, decoder=_decoder)
    screen = pygame.Surface((200, 200))
    renderer = Renderer(screen, sprite_manager)
    renderer.set_world_image(sprite_manager.load_image("world.png"))
    sprite_manager.preload_avatars({"hero": HERO})
    await sprite_manager.wait_for_pending()

    world = WorldState()
    camera = Camera(200, 200, 400, 400)
    return renderer, world, camera


def _pixel(renderer, x, y):
    return tuple(renderer.screen.get_at((x, y)))[:3]


# =============================================================================
# BACKGROUND
# =============================================================================

class TestBackground:
    """Tests for the world background pass."""

    @pytest.mark.asyncio
    async def test_players_drawn_without_background(self, make_player):
        """A background that never loads still leaves a cleared frame with players on it."""
        sprite_manager = SpriteManager(reader=_reader, decoder=_decoder)
        screen = pygame.Surface((200, 200))
        screen.fill(MAGENTA)
        renderer = Renderer(screen, sprite_manager)
        renderer.set_world_image(sprite_manager.load_image("missing-world.png"))
        sprite_manager.preload_avatars({"hero": HERO})
        await sprite_manager.wait_for_pending()

        world = WorldState()
        world.replace("p1", {"p1": make_player("p1", x=100, y=100, username="", facing="east", avatar="hero")}, {})

        assert renderer.world_image.failed
        assert renderer.render(world, Camera(200, 200, 400, 400)) is False
        assert _pixel(renderer, 10, 10) == (0, 0, 0)
        assert _pixel(renderer, 90, 100) == RED
        assert _pixel(renderer, 110, 100) == BLUE

    @pytest.mark.asyncio
    async def test_background_fills_view(self, scene):
        renderer, world, camera = scene

        assert renderer.render(world, camera) is True
        assert _pixel(renderer, 0, 0) == GREEN
        assert _pixel(renderer, 199, 199) == GREEN


# =============================================================================
# PLAYERS
# =============================================================================

class TestPlayers:
    """Tests for sprite placement, mirroring and culling."""

    @pytest.mark.asyncio
    async def test_east_sprite_drawn_as_is(self, scene, make_player):
        renderer, world, camera = scene
        world.replace("p1", {"p1": make_player("p1", x=100, y=100, username="", facing="east", avatar="hero")}, {})

        renderer.render(world, camera)

        assert _pixel(renderer, 90, 100) == RED
        assert _pixel(renderer, 110, 100) == BLUE

    @pytest.mark.asyncio
    async def test_west_sprite_is_mirrored(self, scene, make_player):
        """West mirrors the east frame about its own center."""
        renderer, world, camera = scene
        world.replace("p1", {"p1": make_player("p1", x=100, y=100, username="", facing="west", avatar="hero")}, {})

        renderer.render(world, camera)

        assert _pixel(renderer, 90, 100) == BLUE
        assert _pixel(renderer, 110, 100) == RED

    @pytest.mark.asyncio
    async def test_sprite_is_centered_at_avatar_size(self, scene, make_player):
        """A 64x64 frame is scaled to 32x32 and centered on the player."""
        renderer, world, camera = scene
        world.replace("p1", {"p1": make_player("p1", x=100, y=100, username="", facing="north", avatar="hero")}, {})

        renderer.render(world, camera)

        assert _pixel(renderer, 84, 84) == RED
        assert _pixel(renderer, 115, 115) == RED
        assert _pixel(renderer, 82, 100) == GREEN
        assert _pixel(renderer, 117, 100) == GREEN

    @pytest.mark.asyncio
    async def test_position_is_relative_to_viewport(self, scene, make_player):
        renderer, world, camera = scene
        camera.x, camera.y = 50, 50
        world.replace("p1", {"p1": make_player("p1", x=150, y=150, username="", facing="north", avatar="hero")}, {})

        renderer.render(world, camera)

        assert _pixel(renderer, 100, 100) == RED

    @pytest.mark.asyncio
    async def test_offscreen_player_is_culled(self, scene, make_player):
        renderer, world, camera = scene
        renderer.render(world, camera)

        assert renderer.render_player(make_player("p2", x=251, y=100, facing="north", avatar="hero"), camera) is False
        assert renderer.render_player(make_player("p3", x=100, y=-51, facing="north", avatar="hero"), camera) is False
        assert renderer.render_player(make_player("p4", x=240, y=100, facing="north", avatar="hero"), camera) is True

    @pytest.mark.asyncio
    async def test_culling_follows_camera_view_size(self, scene, make_player):
        renderer, world, camera = scene
        camera.handle_resize(300, 200)
        player = make_player("p2", x=340, y=100, facing="north", avatar="hero")

        assert renderer.render_player(player, camera) is True
        camera.handle_resize(200, 200)
        assert renderer.render_player(player, camera) is False

    @pytest.mark.asyncio
    async def test_unloaded_frame_is_skipped(self, scene, make_player):
        """Failed or missing frames leave the background untouched."""
        renderer, world, camera = scene
        world.replace("p1", {
            "p1": make_player("p1", x=100, y=100, username="", facing="south", avatar="hero"),
            "p2": make_player("p2", x=50, y=50, username="", facing="south", avatar="nobody"),
        }, {})

        assert renderer.render(world, camera) is True
        assert _pixel(renderer, 100, 100) == GREEN
        assert _pixel(renderer, 50, 50) == GREEN

    @pytest.mark.asyncio
    async def test_username_label_drawn_above_sprite(self, scene, make_player):
        renderer, world, camera = scene
        world.replace("p1", {"p1": make_player("p1", x=100, y=100, username="WWWW", facing="north", avatar="hero")}, {})

        renderer.render(world, camera)

        label_area = [
            _pixel(renderer, x, y)
            for x in range(70, 131)
            for y in range(55, 80)
        ]
        assert any(color != GREEN for color in label_area)
        # Sprite top edge stays clear of the label
        assert _pixel(renderer, 100, 84) == RED

    @pytest.mark.asyncio
    async def test_redraw_is_idempotent(self, scene, make_player):
        renderer, world, camera = scene
        world.replace("p1", {
            "p1": make_player("p1", x=100, y=100, username="Alonso", facing="west", avatar="hero"),
            "p2": make_player("p2", x=60, y=150, username="Bea", facing="north", avatar="hero"),
        }, {})

        renderer.render(world, camera)
        first = pygame.image.tobytes(renderer.screen, "RGB")
        renderer.render(world, camera)

        assert pygame.image.tobytes(renderer.screen, "RGB") == first


class TestResize:

    @pytest.mark.asyncio
    async def test_handle_resize_changes_target(self, scene):
        renderer, world, camera = scene
        bigger = pygame.Surface((300, 250))

        renderer.handle_resize(bigger)
        renderer.render(world, camera)

        assert renderer.screen is bigger
        assert tuple(bigger.get_at((299, 249)))[:3] == GREEN
