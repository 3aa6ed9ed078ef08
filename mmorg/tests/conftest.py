"""
Shared test fixtures.

pygame runs headless through SDL's dummy drivers.
"""

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pygame
import pytest

from mmorg.config import reset_config
from mmorg.core.event_bus import EventBus, reset_event_bus
from mmorg.protocol import AvatarDefinition, AvatarFrames, Player


@pytest.fixture(scope="session", autouse=True)
def pygame_headless():
    """Initialise pygame once for the whole run."""
    pygame.display.init()
    pygame.font.init()
    yield
    pygame.quit()


@pytest.fixture(autouse=True)
def clean_singletons():
    """Every test starts with a fresh event bus and config."""
    reset_event_bus()
    reset_config()
    yield
    reset_event_bus()
    reset_config()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def make_player():
    """Factory for player records."""
    def _make(player_id="p1", x=100.0, y=100.0, username=None, facing="south", avatar="knight", frame=None):
        return Player(
            id=player_id,
            username=username if username is not None else f"user-{player_id}",
            x=x,
            y=y,
            facing=facing,
            avatar=avatar,
            animation_frame=frame,
        )
    return _make


@pytest.fixture
def knight_avatar():
    """Avatar with two south frames and one frame for north and east."""
    return AvatarDefinition(
        name="knight",
        frames=AvatarFrames(
            north=["knight/n0.png"],
            south=["knight/s0.png", "knight/s1.png"],
            east=["knight/e0.png"],
        ),
    )


@pytest.fixture
def solid_surface():
    """Factory for single-colour surfaces."""
    def _make(color, size=(32, 32)):
        surface = pygame.Surface(size)
        surface.fill(color)
        return surface
    return _make
