"""Viewport camera, avatar image cache and frame renderer."""

from .camera import Camera, compute_viewport_origin
from .renderer import Renderer
from .sprite_manager import ImageHandle, SpriteManager

__all__ = [
    "Camera",
    "ImageHandle",
    "Renderer",
    "SpriteManager",
    "compute_viewport_origin",
]
