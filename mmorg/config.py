"""
Client configuration management.

Loads configuration from client_config.yml with environment variable overrides.
Uses Pydantic for validation and type safety.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .constants import (
    AVATAR_SIZE,
    DEFAULT_SERVER_URL,
    RECONNECT_DELAY_SECONDS,
    WORLD_HEIGHT,
    WORLD_WIDTH,
)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "client_config.yml"


class ServerConfig(BaseModel):
    """Server connection settings."""
    url: str = Field(default=DEFAULT_SERVER_URL, description="Game server websocket URL")
    reconnect_delay: float = Field(
        default=RECONNECT_DELAY_SECONDS,
        gt=0,
        description="Seconds to wait before reconnecting after the connection drops",
    )


class DisplayConfig(BaseModel):
    """Display and window settings."""
    width: int = Field(default=1024, description="Window width in pixels")
    height: int = Field(default=768, description="Window height in pixels")
    title: str = Field(default="MMORG", description="Window title")
    fps: int = Field(default=60, description="Target frames per second")
    resizable: bool = Field(default=True, description="Allow the window to be resized")


class WorldConfig(BaseModel):
    """Shared world settings."""
    width: int = Field(default=WORLD_WIDTH, description="World width in pixels")
    height: int = Field(default=WORLD_HEIGHT, description="World height in pixels")
    background: str = Field(default="world.jpg", description="World background image source")
    avatar_size: int = Field(default=AVATAR_SIZE, description="Rendered sprite size in pixels")


class PlayerConfig(BaseModel):
    """Local player settings."""
    username: str = Field(default="Alonso", description="Name sent with join_game")


class KeyBindings(BaseModel):
    """Keyboard shortcuts configuration."""
    move_up: list[str] = Field(default=["w", "up"], description="Move up keys")
    move_down: list[str] = Field(default=["s", "down"], description="Move down keys")
    move_left: list[str] = Field(default=["a", "left"], description="Move left keys")
    move_right: list[str] = Field(default=["d", "right"], description="Move right keys")


class DebugConfig(BaseModel):
    """Debug and development settings."""
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")


class ClientConfig(BaseModel):
    """Complete client configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    world: WorldConfig = Field(default_factory=WorldConfig)
    player: PlayerConfig = Field(default_factory=PlayerConfig)
    key_bindings: KeyBindings = Field(default_factory=KeyBindings)
    debug: DebugConfig = Field(default_factory=DebugConfig)

    @classmethod
    def from_yaml(cls, path: Optional[Path] = None) -> "ClientConfig":
        """Load configuration from YAML file."""
        path = path or DEFAULT_CONFIG_PATH

        data: dict = {}
        if path.exists():
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}

        # Apply environment variable overrides
        data = cls._apply_env_overrides(data)

        return cls(**data)

    @staticmethod
    def _apply_env_overrides(data: dict) -> dict:
        """Apply environment variable overrides to config data."""
        env_mappings = {
            "SERVER_URL": ("server", "url"),
            "RECONNECT_DELAY": ("server", "reconnect_delay"),
            "DISPLAY_WIDTH": ("display", "width"),
            "DISPLAY_HEIGHT": ("display", "height"),
            "WORLD_BACKGROUND": ("world", "background"),
            "PLAYER_USERNAME": ("player", "username"),
            "LOG_LEVEL": ("debug", "log_level"),
        }

        for env_var, (section, key) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                if section not in data or data[section] is None:
                    data[section] = {}

                # Convert types based on default
                if key in ("width", "height"):
                    data[section][key] = int(value)
                elif key == "reconnect_delay":
                    data[section][key] = float(value)
                else:
                    data[section][key] = value

        return data


def get_config() -> ClientConfig:
    """Get the singleton configuration instance."""
    if not hasattr(get_config, "_instance"):
        get_config._instance = ClientConfig.from_yaml()
    return get_config._instance


def reload_config(path: Optional[Path] = None) -> ClientConfig:
    """Reload configuration from file."""
    get_config._instance = ClientConfig.from_yaml(path)
    return get_config._instance


def reset_config() -> None:
    """Drop the cached configuration (for testing)."""
    if hasattr(get_config, "_instance"):
        del get_config._instance
