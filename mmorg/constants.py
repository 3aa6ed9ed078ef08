"""
Client constants and configuration values.
This file centralizes all magic numbers used throughout the client.
"""

# Server Constants
DEFAULT_SERVER_URL = "wss://codepath-mmorg.onrender.com"
RECONNECT_DELAY_SECONDS = 3.0  # Fixed delay between reconnection attempts

# World Constants
WORLD_WIDTH = 2048  # World background width in pixels
WORLD_HEIGHT = 2048  # World background height in pixels
DEPARTED_ID_LIMIT = 1024  # Most recent departed player ids remembered per session

# Sprite Constants
AVATAR_SIZE = 32  # Sprites are drawn at this size, centered on the player
CULL_MARGIN = 50  # Players further than this outside the surface are skipped
AVATAR_DIRECTIONS = ("north", "south", "east")  # West is mirrored from east

# Label Constants
LABEL_FONT_NAME = "arial"
LABEL_FONT_SIZE = 12
LABEL_OFFSET = 5  # Gap between sprite top and username baseline
LABEL_OUTLINE_WIDTH = 2

# Color Constants (RGB values)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
