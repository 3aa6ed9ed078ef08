"""Keyboard input handling."""

from .input_manager import InputManager, key_name_to_code

__all__ = ["InputManager", "key_name_to_code"]
