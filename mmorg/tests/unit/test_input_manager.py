"""
Unit tests for keyboard event routing.
"""

import pygame
import pytest

from mmorg.config import KeyBindings
from mmorg.game.movement import MovementIntentController, MovementKey
from mmorg.input.input_manager import InputManager, key_name_to_code


class NullSender:

    async def move(self, direction):
        return True

    async def stop(self):
        return True


@pytest.fixture
def dispatched():
    return []


@pytest.fixture
def input_manager(dispatched):
    def dispatch(coro):
        dispatched.append(coro.cr_code.co_name)
        coro.close()

    movement = MovementIntentController(NullSender(), dispatch=dispatch)
    return InputManager(movement, KeyBindings())


def _key(event_type, key):
    return pygame.event.Event(event_type, key=key)


class TestKeyMapping:

    def test_default_bindings(self, input_manager):
        assert input_manager.key_map[pygame.K_UP] == MovementKey.UP
        assert input_manager.key_map[pygame.K_w] == MovementKey.UP
        assert input_manager.key_map[pygame.K_a] == MovementKey.LEFT
        assert input_manager.key_map[pygame.K_RIGHT] == MovementKey.RIGHT
        assert input_manager.key_map[pygame.K_s] == MovementKey.DOWN

    def test_unknown_key_name(self):
        assert key_name_to_code("not-a-key") == 0

    def test_unknown_binding_is_skipped(self, caplog):
        movement = MovementIntentController(NullSender(), dispatch=lambda coro: coro.close())
        manager = InputManager(movement, KeyBindings(move_up=["not-a-key", "i"]))

        assert manager.key_map[pygame.K_i] == MovementKey.UP
        assert "Unknown key binding" in caplog.text


class TestProcessEvent:
    """Tests for KEYDOWN/KEYUP/focus routing."""

    def test_press_and_release(self, input_manager, dispatched):
        assert input_manager.process_event(_key(pygame.KEYDOWN, pygame.K_UP))
        assert input_manager.process_event(_key(pygame.KEYUP, pygame.K_UP))

        assert dispatched == ["move", "stop"]

    def test_wasd_and_arrow_for_same_direction(self, input_manager, dispatched):
        """Two physical keys for one direction count as one logical key."""
        input_manager.process_event(_key(pygame.KEYDOWN, pygame.K_LEFT))
        input_manager.process_event(_key(pygame.KEYDOWN, pygame.K_a))
        input_manager.process_event(_key(pygame.KEYUP, pygame.K_a))

        assert dispatched == ["move", "stop"]

    def test_unbound_key_ignored(self, input_manager, dispatched):
        assert input_manager.process_event(_key(pygame.KEYDOWN, pygame.K_SPACE)) is False
        assert dispatched == []

    def test_repeat_flag_is_respected(self, input_manager, dispatched):
        input_manager.process_event(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_d, repeat=True))

        assert dispatched == []

    def test_focus_lost_releases_keys(self, input_manager, dispatched):
        input_manager.process_event(_key(pygame.KEYDOWN, pygame.K_DOWN))
        input_manager.process_event(_key(pygame.KEYDOWN, pygame.K_RIGHT))

        assert input_manager.process_event(pygame.event.Event(pygame.WINDOWFOCUSLOST))

        assert dispatched == ["move", "move", "stop"]
        assert not input_manager.movement.is_moving
