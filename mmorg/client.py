"""
MMORG client: a live viewport onto a shared world.

Wires the connection, reconciler, renderer and input together and runs the
pygame frame loop on top of asyncio.
"""

import asyncio
import logging
from typing import Optional

import pygame

from .config import ClientConfig, get_config
from .core import Event, EventType, get_event_bus
from .game.movement import MovementIntentController
from .game.world_state import WorldState
from .input.input_manager import InputManager
from .logging_config import get_logger, log_with_context
from .network.connection import ConnectionManager
from .network.handlers import ProtocolReconciler
from .network.message_sender import MessageSender
from .rendering.camera import Camera
from .rendering.renderer import Renderer
from .rendering.sprite_manager import ImageHandle, SpriteManager

logger = get_logger(__name__)


class Client:
    """Main client: one window, one connection, one world."""

    def __init__(self, config: Optional[ClientConfig] = None):
        self.config = config or get_config()
        self.event_bus = get_event_bus()

        # Pygame setup
        pygame.init()
        flags = pygame.RESIZABLE if self.config.display.resizable else 0
        self.screen = pygame.display.set_mode(
            (self.config.display.width, self.config.display.height),
            flags,
        )
        pygame.display.set_caption(self.config.display.title)
        # Held keys are tracked explicitly, so no auto-repeat
        pygame.key.set_repeat()
        self.clock = pygame.time.Clock()

        # World and view
        self.world_state = WorldState()
        self.camera = Camera(
            self.screen.get_width(),
            self.screen.get_height(),
            self.config.world.width,
            self.config.world.height,
        )
        self.sprite_manager = SpriteManager()
        self.renderer = Renderer(self.screen, self.sprite_manager, avatar_size=self.config.world.avatar_size)

        # Network
        self.connection = ConnectionManager(
            self.config.server.url,
            reconnect_delay=self.config.server.reconnect_delay,
            event_bus=self.event_bus,
        )
        self.message_sender = MessageSender(self.connection)
        self.reconciler = ProtocolReconciler(
            self.world_state,
            self.camera,
            self.sprite_manager,
            event_bus=self.event_bus,
        )
        self.connection.set_handlers(
            on_open=self._on_connection_open,
            on_message=self.reconciler.handle_raw,
        )

        # Input
        self.movement = MovementIntentController(self.message_sender)
        self.input_manager = InputManager(self.movement, self.config.key_bindings)

        self._running = False
        self._connection_task: Optional[asyncio.Task] = None

        self._setup_event_handlers()

    def _setup_event_handlers(self) -> None:
        """Subscribe to events that affect the window."""
        self.event_bus.subscribe(EventType.REDRAW_REQUESTED, self._on_redraw_requested)
        self.event_bus.subscribe(EventType.JOIN_FAILED, self._on_join_failed)
        self.event_bus.subscribe(EventType.DISCONNECTED, self._on_disconnected)

    # =========================================================================
    # EVENT HANDLERS
    # =========================================================================

    async def _on_connection_open(self) -> None:
        """Ask to join as soon as the socket opens."""
        await self.message_sender.join_game(self.config.player.username)

    def _on_redraw_requested(self, event: Event) -> None:
        self.redraw()

    def _on_join_failed(self, event: Event) -> None:
        logger.error(f"Join rejected by server: {event.data.get('error')}")

    def _on_disconnected(self, event: Event) -> None:
        # The server forgets our movement with the socket
        self.movement.release_all()

    def _on_world_image_loaded(self, handle: ImageHandle) -> None:
        logger.info(f"World background loaded ({handle.surface.get_width()}x{handle.surface.get_height()})")
        self.redraw()

    # =========================================================================
    # RENDERING
    # =========================================================================

    def redraw(self) -> None:
        """Render the current world state and present it."""
        self.renderer.render(self.world_state, self.camera)
        pygame.display.flip()

    def _handle_resize(self, width: int, height: int) -> None:
        """Re-fit the viewport to a new window size and redraw."""
        self.screen = pygame.display.get_surface()
        self.camera.handle_resize(width, height)
        self.renderer.handle_resize(self.screen)
        self.camera.update(self.world_state.local_player)
        log_with_context(logger, logging.INFO, "Window resized", width=width, height=height)
        self.redraw()

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    def _safe_create_task(self, coro) -> asyncio.Task:
        """Create an async task with error logging callback."""
        task = asyncio.create_task(coro)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        """Log any exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error(f"Async task failed: {exc}", exc_info=exc)

    def _handle_event(self, event: pygame.event.Event) -> None:
        """Route one pygame event."""
        if event.type == pygame.QUIT:
            self._running = False
        elif event.type == pygame.VIDEORESIZE:
            self._handle_resize(event.w, event.h)
        elif event.type == pygame.WINDOWEXPOSED:
            self.redraw()
        else:
            self.input_manager.process_event(event)

    async def run(self) -> None:
        """Main client loop."""
        self._running = True
        logger.info(f"MMORG client starting, server {self.config.server.url}")

        world_image = self.sprite_manager.load_image(
            self.config.world.background,
            on_loaded=self._on_world_image_loaded,
        )
        self.renderer.set_world_image(world_image)

        self._connection_task = self._safe_create_task(self.connection.run())

        try:
            while self._running:
                self.clock.tick(self.config.display.fps)

                for event in pygame.event.get():
                    self._handle_event(event)
                    if not self._running:
                        break

                await asyncio.sleep(0)

        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        except Exception as e:
            logger.error(f"Error in main loop: {e}", exc_info=True)
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Close the connection, cancel image loads and quit pygame."""
        logger.info("Shutting down...")
        self._running = False

        await self.connection.close()
        if self._connection_task and not self._connection_task.done():
            self._connection_task.cancel()
            await asyncio.gather(self._connection_task, return_exceptions=True)

        await self.sprite_manager.close()
        self.event_bus.unsubscribe(EventType.REDRAW_REQUESTED, self._on_redraw_requested)
        self.event_bus.unsubscribe(EventType.JOIN_FAILED, self._on_join_failed)
        self.event_bus.unsubscribe(EventType.DISCONNECTED, self._on_disconnected)

        pygame.quit()
        logger.info("Client shutdown complete")


async def main(config: Optional[ClientConfig] = None) -> None:
    """Entry point."""
    client = Client(config)
    await client.run()
