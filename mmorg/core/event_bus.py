"""
Core event bus for internal client communication.

Provides a pub/sub system for decoupled component communication.
"""

from typing import Callable, Dict, List, Any, Optional
from enum import Enum, auto
import asyncio
import inspect
from dataclasses import dataclass, field

from ..logging_config import get_logger

logger = get_logger(__name__)


class EventType(Enum):
    """Internal client event types."""
    # Connection events
    CONNECTING = auto()
    CONNECTED = auto()
    DISCONNECTED = auto()
    RECONNECTING = auto()

    # Session events
    GAME_STARTED = auto()
    JOIN_FAILED = auto()

    # World events
    PLAYER_JOINED = auto()
    PLAYER_LEFT = auto()
    PLAYERS_MOVED = auto()

    # Rendering events
    REDRAW_REQUESTED = auto()


@dataclass
class Event:
    """Event data structure."""
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None


class EventBus:
    """Central event bus for client communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[Callable]] = {}
        self._once_handlers: Dict[EventType, List[Callable]] = {}

    def subscribe(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)

    def subscribe_once(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Subscribe a handler that will be called only once."""
        if event_type not in self._once_handlers:
            self._once_handlers[event_type] = []
        self._once_handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Unsubscribe a handler from an event type."""
        if event_type in self._handlers and handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

        if event_type in self._once_handlers and handler in self._once_handlers[event_type]:
            self._once_handlers[event_type].remove(handler)

    def emit(self, event_type: EventType, data: Optional[Dict[str, Any]] = None, source: Optional[str] = None) -> None:
        """
        Emit an event to all subscribers.

        Handlers run synchronously in subscription order. Async handlers are
        scheduled as tasks on the running event loop.
        """
        event = Event(type=event_type, data=data or {}, source=source)

        for handler in list(self._handlers.get(event_type, [])):
            self._dispatch(handler, event)

        once_handlers = self._once_handlers.pop(event_type, [])
        for handler in once_handlers:
            self._dispatch(handler, event)

    def _dispatch(self, handler: Callable, event: Event) -> None:
        try:
            if inspect.iscoroutinefunction(handler):
                try:
                    loop = asyncio.get_running_loop()
                except RuntimeError:
                    logger.warning(f"Async handler {handler} registered but no event loop running")
                    return
                loop.create_task(handler(event))
            else:
                handler(event)
        except Exception as e:
            logger.error(f"Error in event handler for {event.type.name}: {e}", exc_info=True)

    def clear(self, event_type: Optional[EventType] = None) -> None:
        """Clear all handlers for an event type, or all handlers if None."""
        if event_type:
            self._handlers.pop(event_type, None)
            self._once_handlers.pop(event_type, None)
        else:
            self._handlers.clear()
            self._once_handlers.clear()


# Singleton event bus instance
_event_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get the singleton event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the event bus (useful for testing)."""
    global _event_bus
    _event_bus = None
