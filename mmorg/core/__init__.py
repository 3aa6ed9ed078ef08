"""Core systems for the client."""

from .event_bus import EventBus, EventType, Event, get_event_bus, reset_event_bus

__all__ = [
    "EventBus",
    "EventType",
    "Event",
    "get_event_bus",
    "reset_event_bus",
]
