"""Network layer for WebSocket communication."""

from .connection import ConnectionManager, ConnectionState
from .handlers import ProtocolReconciler
from .message_sender import MessageSender

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "MessageSender",
    "ProtocolReconciler",
]
