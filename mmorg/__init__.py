"""Viewport renderer and state-synchronization client for the shared world server."""

__version__ = "1.0.0"
