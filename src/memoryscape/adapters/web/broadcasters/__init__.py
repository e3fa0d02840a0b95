"""Broadcasters for realtime updates."""

from memoryscape.adapters.web.broadcasters.event_dispatcher import EventDispatcher

__all__ = ["EventDispatcher"]
