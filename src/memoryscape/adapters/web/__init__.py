"""Web adapter: HTTP API, realtime WebSocket endpoint and presence tracking."""

from memoryscape.adapters.web.app import MemoryscapeWebAdapter, create_app

__all__ = ["MemoryscapeWebAdapter", "create_app"]
