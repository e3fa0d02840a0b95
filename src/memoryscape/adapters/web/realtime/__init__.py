"""Realtime WebSocket transport and event protocol."""

from memoryscape.adapters.web.realtime.event_protocol import EventProtocol
from memoryscape.adapters.web.realtime.socket_handler import SocketHandler
from memoryscape.adapters.web.realtime.websocket_connection import WebSocketConnection

__all__ = ["EventProtocol", "SocketHandler", "WebSocketConnection"]
