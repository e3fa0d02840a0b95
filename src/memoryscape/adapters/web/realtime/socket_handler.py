"""WebSocket endpoint: handshake authentication and the per-connection receive loop."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from starlette.websockets import WebSocket

from memoryscape.adapters.web.realtime.websocket_connection import WebSocketConnection
from memoryscape.domain.models.errors import MemoryscapeError, Unauthorized

if TYPE_CHECKING:
    from memoryscape.adapters.web.presence import PresenceRegistry
    from memoryscape.adapters.web.realtime.event_protocol import EventProtocol
    from memoryscape.domain.models.user import UserProfile

logger = logging.getLogger(__name__)

UNAUTHORIZED_CLOSE_CODE = 4401


def extract_token(websocket: WebSocket) -> str | None:
    """Read the bearer token from the ``token`` query parameter or the Authorization header."""
    token = websocket.query_params.get("token")
    if token:
        return token
    authorization = websocket.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


class SocketHandler:
    """Owns the lifecycle of every realtime connection."""

    def __init__(
        self,
        registry: PresenceRegistry,
        protocol: EventProtocol,
        authenticate: Callable[[str], Awaitable[UserProfile]],
        max_queue_size: int = 256,
    ) -> None:
        """Initialize the socket handler.

        Args:
            registry: Presence registry connections are registered with.
            protocol: Handler for inbound client events.
            authenticate: Resolves a bearer token to a user profile, raising on failure.
            max_queue_size: Outbound queue size per connection.
        """
        self._registry = registry
        self._protocol = protocol
        self._authenticate = authenticate
        self._max_queue_size = max_queue_size

    async def endpoint(self, websocket: WebSocket) -> None:
        """Starlette WebSocket endpoint."""
        profile = await self._handshake(websocket)
        if profile is None:
            await websocket.close(code=UNAUTHORIZED_CLOSE_CODE)
            return

        await websocket.accept()
        connection = WebSocketConnection(websocket, profile.id, self._max_queue_size)
        connection.start()
        self._registry.register(profile, connection)
        logger.info(f"User {profile.name} connected: {connection.connection_id}")

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                frame = message.get("text")
                if frame is None:
                    frame = message.get("bytes")
                if frame is not None:
                    await self._protocol.handle_text(connection, frame)
        finally:
            self._registry.disconnect(connection)
            await connection.close()
            logger.info(f"User {profile.name} disconnected: {connection.connection_id}")

    async def _handshake(self, websocket: WebSocket) -> UserProfile | None:
        token = extract_token(websocket)
        try:
            if not token:
                raise Unauthorized("Authentication error")
            return await self._authenticate(token)
        except MemoryscapeError as e:
            client = websocket.client.host if websocket.client else "unknown"
            logger.info(f"Rejected realtime handshake from {client}: {e.message}")
            return None
