"""WebSocket-backed realtime connection with a non-blocking outbound queue."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from starlette.websockets import WebSocketDisconnect

from memoryscape.domain.models.base import new_id, utc_now

if TYPE_CHECKING:
    from starlette.websockets import WebSocket

    from memoryscape.domain.models.domain_event import DomainEvent

logger = logging.getLogger(__name__)


class WebSocketConnection:
    """One accepted WebSocket owned by an authenticated user.

    ``send_event`` only enqueues; a writer task drains the queue in FIFO order,
    so dispatching never waits on a slow client. A full queue drops the event.
    """

    def __init__(self, websocket: WebSocket, user_id: str, max_queue_size: int = 256) -> None:
        self.connection_id = new_id()
        self.user_id = user_id
        self.created_at = utc_now()
        self._websocket = websocket
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=max_queue_size)
        self._writer: asyncio.Task | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the writer task. Must be called from the event loop after accept."""
        if self._writer is not None and not self._writer.done():
            return
        self._writer = asyncio.create_task(
            self._drain(), name=f"ws-writer-{self.connection_id}"
        )

    def send_event(self, event: DomainEvent) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                f"Outbound queue full for connection {self.connection_id} "
                f"(user {self.user_id}), dropping '{event.name}'"
            )
            return False
        return True

    async def close(self, code: int = 1000) -> None:
        if self._closed:
            return
        self._closed = True
        if self._writer is not None and not self._writer.done():
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
        try:
            await self._websocket.close(code=code)
        except (RuntimeError, WebSocketDisconnect) as e:
            # Already closed by the peer or the server.
            logger.debug(f"Connection {self.connection_id} already closed: {e}")

    async def _drain(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._websocket.send_json(event.to_message())
            except Exception as e:
                logger.info(f"Writer for connection {self.connection_id} stopped: {e}")
                self._closed = True
                return
