"""Tests for the queue-backed WebSocket connection."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from memoryscape.adapters.web.realtime import WebSocketConnection
from memoryscape.domain.models.domain_event import DomainEvent


def make_websocket() -> MagicMock:
    websocket = MagicMock()
    websocket.send_json = AsyncMock()
    websocket.close = AsyncMock()
    return websocket


@pytest.mark.asyncio
async def test_events_are_written_in_order() -> None:
    """Given queued events, when the writer drains, then they are sent in FIFO order."""
    websocket = make_websocket()
    connection = WebSocketConnection(websocket, "alice")
    connection.start()

    connection.send_event(DomainEvent("first", {"n": 1}))
    connection.send_event(DomainEvent("second", {"n": 2}))
    await asyncio.sleep(0.01)

    sent = [call.args[0] for call in websocket.send_json.await_args_list]
    assert sent == [
        {"event": "first", "data": {"n": 1}},
        {"event": "second", "data": {"n": 2}},
    ]
    await connection.close()


@pytest.mark.asyncio
async def test_full_queue_drops_event_without_blocking() -> None:
    """Given a saturated queue, when sending, then the event is rejected immediately."""
    connection = WebSocketConnection(make_websocket(), "alice", max_queue_size=1)

    assert connection.send_event(DomainEvent("first")) is True
    assert connection.send_event(DomainEvent("second")) is False


@pytest.mark.asyncio
async def test_close_is_idempotent_and_rejects_further_events() -> None:
    """Given an open connection, when closed twice, then the socket is closed once."""
    websocket = make_websocket()
    connection = WebSocketConnection(websocket, "alice")
    connection.start()

    await connection.close(4000)
    await connection.close(4000)

    websocket.close.assert_awaited_once_with(code=4000)
    assert connection.closed
    assert connection.send_event(DomainEvent("late")) is False


@pytest.mark.asyncio
async def test_close_tolerates_already_closed_socket() -> None:
    """Given a socket the peer already closed, when closing, then no error escapes."""
    websocket = make_websocket()
    websocket.close.side_effect = RuntimeError("Cannot call send once a close message has been sent")
    connection = WebSocketConnection(websocket, "alice")

    await connection.close()

    assert connection.closed


@pytest.mark.asyncio
async def test_write_failure_marks_connection_closed() -> None:
    """Given a socket whose send fails, when an event is written, then the connection stops accepting."""
    websocket = make_websocket()
    websocket.send_json.side_effect = ConnectionResetError("peer gone")
    connection = WebSocketConnection(websocket, "alice")
    connection.start()

    connection.send_event(DomainEvent("first"))
    await asyncio.sleep(0.01)

    assert connection.closed
    assert connection.send_event(DomainEvent("second")) is False
