"""Realtime connection contract (protocol)."""

from datetime import datetime
from typing import Protocol

from memoryscape.domain.models.domain_event import DomainEvent


class ConnectionProtocol(Protocol):
    """A live bidirectional channel to one authenticated client."""

    connection_id: str
    user_id: str
    created_at: datetime

    def send_event(self, event: DomainEvent) -> bool:
        """Enqueue an event for delivery without blocking.

        Returns:
            True if the event was accepted, False if the connection is closed or saturated.
        """
        ...

    async def close(self, code: int = 1000) -> None:
        """Close the channel. Idempotent."""
        ...
