"""Protocol for delivering domain events to connected clients."""

from typing import Any, Protocol

from memoryscape.domain.contracts.connection import ConnectionProtocol


class EventDispatcherProtocol(Protocol):
    """Best-effort, at-most-once fan-out of events to live connections."""

    def to_room(
        self,
        capsule_id: str,
        event: str,
        payload: dict[str, Any],
        exclude_user_id: str | None = None,
    ) -> int:
        """Deliver to every connection of every member of a capsule room.

        Returns:
            Number of connections the event was handed to.
        """
        ...

    def to_all(
        self, event: str, payload: dict[str, Any], exclude_user_id: str | None = None
    ) -> int:
        """Deliver to every registered connection."""
        ...

    def to_user(self, user_id: str, event: str, payload: dict[str, Any]) -> int:
        """Deliver to every connection of a single user."""
        ...

    def to_connection(
        self, connection: ConnectionProtocol, event: str, payload: dict[str, Any]
    ) -> bool:
        """Deliver to one connection only (acks and errors)."""
        ...
