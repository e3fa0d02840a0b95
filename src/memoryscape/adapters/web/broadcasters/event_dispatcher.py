"""Fan-out of domain events to live realtime connections."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from memoryscape.domain.models.domain_event import DomainEvent

if TYPE_CHECKING:
    from memoryscape.domain.contracts.connection import ConnectionProtocol
    from memoryscape.domain.contracts.presence_registry import PresenceDirectoryProtocol

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Delivers events to rooms, users or everyone via the presence directory.

    Delivery only enqueues onto each connection's outbound queue, so it never
    blocks and a failing connection never affects other recipients.
    """

    def __init__(self, directory: PresenceDirectoryProtocol) -> None:
        """Initialize the dispatcher.

        Args:
            directory: Source of connections and room memberships.
        """
        self._directory = directory

    def to_room(
        self,
        capsule_id: str,
        event: str,
        payload: dict[str, Any],
        exclude_user_id: str | None = None,
    ) -> int:
        member_ids = self._directory.room_member_ids(capsule_id)
        recipients = [
            connection
            for user_id in sorted(member_ids)
            if user_id != exclude_user_id
            for connection in self._directory.connections_of(user_id)
        ]
        return self._deliver(recipients, DomainEvent(event, payload))

    def to_all(
        self, event: str, payload: dict[str, Any], exclude_user_id: str | None = None
    ) -> int:
        recipients = [
            connection
            for connection in self._directory.all_connections()
            if connection.user_id != exclude_user_id
        ]
        return self._deliver(recipients, DomainEvent(event, payload))

    def to_user(self, user_id: str, event: str, payload: dict[str, Any]) -> int:
        return self._deliver(self._directory.connections_of(user_id), DomainEvent(event, payload))

    def to_connection(
        self, connection: ConnectionProtocol, event: str, payload: dict[str, Any]
    ) -> bool:
        return self._deliver([connection], DomainEvent(event, payload)) == 1

    def _deliver(self, connections: list[ConnectionProtocol], event: DomainEvent) -> int:
        delivered = 0
        for connection in connections:
            try:
                accepted = connection.send_event(event)
            except Exception as e:
                logger.warning(
                    f"Failed to deliver '{event.name}' to connection "
                    f"{connection.connection_id}: {e}",
                    exc_info=True,
                )
                continue
            if accepted:
                delivered += 1
            else:
                logger.debug(
                    f"Connection {connection.connection_id} dropped '{event.name}' (closed or saturated)"
                )
        if connections:
            logger.debug(f"Dispatched '{event.name}' to {delivered}/{len(connections)} connections")
        return delivered
