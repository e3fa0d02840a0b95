"""Presence registry contract (protocol)."""

from datetime import timedelta
from typing import Protocol

from memoryscape.domain.contracts.connection import ConnectionProtocol
from memoryscape.domain.models.presence import ActiveIdentity, RoomSnapshot
from memoryscape.domain.models.user import UserProfile


class PresenceDirectoryProtocol(Protocol):
    """Read side of the registry used by the dispatcher to resolve audiences."""

    def connections_of(self, user_id: str) -> list[ConnectionProtocol]:
        """Live connections of one user."""
        ...

    def room_member_ids(self, capsule_id: str) -> frozenset[str]:
        """User ids currently joined to a room."""
        ...

    def all_connections(self) -> list[ConnectionProtocol]:
        """Every live connection."""
        ...


class PresenceRegistryProtocol(PresenceDirectoryProtocol, Protocol):
    """Tracks connected identities and their capsule room memberships."""

    def register(self, profile: UserProfile, connection: ConnectionProtocol) -> ActiveIdentity:
        """Register an authenticated connection."""
        ...

    def disconnect(self, connection: ConnectionProtocol) -> None:
        """Remove one connection; unregisters the user when it was the last one."""
        ...

    def unregister(self, user_id: str) -> list[ConnectionProtocol]:
        """Remove a user, all their connections and room memberships."""
        ...

    async def join_room(self, user_id: str, capsule_id: str) -> RoomSnapshot:
        """Join a capsule room after checking membership in the store."""
        ...

    async def join_all_rooms(self, user_id: str) -> int:
        """Join every capsule room the user owns or contributes to."""
        ...

    def leave_room(self, user_id: str, capsule_id: str) -> None:
        """Leave a capsule room."""
        ...

    def touch(self, user_id: str) -> None:
        """Record activity for the staleness sweep."""
        ...

    def evict_stale(self, stale_after: timedelta) -> dict[str, list[ConnectionProtocol]]:
        """Unregister identities idle for longer than ``stale_after``."""
        ...

    def is_online(self, user_id: str) -> bool:
        """Whether the user has at least one registered connection."""
        ...

    def active_members_of(self, capsule_id: str) -> list[ActiveIdentity]:
        """Connected members of a room."""
        ...

    def all_active(self) -> list[ActiveIdentity]:
        """All connected users."""
        ...
