"""Presence and capsule room registry for realtime connections."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from memoryscape.adapters.web.broadcasters.event_dispatcher import EventDispatcher
from memoryscape.domain.contracts.connection import ConnectionProtocol
from memoryscape.domain.contracts.event_dispatcher import EventDispatcherProtocol
from memoryscape.domain.models.base import utc_now
from memoryscape.domain.models.domain_event import OutboundEvent
from memoryscape.domain.models.errors import (
    AccessDenied,
    NotFound,
    TransientStoreFailure,
    Unauthorized,
)
from memoryscape.domain.models.presence import ActiveIdentity, RoomSnapshot
from memoryscape.domain.models.user import UserProfile
from memoryscape.domain.ports.capsule_repository import CapsuleRepository

logger = logging.getLogger(__name__)


@dataclass
class _Identity:
    """Mutable registry record behind an ActiveIdentity snapshot."""

    profile: UserProfile
    connected_at: datetime
    last_active_at: datetime
    connections: dict[str, ConnectionProtocol] = field(default_factory=dict)
    rooms: set[str] = field(default_factory=set)

    def snapshot(self) -> ActiveIdentity:
        return ActiveIdentity(
            user_id=self.profile.id,
            user=self.profile,
            connected_at=self.connected_at,
            last_active_at=self.last_active_at,
            connection_count=len(self.connections),
            rooms=frozenset(self.rooms),
        )


class PresenceRegistry:
    """Tracks connected users, their connections and capsule room memberships.

    All mutations are synchronous; the only suspension points are the capsule
    lookups in ``join_room`` and ``join_all_rooms``. Membership checks and
    inserts never straddle an ``await``, so a join is announced at most once.
    """

    def __init__(
        self,
        capsules: CapsuleRepository,
        dispatcher: EventDispatcherProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the registry.

        Args:
            capsules: Repository used to authorize room joins.
            dispatcher: Event dispatcher. Defaults to one reading from this registry.
            clock: Time source, injectable for tests.
        """
        self._capsules = capsules
        self._clock = clock
        self._identities: dict[str, _Identity] = {}
        self._rooms: dict[str, set[str]] = {}
        self.dispatcher: EventDispatcherProtocol = dispatcher or EventDispatcher(self)

    # Directory (read side used by the dispatcher)

    def connections_of(self, user_id: str) -> list[ConnectionProtocol]:
        identity = self._identities.get(user_id)
        if identity is None:
            return []
        return list(identity.connections.values())

    def room_member_ids(self, capsule_id: str) -> frozenset[str]:
        return frozenset(self._rooms.get(capsule_id, ()))

    def all_connections(self) -> list[ConnectionProtocol]:
        return [
            connection
            for identity in self._identities.values()
            for connection in identity.connections.values()
        ]

    # Connection lifecycle

    def register(self, profile: UserProfile, connection: ConnectionProtocol) -> ActiveIdentity:
        """Register an authenticated connection.

        The first connection of a user creates the identity and announces
        ``user_online`` to everybody else. Further connections of the same user
        are attached to the existing identity silently.
        """
        now = self._clock()
        identity = self._identities.get(profile.id)
        if identity is not None:
            identity.connections[connection.connection_id] = connection
            identity.last_active_at = now
            logger.info(
                f"Presence: user {profile.id} opened connection {connection.connection_id} "
                f"({len(identity.connections)} live)"
            )
            return identity.snapshot()

        identity = _Identity(profile=profile, connected_at=now, last_active_at=now)
        identity.connections[connection.connection_id] = connection
        self._identities[profile.id] = identity
        logger.info(f"Presence: user {profile.id} online. Total users: {len(self._identities)}")
        self.dispatcher.to_all(
            OutboundEvent.USER_ONLINE,
            self._user_payload(identity),
            exclude_user_id=profile.id,
        )
        return identity.snapshot()

    def disconnect(self, connection: ConnectionProtocol) -> None:
        """Remove one connection; unregister the user when it was their last one."""
        identity = self._identities.get(connection.user_id)
        if identity is None or connection.connection_id not in identity.connections:
            return
        del identity.connections[connection.connection_id]
        if not identity.connections:
            self.unregister(connection.user_id)

    def unregister(self, user_id: str) -> list[ConnectionProtocol]:
        """Remove a user from the registry and from every room.

        Remaining room members receive ``user_left_capsule``; everybody receives
        ``user_offline``. Unknown users are ignored.

        Returns:
            The connections the user still had; the caller decides whether to close them.
        """
        identity = self._identities.pop(user_id, None)
        if identity is None:
            return []

        for capsule_id in sorted(identity.rooms):
            members = self._rooms.get(capsule_id)
            if members is None:
                continue
            members.discard(user_id)
            if not members:
                del self._rooms[capsule_id]
                continue
            self.dispatcher.to_room(
                capsule_id,
                OutboundEvent.USER_LEFT_CAPSULE,
                self._room_payload(identity, capsule_id),
            )

        self.dispatcher.to_all(OutboundEvent.USER_OFFLINE, self._user_payload(identity))
        logger.info(f"Presence: user {user_id} offline. Total users: {len(self._identities)}")
        return list(identity.connections.values())

    def reset(self) -> list[ConnectionProtocol]:
        """Drop every identity and room without announcing anything.

        Returns:
            Every connection that was registered.
        """
        connections = self.all_connections()
        self._identities.clear()
        self._rooms.clear()
        logger.info(f"Presence: registry reset, released {len(connections)} connections")
        return connections

    # Rooms

    async def join_room(self, user_id: str, capsule_id: str) -> RoomSnapshot:
        """Join a capsule room after verifying the user owns or contributes to it.

        Raises:
            Unauthorized: If the user is not registered.
            NotFound: If the capsule does not exist.
            AccessDenied: If the user is neither owner nor contributor.
            TransientStoreFailure: If the capsule lookup failed.
        """
        self._require_identity(user_id)
        try:
            capsule = await self._capsules.get(capsule_id)
        except Exception as e:
            logger.error(f"Capsule lookup failed while joining {capsule_id}: {e}", exc_info=True)
            raise TransientStoreFailure("Failed to join capsule") from e

        if capsule is None:
            raise NotFound("Capsule not found")
        if not capsule.is_member(user_id):
            raise AccessDenied("Access denied")

        # The user may have disconnected while the lookup was pending.
        identity = self._require_identity(user_id)
        self._add_member(identity, capsule_id)
        return RoomSnapshot(capsule_id=capsule_id, active_users=self.active_members_of(capsule_id))

    async def join_all_rooms(self, user_id: str) -> int:
        """Join every capsule room the user owns or contributes to.

        Returns:
            Number of capsules the user belongs to. Rooms joined earlier are
            counted but not announced again.
        """
        self._require_identity(user_id)
        try:
            capsules = await self._capsules.find_for_member(user_id, active_only=False)
        except Exception as e:
            logger.error(f"Capsule lookup failed while joining rooms of {user_id}: {e}", exc_info=True)
            raise TransientStoreFailure("Failed to join capsules") from e

        identity = self._require_identity(user_id)
        for capsule in capsules:
            self._add_member(identity, capsule.id)
        logger.info(f"Presence: user {user_id} joined {len(capsules)} capsule rooms")
        return len(capsules)

    def leave_room(self, user_id: str, capsule_id: str) -> None:
        """Leave a capsule room. Leaving a room the user is not in is a no-op."""
        members = self._rooms.get(capsule_id)
        identity = self._identities.get(user_id)
        if members is None or user_id not in members:
            return
        members.discard(user_id)
        if identity is not None:
            identity.rooms.discard(capsule_id)
        if not members:
            del self._rooms[capsule_id]
            return
        if identity is not None:
            self.dispatcher.to_room(
                capsule_id,
                OutboundEvent.USER_LEFT_CAPSULE,
                self._room_payload(identity, capsule_id),
            )

    def touch(self, user_id: str) -> None:
        """Record activity so the sweep keeps the user."""
        identity = self._identities.get(user_id)
        if identity is not None:
            identity.last_active_at = self._clock()

    def evict_stale(self, stale_after: timedelta) -> dict[str, list[ConnectionProtocol]]:
        """Unregister every user idle for longer than ``stale_after``.

        Returns:
            Mapping of evicted user id to the connections that must be closed.
        """
        cutoff = self._clock() - stale_after
        stale_ids = [
            user_id
            for user_id, identity in self._identities.items()
            if identity.last_active_at < cutoff
        ]
        evicted = {user_id: self.unregister(user_id) for user_id in stale_ids}
        if evicted:
            logger.info(
                f"Presence sweep: evicted {len(evicted)} idle users. "
                f"Remaining: {len(self._identities)}"
            )
        return evicted

    # Queries

    def is_online(self, user_id: str) -> bool:
        return user_id in self._identities

    def get(self, user_id: str) -> ActiveIdentity | None:
        identity = self._identities.get(user_id)
        return identity.snapshot() if identity is not None else None

    def active_members_of(self, capsule_id: str) -> list[ActiveIdentity]:
        """Connected members of a room, earliest connection first."""
        identities = [
            self._identities[user_id]
            for user_id in self._rooms.get(capsule_id, ())
            if user_id in self._identities
        ]
        identities.sort(key=lambda identity: (identity.connected_at, identity.profile.id))
        return [identity.snapshot() for identity in identities]

    def all_active(self) -> list[ActiveIdentity]:
        identities = sorted(
            self._identities.values(), key=lambda identity: (identity.connected_at, identity.profile.id)
        )
        return [identity.snapshot() for identity in identities]

    def rooms_of(self, user_id: str) -> frozenset[str]:
        identity = self._identities.get(user_id)
        return frozenset(identity.rooms) if identity is not None else frozenset()

    def room_ids(self) -> list[str]:
        return list(self._rooms)

    def connection_count(self) -> int:
        return sum(len(identity.connections) for identity in self._identities.values())

    # Helpers

    def _require_identity(self, user_id: str) -> _Identity:
        identity = self._identities.get(user_id)
        if identity is None:
            raise Unauthorized("Not connected")
        return identity

    def _add_member(self, identity: _Identity, capsule_id: str) -> bool:
        """Add the user to a room and announce it when the membership is new."""
        user_id = identity.profile.id
        members = self._rooms.setdefault(capsule_id, set())
        if user_id in members:
            return False
        members.add(user_id)
        identity.rooms.add(capsule_id)
        self.dispatcher.to_room(
            capsule_id,
            OutboundEvent.USER_JOINED_CAPSULE,
            self._room_payload(identity, capsule_id),
            exclude_user_id=user_id,
        )
        return True

    @staticmethod
    def _user_payload(identity: _Identity) -> dict[str, Any]:
        return {"userId": identity.profile.id, "user": identity.profile.to_payload()}

    @classmethod
    def _room_payload(cls, identity: _Identity, capsule_id: str) -> dict[str, Any]:
        return {**cls._user_payload(identity), "capsuleId": capsule_id}
