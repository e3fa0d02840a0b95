"""Realtime event names and the immutable event envelope."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class OutboundEvent(StrEnum):
    """Events the server pushes to connected clients."""

    NEW_MEMORY = "new_memory"
    MEMORY_UPDATED = "memory_updated"
    MEMORY_DELETED = "memory_deleted"
    MEMORY_REACTION = "memory_reaction"
    NEW_COMMENT = "new_comment"
    MEMORY_PINNED = "memory_pinned"
    USER_JOINED_CAPSULE = "user_joined_capsule"
    USER_LEFT_CAPSULE = "user_left_capsule"
    USER_TYPING = "user_typing"
    LIVE_REACTION = "live_reaction"
    USER_VIEWING_MEMORY = "user_viewing_memory"
    USER_ONLINE = "user_online"
    USER_OFFLINE = "user_offline"
    CAPSULE_CREATED = "capsule_created"
    CAPSULE_UPDATED = "capsule_updated"
    CAPSULE_JOINED = "capsule_joined"
    CAPSULES_JOINED = "capsules_joined"
    # Membership changes committed over HTTP (invite join / leave)
    MEMBER_JOINED = "user_joined"
    MEMBER_LEFT = "user_left"
    ERROR = "error"


class InboundEvent(StrEnum):
    """Events clients may send over the realtime connection."""

    JOIN_CAPSULES = "join_capsules"
    JOIN_CAPSULE = "join_capsule"
    LEAVE_CAPSULE = "leave_capsule"
    TYPING_START = "typing_start"
    TYPING_STOP = "typing_stop"
    LIVE_REACTION = "live_reaction"
    VIEWING_MEMORY = "viewing_memory"


@dataclass(frozen=True)
class DomainEvent:
    """A named payload delivered to a room, a user or everyone."""

    name: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        """Wire representation sent to clients."""
        return {"event": str(self.name), "data": self.payload}
