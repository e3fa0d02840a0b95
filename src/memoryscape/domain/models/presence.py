"""Presence snapshot domain models."""

from datetime import datetime

from pydantic import ConfigDict

from memoryscape.domain.models.base import DomainModel
from memoryscape.domain.models.user import UserProfile


class ActiveIdentity(DomainModel):
    """Read-only view of a connected user.

    The profile is captured at connect time and never refreshed.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    user: UserProfile
    connected_at: datetime
    last_active_at: datetime
    connection_count: int
    rooms: frozenset[str] = frozenset()


class RoomSnapshot(DomainModel):
    """Members of a room at the moment a join completed."""

    model_config = ConfigDict(frozen=True)

    capsule_id: str
    active_users: list[ActiveIdentity]
