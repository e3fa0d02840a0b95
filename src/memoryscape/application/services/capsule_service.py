"""Capsule use cases: listing, creation, updates and membership changes."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from memoryscape.application.services.permissions import load_capsule, require_role
from memoryscape.domain.contracts.event_dispatcher import EventDispatcherProtocol
from memoryscape.domain.contracts.presence_registry import PresenceRegistryProtocol
from memoryscape.domain.models.base import utc_now
from memoryscape.domain.models.capsule import (
    Capsule,
    CapsuleSettings,
    CapsuleType,
    Contributor,
    ContributorRole,
)
from memoryscape.domain.models.domain_event import OutboundEvent
from memoryscape.domain.models.errors import AccessDenied, Conflict, ValidationFailed
from memoryscape.domain.models.user import User
from memoryscape.domain.ports.capsule_repository import CapsuleRepository
from memoryscape.domain.ports.user_repository import UserRepository

logger = logging.getLogger(__name__)


def capsule_payload(capsule: Capsule, include_invite_code: bool = False) -> dict[str, Any]:
    """Wire form of a capsule; the invite code is only shown to capsule admins."""
    payload = capsule.to_payload()
    if not include_invite_code:
        payload.pop("inviteCode", None)
    return payload


class CapsuleService:
    """Capsule use cases. Every committed mutation is broadcast to the affected audience."""

    def __init__(
        self,
        capsules: CapsuleRepository,
        users: UserRepository,
        dispatcher: EventDispatcherProtocol,
        presence: PresenceRegistryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the service.

        Args:
            capsules: Capsule repository.
            users: User repository, for created/joined capsule back-references.
            dispatcher: Realtime event dispatcher.
            presence: Presence registry; members who leave a capsule are removed from its room.
            clock: Time source, injectable for tests.
        """
        self._capsules = capsules
        self._users = users
        self._dispatcher = dispatcher
        self._presence = presence
        self._clock = clock

    async def list_for_member(self, user_id: str, skip: int, limit: int) -> tuple[list[Capsule], int]:
        items = await self._capsules.find_for_member(user_id, skip=skip, limit=limit)
        total = await self._capsules.count_for_member(user_id)
        return items, total

    async def explore(self, search: str, skip: int, limit: int) -> tuple[list[Capsule], int]:
        items = await self._capsules.find_public(search, skip=skip, limit=limit)
        total = await self._capsules.count_public(search)
        return items, total

    async def create(
        self,
        user: User,
        title: str,
        description: str = "",
        type: CapsuleType = CapsuleType.PRIVATE,
        release_date: datetime | None = None,
        theme: str | None = None,
        tags: list[str] | None = None,
    ) -> Capsule:
        """Create a capsule owned by ``user``, who is also listed as its first admin."""
        if type == CapsuleType.TIMED:
            if release_date is None:
                raise ValidationFailed("Release date is required for timed capsules")
            if release_date <= self._clock():
                raise ValidationFailed("Release date must be in the future")
        else:
            release_date = None

        capsule = Capsule(
            title=title,
            description=description,
            type=type,
            owner_id=user.id,
            contributors=[Contributor(user_id=user.id, role=ContributorRole.ADMIN)],
            release_date=release_date,
            theme=theme or "default",
            tags=tags or [],
        )
        await self._capsules.save(capsule)
        logger.info(f"User {user.id} created capsule {capsule.id}")

        # The capsule is committed, so it is announced even if the user update fails.
        try:
            user.created_capsule_ids = [*user.created_capsule_ids, capsule.id]
            await self._users.save(user)
        finally:
            self._dispatcher.to_all(
                OutboundEvent.CAPSULE_CREATED,
                {"capsule": capsule_payload(capsule), "creator": user.profile().to_payload()},
                exclude_user_id=user.id,
            )
        return capsule

    async def get(self, user_id: str, capsule_id: str) -> tuple[Capsule, ContributorRole]:
        """Load a capsule the user may view.

        Unreleased timed capsules are only visible to their owner and admins.
        """
        capsule = await load_capsule(self._capsules, capsule_id)
        role = require_role(capsule, user_id, ContributorRole.VIEWER)
        if not capsule.is_released(self._clock()) and role not in (
            ContributorRole.OWNER,
            ContributorRole.ADMIN,
        ):
            raise AccessDenied("This capsule is not yet available")
        return capsule, role

    async def require_member(self, user_id: str, capsule_id: str) -> Capsule:
        """Load a capsule, raising unless the user owns or contributes to it."""
        capsule = await load_capsule(self._capsules, capsule_id)
        require_role(capsule, user_id, ContributorRole.VIEWER)
        return capsule

    async def update(self, user: User, capsule_id: str, changes: dict[str, Any]) -> Capsule:
        """Apply title, description, theme, tags and settings changes (admin or owner)."""
        capsule = await load_capsule(self._capsules, capsule_id)
        require_role(capsule, user.id, ContributorRole.ADMIN)

        if changes.get("title"):
            capsule.title = changes["title"]
        if changes.get("description") is not None:
            capsule.description = changes["description"]
        if changes.get("theme"):
            capsule.theme = changes["theme"]
        if changes.get("tags") is not None:
            capsule.tags = changes["tags"]
        if changes.get("settings"):
            merged = {**capsule.settings.model_dump(), **changes["settings"]}
            capsule.settings = CapsuleSettings.model_validate(merged)
        if changes.get("cover_image") is not None:
            capsule.cover_image = changes["cover_image"]
        capsule.refresh_stats()
        await self._capsules.save(capsule)

        self._dispatcher.to_room(
            capsule.id,
            OutboundEvent.CAPSULE_UPDATED,
            {"capsule": capsule_payload(capsule), "updatedBy": user.profile().to_payload()},
            exclude_user_id=user.id,
        )
        return capsule

    async def join(self, user: User, capsule_id: str, invite_code: str | None) -> Capsule:
        """Join a capsule as contributor. Private capsules need the invite code."""
        capsule = await load_capsule(self._capsules, capsule_id)
        if capsule.type == CapsuleType.PRIVATE and capsule.invite_code != invite_code:
            raise ValidationFailed("Invalid invite code")
        if capsule.is_member(user.id):
            raise Conflict("You are already a member of this capsule")

        capsule.add_contributor(user.id, ContributorRole.CONTRIBUTOR)
        await self._capsules.save(capsule)
        logger.info(f"User {user.id} joined capsule {capsule.id}")

        try:
            user.joined_capsule_ids = [*user.joined_capsule_ids, capsule.id]
            await self._users.save(user)
        finally:
            self._dispatcher.to_room(
                capsule.id,
                OutboundEvent.MEMBER_JOINED,
                {"user": user.profile().to_payload(), "capsule": capsule.id},
                exclude_user_id=user.id,
            )
        return capsule

    async def leave(self, user: User, capsule_id: str) -> None:
        """Leave a capsule. The owner cannot leave their own capsule."""
        capsule = await load_capsule(self._capsules, capsule_id)
        role = require_role(capsule, user.id, ContributorRole.VIEWER)
        if role == ContributorRole.OWNER:
            raise ValidationFailed(
                "Capsule owner cannot leave. Transfer ownership or delete the capsule instead."
            )

        capsule.remove_contributor(user.id)
        await self._capsules.save(capsule)
        logger.info(f"User {user.id} left capsule {capsule.id}")

        try:
            user.joined_capsule_ids = [cid for cid in user.joined_capsule_ids if cid != capsule.id]
            await self._users.save(user)
        finally:
            if self._presence is not None:
                self._presence.leave_room(user.id, capsule.id)
            self._dispatcher.to_room(
                capsule.id,
                OutboundEvent.MEMBER_LEFT,
                {"user": user.profile().to_payload(), "capsule": capsule.id},
                exclude_user_id=user.id,
            )
