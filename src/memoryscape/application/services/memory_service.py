"""Memory use cases: CRUD, reactions, comments and pinning."""

import logging
from typing import Any

from memoryscape.application.services.permissions import load_capsule, require_role
from memoryscape.domain.contracts.event_dispatcher import EventDispatcherProtocol
from memoryscape.domain.models.base import utc_now
from memoryscape.domain.models.capsule import Capsule, ContributorRole
from memoryscape.domain.models.domain_event import OutboundEvent
from memoryscape.domain.models.errors import AccessDenied, NotFound, ValidationFailed
from memoryscape.domain.models.memory_item import Comment, MemoryItem, Reaction
from memoryscape.domain.models.user import User
from memoryscape.domain.ports.capsule_repository import CapsuleRepository
from memoryscape.domain.ports.memory_repository import MemoryRepository

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 500
_CREATE_FIELDS = (
    "type",
    "title",
    "text",
    "media_url",
    "thumbnail_url",
    "media_metadata",
    "tags",
    "location",
)


class MemoryService:
    """Memory use cases. Mutations are broadcast to the capsule room after the write."""

    def __init__(
        self,
        memories: MemoryRepository,
        capsules: CapsuleRepository,
        dispatcher: EventDispatcherProtocol,
    ) -> None:
        self._memories = memories
        self._capsules = capsules
        self._dispatcher = dispatcher

    async def list_for_capsule(
        self,
        user_id: str,
        capsule_id: str,
        memory_type: str | None,
        skip: int,
        limit: int,
    ) -> tuple[list[MemoryItem], int]:
        """Memories of a capsule the user can view, pinned first then newest."""
        capsule = await load_capsule(self._capsules, capsule_id)
        require_role(capsule, user_id, ContributorRole.VIEWER)
        items = await self._memories.find_by_capsule(capsule_id, memory_type, skip=skip, limit=limit)
        total = await self._memories.count_by_capsule(capsule_id, memory_type)
        return items, total

    async def create(self, user: User, capsule_id: str, data: dict[str, Any]) -> MemoryItem:
        """Add a memory to a capsule (contributor or above)."""
        capsule = await load_capsule(self._capsules, capsule_id)
        require_role(capsule, user.id, ContributorRole.CONTRIBUTOR)

        fields = {key: data[key] for key in _CREATE_FIELDS if data.get(key) is not None}
        memory = MemoryItem(capsule_id=capsule.id, author_id=user.id, **fields)
        await self._memories.save(memory)
        logger.info(f"User {user.id} added memory {memory.id} to capsule {capsule.id}")

        # The memory is committed, so it is announced even if the capsule stats update fails.
        try:
            capsule.memory_ids = [*capsule.memory_ids, memory.id]
            capsule.refresh_stats()
            await self._capsules.save(capsule)
        finally:
            self._dispatcher.to_room(
                capsule.id,
                OutboundEvent.NEW_MEMORY,
                {"memory": memory.to_payload(), "capsule": capsule.id},
                exclude_user_id=user.id,
            )
        return memory

    async def get(self, user_id: str, memory_id: str) -> MemoryItem:
        memory, capsule = await self._load(memory_id)
        require_role(capsule, user_id, ContributorRole.VIEWER)
        return memory

    async def update(self, user: User, memory_id: str, changes: dict[str, Any]) -> MemoryItem:
        """Edit title, text and tags. Only the author may edit."""
        memory, capsule = await self._load(memory_id)
        if memory.author_id != user.id:
            raise AccessDenied("Access denied - you can only edit your own memories")

        updated = memory.model_copy(deep=True)
        if "title" in changes:
            updated.title = changes["title"]
        if "text" in changes:
            updated.text = changes["text"]
        if changes.get("tags") is not None:
            updated.tags = changes["tags"]
        # Re-run whole-model rules such as "text memories need text".
        memory = MemoryItem.model_validate(updated.model_dump())
        memory.updated_at = utc_now()
        await self._memories.save(memory)

        self._dispatcher.to_room(
            capsule.id,
            OutboundEvent.MEMORY_UPDATED,
            {"memory": memory.to_payload(), "updatedBy": user.profile().to_payload()},
            exclude_user_id=user.id,
        )
        return memory

    async def delete(self, user: User, memory_id: str) -> None:
        """Delete a memory. Allowed for its author and for capsule owners and admins."""
        memory, capsule = await self._load(memory_id)
        role = capsule.role_of(user.id)
        is_manager = role in (ContributorRole.OWNER, ContributorRole.ADMIN)
        if memory.author_id != user.id and not is_manager:
            raise AccessDenied("Access denied")

        await self._memories.delete(memory.id)
        logger.info(f"User {user.id} deleted memory {memory.id}")

        try:
            capsule.memory_ids = [mid for mid in capsule.memory_ids if mid != memory.id]
            capsule.refresh_stats()
            await self._capsules.save(capsule)
        finally:
            self._dispatcher.to_room(
                capsule.id,
                OutboundEvent.MEMORY_DELETED,
                {
                    "memoryId": memory.id,
                    "capsule": capsule.id,
                    "deletedBy": user.profile().to_payload(),
                },
                exclude_user_id=user.id,
            )

    async def react(self, user: User, memory_id: str, emoji: str) -> tuple[list[Reaction], str]:
        """Toggle a reaction.

        Returns:
            The memory's reactions after the change and "added" or "removed".
        """
        if not emoji or not emoji.strip():
            raise ValidationFailed("Emoji is required")
        memory, capsule = await self._load(memory_id)
        require_role(capsule, user.id, ContributorRole.VIEWER)
        if not capsule.settings.allow_reactions:
            raise AccessDenied("Reactions are disabled for this capsule")

        action = memory.toggle_reaction(user.id, emoji.strip())
        await self._memories.save(memory)

        self._dispatcher.to_room(
            capsule.id,
            OutboundEvent.MEMORY_REACTION,
            {
                "memoryId": memory.id,
                "reaction": {"user": user.profile().to_payload(), "emoji": emoji.strip()},
                "action": action,
            },
            exclude_user_id=user.id,
        )
        return memory.reactions, action

    async def comment(self, user: User, memory_id: str, text: str) -> Comment:
        """Add a top-level comment."""
        text = (text or "").strip()
        if not text or len(text) > MAX_COMMENT_LENGTH:
            raise ValidationFailed("Comment must be between 1 and 500 characters")
        memory, capsule = await self._load(memory_id)
        require_role(capsule, user.id, ContributorRole.VIEWER)
        if not capsule.settings.allow_comments:
            raise AccessDenied("Comments are disabled for this capsule")

        comment = memory.add_comment(user.id, text)
        await self._memories.save(memory)

        self._dispatcher.to_room(
            capsule.id,
            OutboundEvent.NEW_COMMENT,
            {
                "memoryId": memory.id,
                "comment": {**comment.to_payload(), "user": user.profile().to_payload()},
            },
            exclude_user_id=user.id,
        )
        return comment

    async def toggle_pin(self, user: User, memory_id: str) -> bool:
        """Pin or unpin a memory (capsule owner or admin)."""
        memory, capsule = await self._load(memory_id)
        require_role(capsule, user.id, ContributorRole.ADMIN)

        is_pinned = memory.toggle_pin()
        await self._memories.save(memory)

        self._dispatcher.to_room(
            capsule.id,
            OutboundEvent.MEMORY_PINNED,
            {"memoryId": memory.id, "isPinned": is_pinned, "pinnedBy": user.profile().to_payload()},
            exclude_user_id=user.id,
        )
        return is_pinned

    async def _load(self, memory_id: str) -> tuple[MemoryItem, Capsule]:
        memory = await self._memories.get(memory_id)
        if memory is None:
            raise NotFound("Memory not found")
        capsule = await load_capsule(self._capsules, memory.capsule_id)
        return memory, capsule
