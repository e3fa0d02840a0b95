"""User profile and statistics use cases."""

from typing import Any

from memoryscape.domain.models.errors import NotFound
from memoryscape.domain.models.user import User
from memoryscape.domain.ports.capsule_repository import CapsuleRepository
from memoryscape.domain.ports.memory_repository import MemoryRepository
from memoryscape.domain.ports.user_repository import UserRepository

_EDITABLE_FIELDS = ("name", "bio", "avatar_url")


class UserService:
    """Reads and updates user accounts."""

    def __init__(
        self,
        users: UserRepository,
        capsules: CapsuleRepository,
        memories: MemoryRepository,
    ) -> None:
        self._users = users
        self._capsules = capsules
        self._memories = memories

    async def get(self, user_id: str) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def update_profile(self, user_id: str, changes: dict[str, Any]) -> User:
        """Apply name, bio and avatar changes; other keys are ignored."""
        user = await self.get(user_id)
        for field in _EDITABLE_FIELDS:
            if field in changes and changes[field] is not None:
                setattr(user, field, changes[field])
        await self._users.save(user)
        return user

    async def set_avatar(self, user_id: str, avatar_url: str) -> User:
        user = await self.get(user_id)
        user.avatar_url = avatar_url
        await self._users.save(user)
        return user

    async def stats(self, user_id: str) -> dict[str, int]:
        user = await self.get(user_id)
        return {
            "capsulesCreated": await self._capsules.count_owned_by(user_id),
            "memoriesCreated": await self._memories.count_by_author(user_id),
            "capsulesJoined": len(user.joined_capsule_ids),
        }

    async def public_profile(self, user_id: str) -> dict[str, Any]:
        """Public view of a user with summaries of the capsules they created and joined."""
        user = await self.get(user_id)
        created = [await self._capsules.get(cid) for cid in user.created_capsule_ids]
        joined = [await self._capsules.get(cid) for cid in user.joined_capsule_ids]

        def summarize(capsule: Any) -> dict[str, Any]:
            return {
                "id": capsule.id,
                "title": capsule.title,
                "description": capsule.description,
                "coverImage": capsule.cover_image,
                "createdAt": capsule.created_at.isoformat(),
            }

        return {
            "id": user.id,
            "name": user.name,
            "avatarUrl": user.avatar_url,
            "bio": user.bio,
            "createdAt": user.created_at.isoformat(),
            "createdCapsules": [summarize(c) for c in created if c is not None],
            "joinedCapsules": [summarize(c) for c in joined if c is not None],
        }
