"""Capsule repository port."""

from typing import Protocol

from memoryscape.domain.models.capsule import Capsule


class CapsuleRepository(Protocol):
    """Port for persisting and querying capsules."""

    async def get(self, capsule_id: str) -> Capsule | None:
        """Get a capsule by id."""
        ...

    async def save(self, capsule: Capsule) -> None:
        """Insert or replace a capsule."""
        ...

    async def find_for_member(
        self, user_id: str, skip: int = 0, limit: int | None = None, active_only: bool = True
    ) -> list[Capsule]:
        """Capsules the user owns or contributes to, most recently active first."""
        ...

    async def count_for_member(self, user_id: str, active_only: bool = True) -> int:
        """Count capsules the user owns or contributes to."""
        ...

    async def find_public(self, search: str = "", skip: int = 0, limit: int = 12) -> list[Capsule]:
        """Discoverable public capsules matching an optional search term."""
        ...

    async def count_public(self, search: str = "") -> int:
        """Count discoverable public capsules."""
        ...

    async def count_owned_by(self, user_id: str) -> int:
        """Count capsules owned by a user."""
        ...
