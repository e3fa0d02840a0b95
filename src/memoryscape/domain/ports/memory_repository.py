"""Memory repository port."""

from typing import Protocol

from memoryscape.domain.models.memory_item import MemoryItem


class MemoryRepository(Protocol):
    """Port for persisting and querying memories."""

    async def get(self, memory_id: str) -> MemoryItem | None:
        """Get a memory by id."""
        ...

    async def save(self, memory: MemoryItem) -> None:
        """Insert or replace a memory."""
        ...

    async def delete(self, memory_id: str) -> None:
        """Delete a memory."""
        ...

    async def find_by_capsule(
        self, capsule_id: str, memory_type: str | None = None, skip: int = 0, limit: int = 20
    ) -> list[MemoryItem]:
        """Memories of a capsule, pinned first, then newest first."""
        ...

    async def count_by_capsule(self, capsule_id: str, memory_type: str | None = None) -> int:
        """Count memories of a capsule."""
        ...

    async def count_by_author(self, user_id: str) -> int:
        """Count memories written by a user."""
        ...
