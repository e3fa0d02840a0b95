"""In-memory repositories, used for development and tests."""

from datetime import datetime

from memoryscape.domain.models.analytics_event import AnalyticsEvent
from memoryscape.domain.models.capsule import Capsule, CapsuleType
from memoryscape.domain.models.memory_item import MemoryItem
from memoryscape.domain.models.user import User


def _matches(capsule: Capsule, search: str) -> bool:
    needle = search.lower()
    return (
        needle in capsule.title.lower()
        or needle in capsule.description.lower()
        or any(needle in tag for tag in capsule.tags)
    )


class InMemoryUserRepository:
    """User repository backed by a dict. Stored models are copied in and out."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    async def get(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def get_by_email(self, email: str) -> User | None:
        for user in self._users.values():
            if user.email == email:
                return user.model_copy(deep=True)
        return None

    async def save(self, user: User) -> None:
        self._users[user.id] = user.model_copy(deep=True)


class InMemoryCapsuleRepository:
    """Capsule repository backed by a dict."""

    def __init__(self) -> None:
        self._capsules: dict[str, Capsule] = {}

    async def get(self, capsule_id: str) -> Capsule | None:
        capsule = self._capsules.get(capsule_id)
        return capsule.model_copy(deep=True) if capsule else None

    async def save(self, capsule: Capsule) -> None:
        self._capsules[capsule.id] = capsule.model_copy(deep=True)

    def _for_member(self, user_id: str, active_only: bool) -> list[Capsule]:
        found = [
            c
            for c in self._capsules.values()
            if c.is_member(user_id) and (c.is_active or not active_only)
        ]
        found.sort(key=lambda c: c.stats.last_activity, reverse=True)
        return found

    async def find_for_member(
        self, user_id: str, skip: int = 0, limit: int | None = None, active_only: bool = True
    ) -> list[Capsule]:
        found = self._for_member(user_id, active_only)
        end = None if limit is None else skip + limit
        return [c.model_copy(deep=True) for c in found[skip:end]]

    async def count_for_member(self, user_id: str, active_only: bool = True) -> int:
        return len(self._for_member(user_id, active_only))

    def _public(self, search: str) -> list[Capsule]:
        found = [
            c
            for c in self._capsules.values()
            if c.type == CapsuleType.PUBLIC
            and c.is_active
            and c.settings.allow_public_discovery
            and (not search or _matches(c, search))
        ]
        found.sort(key=lambda c: c.stats.last_activity, reverse=True)
        return found

    async def find_public(self, search: str = "", skip: int = 0, limit: int = 12) -> list[Capsule]:
        return [c.model_copy(deep=True) for c in self._public(search)[skip : skip + limit]]

    async def count_public(self, search: str = "") -> int:
        return len(self._public(search))

    async def count_owned_by(self, user_id: str) -> int:
        return sum(1 for c in self._capsules.values() if c.owner_id == user_id)


class InMemoryMemoryRepository:
    """Memory repository backed by a dict."""

    def __init__(self) -> None:
        self._memories: dict[str, MemoryItem] = {}

    async def get(self, memory_id: str) -> MemoryItem | None:
        memory = self._memories.get(memory_id)
        return memory.model_copy(deep=True) if memory else None

    async def save(self, memory: MemoryItem) -> None:
        self._memories[memory.id] = memory.model_copy(deep=True)

    async def delete(self, memory_id: str) -> None:
        self._memories.pop(memory_id, None)

    def _by_capsule(self, capsule_id: str, memory_type: str | None) -> list[MemoryItem]:
        found = [
            m
            for m in self._memories.values()
            if m.capsule_id == capsule_id and (memory_type is None or m.type == memory_type)
        ]
        found.sort(key=lambda m: (m.is_pinned, m.created_at), reverse=True)
        return found

    async def find_by_capsule(
        self, capsule_id: str, memory_type: str | None = None, skip: int = 0, limit: int = 20
    ) -> list[MemoryItem]:
        found = self._by_capsule(capsule_id, memory_type)
        return [m.model_copy(deep=True) for m in found[skip : skip + limit]]

    async def count_by_capsule(self, capsule_id: str, memory_type: str | None = None) -> int:
        return len(self._by_capsule(capsule_id, memory_type))

    async def count_by_author(self, user_id: str) -> int:
        return sum(1 for m in self._memories.values() if m.author_id == user_id)


class InMemoryAnalyticsRepository:
    """Analytics repository backed by a list."""

    def __init__(self) -> None:
        self._events: list[AnalyticsEvent] = []

    async def record(self, event: AnalyticsEvent) -> None:
        self._events.append(event)

    async def find(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        event: str | None = None,
        user_id: str | None = None,
    ) -> list[AnalyticsEvent]:
        return [
            e
            for e in self._events
            if (start is None or e.timestamp >= start)
            and (end is None or e.timestamp < end)
            and (event is None or e.event == event)
            and (user_id is None or e.user_id == user_id)
        ]
