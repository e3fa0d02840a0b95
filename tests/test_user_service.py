"""Tests for profile and statistics use cases."""

import pytest

from memoryscape.adapters.persistence import (
    InMemoryCapsuleRepository,
    InMemoryMemoryRepository,
    InMemoryUserRepository,
)
from memoryscape.application.services import UserService
from memoryscape.domain.models.capsule import ContributorRole
from memoryscape.domain.models.errors import NotFound
from memoryscape.domain.models.memory_item import MemoryItem, MemoryType
from tests.fakes import make_capsule, make_user


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def capsules() -> InMemoryCapsuleRepository:
    return InMemoryCapsuleRepository()


@pytest.fixture
def memories() -> InMemoryMemoryRepository:
    return InMemoryMemoryRepository()


@pytest.fixture
def service(
    users: InMemoryUserRepository,
    capsules: InMemoryCapsuleRepository,
    memories: InMemoryMemoryRepository,
) -> UserService:
    return UserService(users, capsules, memories)


@pytest.mark.asyncio
async def test_unknown_user_is_not_found(service: UserService) -> None:
    """Given no stored user, when fetching, then NotFound is raised."""
    with pytest.raises(NotFound):
        await service.get("missing")


@pytest.mark.asyncio
async def test_update_profile_only_touches_editable_fields(
    service: UserService, users: InMemoryUserRepository
) -> None:
    """Given profile changes with extra keys, when updating, then only name, bio and avatar change."""
    user = make_user("alice")
    await users.save(user)

    updated = await service.update_profile(
        "alice", {"name": "Alice B", "bio": "Collector", "email": "evil@example.com", "avatar_url": None}
    )

    assert updated.name == "Alice B"
    assert updated.bio == "Collector"
    assert updated.email == "alice@example.com"
    stored = await users.get("alice")
    assert stored is not None and stored.bio == "Collector"


@pytest.mark.asyncio
async def test_set_avatar(service: UserService, users: InMemoryUserRepository) -> None:
    """Given an uploaded avatar, when storing its URL, then the user carries it."""
    await users.save(make_user("alice"))

    user = await service.set_avatar("alice", "https://cdn.example.com/a.png")

    assert user.avatar_url == "https://cdn.example.com/a.png"


@pytest.mark.asyncio
async def test_stats_count_capsules_and_memories(
    service: UserService,
    users: InMemoryUserRepository,
    capsules: InMemoryCapsuleRepository,
    memories: InMemoryMemoryRepository,
) -> None:
    """Given owned, joined capsules and authored memories, when reading stats, then each is counted."""
    owned = make_capsule("alice")
    joined = make_capsule("bob", {"alice": ContributorRole.CONTRIBUTOR})
    await capsules.save(owned)
    await capsules.save(joined)
    for text in ("One", "Two"):
        await memories.save(
            MemoryItem(capsule_id=owned.id, author_id="alice", type=MemoryType.TEXT, text=text)
        )
    alice = make_user("alice")
    alice.created_capsule_ids = [owned.id]
    alice.joined_capsule_ids = [joined.id]
    await users.save(alice)

    stats = await service.stats("alice")

    assert stats == {"capsulesCreated": 1, "memoriesCreated": 2, "capsulesJoined": 1}


@pytest.mark.asyncio
async def test_public_profile_skips_deleted_capsules(
    service: UserService, users: InMemoryUserRepository, capsules: InMemoryCapsuleRepository
) -> None:
    """Given a profile referencing a missing capsule, when viewing it, then only existing ones are listed."""
    owned = make_capsule("alice", title="Road trip")
    await capsules.save(owned)
    alice = make_user("alice")
    alice.created_capsule_ids = [owned.id, "gone"]
    await users.save(alice)

    profile = await service.public_profile("alice")

    assert [c["title"] for c in profile["createdCapsules"]] == ["Road trip"]
    assert profile["joinedCapsules"] == []
    assert "email" not in profile
