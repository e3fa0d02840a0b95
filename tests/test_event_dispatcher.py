"""Tests for event fan-out to rooms, users and everyone."""

from unittest.mock import MagicMock

import pytest

from memoryscape.adapters.persistence import InMemoryCapsuleRepository
from memoryscape.adapters.web.presence import PresenceRegistry
from memoryscape.domain.models.capsule import ContributorRole
from tests.fakes import FakeConnection, make_capsule, make_profile


@pytest.fixture
def capsules() -> InMemoryCapsuleRepository:
    return InMemoryCapsuleRepository()


@pytest.fixture
def registry(capsules: InMemoryCapsuleRepository) -> PresenceRegistry:
    return PresenceRegistry(capsules)


@pytest.mark.asyncio
async def test_room_event_reaches_every_device_except_excluded_user(
    registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
) -> None:
    """Given members with several devices, when sending to the room, then all but the actor receive it."""
    capsule = make_capsule("alice", {"bob": ContributorRole.CONTRIBUTOR})
    await capsules.save(capsule)
    alice = FakeConnection("alice")
    bob_phone = FakeConnection("bob")
    bob_laptop = FakeConnection("bob")
    registry.register(make_profile("alice"), alice)
    registry.register(make_profile("bob"), bob_phone)
    registry.register(make_profile("bob"), bob_laptop)
    await registry.join_room("alice", capsule.id)
    await registry.join_room("bob", capsule.id)
    for connection in (alice, bob_phone, bob_laptop):
        connection.clear()

    delivered = registry.dispatcher.to_room(
        capsule.id, "memory_pinned", {"memoryId": "m1"}, exclude_user_id="alice"
    )

    assert delivered == 2
    assert alice.names() == []
    assert bob_phone.last("memory_pinned") == {"memoryId": "m1"}
    assert bob_laptop.last("memory_pinned") == {"memoryId": "m1"}


def test_room_event_skips_connected_users_outside_room(registry: PresenceRegistry) -> None:
    """Given a connected user outside the room, when sending to the room, then they get nothing."""
    outsider = FakeConnection("outsider")
    registry.register(make_profile("outsider"), outsider)

    delivered = registry.dispatcher.to_room("capsule-1", "new_memory", {})

    assert delivered == 0
    assert outsider.names() == []


def test_failing_connection_does_not_block_other_recipients(registry: PresenceRegistry) -> None:
    """Given one connection whose send raises, when broadcasting, then the others still receive it."""
    broken = MagicMock()
    broken.connection_id = "broken"
    broken.user_id = "broken-user"
    broken.send_event.side_effect = RuntimeError("socket gone")
    healthy = FakeConnection("healthy")
    registry.register(make_profile("broken-user"), broken)
    registry.register(make_profile("healthy"), healthy)
    healthy.clear()

    delivered = registry.dispatcher.to_all("capsule_created", {"capsule": {}})

    assert delivered == 1
    assert healthy.names() == ["capsule_created"]


def test_saturated_connection_is_not_counted(registry: PresenceRegistry) -> None:
    """Given a connection that rejects events, when sending to the user, then it is not counted."""
    saturated = FakeConnection("alice", accept=False)
    registry.register(make_profile("alice"), saturated)

    assert registry.dispatcher.to_user("alice", "user_typing", {}) == 0


def test_to_connection_targets_a_single_device(registry: PresenceRegistry) -> None:
    """Given a user with two devices, when replying to one, then only that device receives it."""
    first = FakeConnection("alice")
    second = FakeConnection("alice")
    registry.register(make_profile("alice"), first)
    registry.register(make_profile("alice"), second)

    accepted = registry.dispatcher.to_connection(first, "error", {"message": "nope"})

    assert accepted is True
    assert first.names() == ["error"]
    assert second.names() == []
