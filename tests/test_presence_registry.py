"""Tests for the presence and capsule room registry."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from memoryscape.adapters.persistence import InMemoryCapsuleRepository
from memoryscape.adapters.web.presence import PresenceRegistry
from memoryscape.domain.models.capsule import ContributorRole
from memoryscape.domain.models.errors import (
    AccessDenied,
    NotFound,
    TransientStoreFailure,
    Unauthorized,
)
from tests.fakes import FakeConnection, SteppingClock, make_capsule, make_profile


@pytest.fixture
def capsules() -> InMemoryCapsuleRepository:
    return InMemoryCapsuleRepository()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def registry(capsules: InMemoryCapsuleRepository, clock: SteppingClock) -> PresenceRegistry:
    return PresenceRegistry(capsules, clock=clock)


def connect(registry: PresenceRegistry, user_id: str) -> FakeConnection:
    connection = FakeConnection(user_id)
    registry.register(make_profile(user_id), connection)
    return connection


class TestRegistration:
    """Tests for connection registration and removal."""

    def test_first_connection_announces_online_to_others_only(
        self, registry: PresenceRegistry
    ) -> None:
        """Given one connected user, when a second user connects, then only the first is told."""
        alice = connect(registry, "alice")

        bob = connect(registry, "bob")

        assert alice.names() == ["user_online"]
        assert alice.last("user_online")["userId"] == "bob"
        assert alice.last("user_online")["user"]["name"] == "User bob"
        assert bob.names() == []
        assert registry.is_online("alice")
        assert registry.is_online("bob")

    def test_second_device_attaches_silently(self, registry: PresenceRegistry) -> None:
        """Given a connected user, when they open a second connection, then nobody is notified."""
        observer = connect(registry, "observer")
        connect(registry, "alice")
        observer.clear()

        second = FakeConnection("alice")
        identity = registry.register(make_profile("alice"), second)

        assert observer.names() == []
        assert identity.connection_count == 2
        assert registry.connection_count() == 3

    def test_disconnecting_one_of_two_devices_keeps_user_online(
        self, registry: PresenceRegistry
    ) -> None:
        """Given a user with two connections, when one disconnects, then the user stays online."""
        observer = connect(registry, "observer")
        first = connect(registry, "alice")
        second = FakeConnection("alice")
        registry.register(make_profile("alice"), second)
        observer.clear()

        registry.disconnect(first)

        assert registry.is_online("alice")
        assert observer.names() == []

        registry.disconnect(second)

        assert not registry.is_online("alice")
        assert observer.names() == ["user_offline"]

    def test_disconnect_of_unknown_connection_is_ignored(self, registry: PresenceRegistry) -> None:
        """Given an unregistered connection, when disconnecting, then nothing happens."""
        observer = connect(registry, "observer")
        observer.clear()

        registry.disconnect(FakeConnection("ghost"))

        assert observer.names() == []

    def test_unregister_is_idempotent(self, registry: PresenceRegistry) -> None:
        """Given a removed user, when unregistering again, then no second offline event is sent."""
        observer = connect(registry, "observer")
        alice = connect(registry, "alice")
        observer.clear()

        remaining = registry.unregister("alice")
        again = registry.unregister("alice")

        assert remaining == [alice]
        assert again == []
        assert observer.names() == ["user_offline"]

    def test_reset_drops_everything_without_announcements(self, registry: PresenceRegistry) -> None:
        """Given connected users, when resetting, then all connections are returned silently."""
        alice = connect(registry, "alice")
        bob = connect(registry, "bob")
        alice.clear()

        released = registry.reset()

        assert {c.connection_id for c in released} == {alice.connection_id, bob.connection_id}
        assert registry.all_active() == []
        assert registry.room_ids() == []
        assert alice.names() == []


class TestRooms:
    """Tests for joining and leaving capsule rooms."""

    @pytest.mark.asyncio
    async def test_join_announces_to_existing_members_and_returns_snapshot(
        self, registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given a member in a room, when another member joins, then the first is notified."""
        capsule = make_capsule("alice", {"bob": ContributorRole.CONTRIBUTOR})
        await capsules.save(capsule)
        alice = connect(registry, "alice")
        bob = connect(registry, "bob")
        await registry.join_room("alice", capsule.id)
        alice.clear()

        snapshot = await registry.join_room("bob", capsule.id)

        assert alice.names() == ["user_joined_capsule"]
        assert alice.last("user_joined_capsule") == {
            "userId": "bob",
            "user": make_profile("bob").to_payload(),
            "capsuleId": capsule.id,
        }
        assert "user_joined_capsule" not in bob.names()
        assert [identity.user_id for identity in snapshot.active_users] == ["alice", "bob"]
        assert registry.rooms_of("bob") == frozenset({capsule.id})

    @pytest.mark.asyncio
    async def test_repeated_join_is_announced_once(
        self, registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given a joined member, when joining the same room again, then no new announcement."""
        capsule = make_capsule("alice", {"bob": ContributorRole.VIEWER})
        await capsules.save(capsule)
        alice = connect(registry, "alice")
        connect(registry, "bob")
        await registry.join_room("alice", capsule.id)
        await registry.join_room("bob", capsule.id)
        alice.clear()

        await registry.join_room("bob", capsule.id)

        assert alice.names() == []

    @pytest.mark.asyncio
    async def test_concurrent_joins_of_same_user_announce_once(
        self, registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given two concurrent joins by one user, when both finish, then one announcement is sent."""
        capsule = make_capsule("alice", {"bob": ContributorRole.CONTRIBUTOR})
        await capsules.save(capsule)
        alice = connect(registry, "alice")
        connect(registry, "bob")
        await registry.join_room("alice", capsule.id)
        alice.clear()

        await asyncio.gather(
            registry.join_room("bob", capsule.id), registry.join_room("bob", capsule.id)
        )

        assert alice.names() == ["user_joined_capsule"]

    @pytest.mark.asyncio
    async def test_join_of_unknown_capsule_raises_not_found(self, registry: PresenceRegistry) -> None:
        """Given no such capsule, when joining, then NotFound is raised."""
        connect(registry, "alice")

        with pytest.raises(NotFound):
            await registry.join_room("alice", "missing")

    @pytest.mark.asyncio
    async def test_join_by_non_member_raises_access_denied(
        self, registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given a capsule the user is not part of, when joining, then AccessDenied is raised."""
        capsule = make_capsule("alice")
        await capsules.save(capsule)
        connect(registry, "mallory")

        with pytest.raises(AccessDenied):
            await registry.join_room("mallory", capsule.id)

        assert registry.rooms_of("mallory") == frozenset()

    @pytest.mark.asyncio
    async def test_join_without_registration_raises_unauthorized(
        self, registry: PresenceRegistry
    ) -> None:
        """Given an unregistered user, when joining, then Unauthorized is raised."""
        with pytest.raises(Unauthorized):
            await registry.join_room("nobody", "capsule")

    @pytest.mark.asyncio
    async def test_store_failure_raises_transient_error(self) -> None:
        """Given a failing capsule store, when joining, then TransientStoreFailure is raised."""
        failing_store = AsyncMock()
        failing_store.get.side_effect = ConnectionError("database unreachable")
        registry = PresenceRegistry(failing_store)
        connect(registry, "alice")

        with pytest.raises(TransientStoreFailure):
            await registry.join_room("alice", "capsule-1")

        assert registry.room_ids() == []

    @pytest.mark.asyncio
    async def test_user_disconnecting_during_lookup_is_not_added(
        self, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given a user who disconnects while the lookup is pending, when it completes, then no room is joined."""
        capsule = make_capsule("alice")
        await capsules.save(capsule)
        registry = PresenceRegistry(capsules)
        alice = connect(registry, "alice")

        async def slow_get(capsule_id: str):  # noqa: ANN202
            registry.disconnect(alice)
            return await InMemoryCapsuleRepository.get(capsules, capsule_id)

        capsules.get = slow_get  # type: ignore[method-assign]

        with pytest.raises(Unauthorized):
            await registry.join_room("alice", capsule.id)

        assert registry.room_ids() == []

    @pytest.mark.asyncio
    async def test_join_all_rooms_includes_inactive_capsules(
        self, registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given active and archived capsules, when joining all, then every membership is joined."""
        active = make_capsule("alice")
        archived = make_capsule("bob", {"alice": ContributorRole.VIEWER}, is_active=False)
        unrelated = make_capsule("carol")
        for capsule in (active, archived, unrelated):
            await capsules.save(capsule)
        connect(registry, "alice")

        count = await registry.join_all_rooms("alice")

        assert count == 2
        assert registry.rooms_of("alice") == frozenset({active.id, archived.id})

    @pytest.mark.asyncio
    async def test_repeated_join_all_counts_memberships_and_announces_once(
        self, registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given rooms already joined, when joining all again, then the count is unchanged and nothing is re-announced."""
        capsule = make_capsule("alice", {"bob": ContributorRole.CONTRIBUTOR})
        await capsules.save(capsule)
        connect(registry, "alice")
        bob = connect(registry, "bob")
        await registry.join_room("bob", capsule.id)
        bob.clear()

        first = await registry.join_all_rooms("alice")
        second = await registry.join_all_rooms("alice")

        assert first == second == 1
        assert bob.names() == ["user_joined_capsule"]

    @pytest.mark.asyncio
    async def test_leave_notifies_remaining_members(
        self, registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given two members in a room, when one leaves, then the other is notified."""
        capsule = make_capsule("alice", {"bob": ContributorRole.CONTRIBUTOR})
        await capsules.save(capsule)
        alice = connect(registry, "alice")
        connect(registry, "bob")
        await registry.join_room("alice", capsule.id)
        await registry.join_room("bob", capsule.id)
        alice.clear()

        registry.leave_room("bob", capsule.id)
        registry.leave_room("bob", capsule.id)

        assert alice.names() == ["user_left_capsule"]
        assert registry.room_member_ids(capsule.id) == frozenset({"alice"})

    @pytest.mark.asyncio
    async def test_last_member_leaving_removes_room(
        self, registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given a room with one member, when they leave, then the room disappears."""
        capsule = make_capsule("alice")
        await capsules.save(capsule)
        connect(registry, "alice")
        await registry.join_room("alice", capsule.id)

        registry.leave_room("alice", capsule.id)

        assert registry.room_ids() == []

    @pytest.mark.asyncio
    async def test_disconnect_announces_room_departure_before_offline(
        self, registry: PresenceRegistry, capsules: InMemoryCapsuleRepository
    ) -> None:
        """Given two members in a room, when one disconnects, then left-capsule precedes offline."""
        capsule = make_capsule("alice", {"bob": ContributorRole.CONTRIBUTOR})
        await capsules.save(capsule)
        alice = connect(registry, "alice")
        bob = connect(registry, "bob")
        await registry.join_room("alice", capsule.id)
        await registry.join_room("bob", capsule.id)
        alice.clear()

        registry.disconnect(bob)

        assert alice.names() == ["user_left_capsule", "user_offline"]
        assert registry.active_members_of(capsule.id)[0].user_id == "alice"


class TestStaleEviction:
    """Tests for evicting idle identities."""

    def test_evicts_users_idle_past_threshold(
        self, registry: PresenceRegistry, clock: SteppingClock
    ) -> None:
        """Given a user idle for two hours, when evicting after one hour, then they are removed."""
        alice = connect(registry, "alice")
        clock.advance(hours=2)

        evicted = registry.evict_stale(timedelta(hours=1))

        assert evicted == {"alice": [alice]}
        assert not registry.is_online("alice")

    def test_recent_activity_keeps_long_lived_connection(
        self, registry: PresenceRegistry, clock: SteppingClock
    ) -> None:
        """Given an old connection with recent activity, when evicting, then it is kept."""
        connect(registry, "alice")
        clock.advance(hours=2)
        registry.touch("alice")
        clock.advance(minutes=5)

        evicted = registry.evict_stale(timedelta(hours=1))

        assert evicted == {}
        assert registry.is_online("alice")
