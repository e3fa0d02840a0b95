"""Tests for domain models."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from memoryscape.domain.models.capsule import (
    Capsule,
    CapsuleType,
    Contributor,
    ContributorRole,
    role_satisfies,
)
from memoryscape.domain.models.domain_event import DomainEvent, OutboundEvent
from memoryscape.domain.models.memory_item import MemoryItem, MemoryType
from memoryscape.domain.models.user import User


def test_role_hierarchy() -> None:
    """Given the role ranks, when comparing, then higher roles satisfy lower requirements only."""
    assert role_satisfies(ContributorRole.OWNER, ContributorRole.ADMIN)
    assert role_satisfies(ContributorRole.CONTRIBUTOR, ContributorRole.CONTRIBUTOR)
    assert not role_satisfies(ContributorRole.VIEWER, ContributorRole.CONTRIBUTOR)
    assert not role_satisfies(ContributorRole.ADMIN, ContributorRole.OWNER)


def test_owner_is_not_a_storable_contributor_role() -> None:
    """Given the owner role, when creating a contributor, then validation fails."""
    with pytest.raises(ValidationError, match="owner cannot be stored"):
        Contributor(user_id="u1", role=ContributorRole.OWNER)


class TestCapsule:
    """Tests for Capsule."""

    def test_roles_of_owner_contributors_and_strangers(self) -> None:
        """Given an owner and a viewer, when asking roles, then ownership wins and strangers have none."""
        capsule = Capsule(
            title="Summer",
            owner_id="owner",
            contributors=[Contributor(user_id="viewer", role=ContributorRole.VIEWER)],
        )

        assert capsule.role_of("owner") == ContributorRole.OWNER
        assert capsule.role_of("viewer") == ContributorRole.VIEWER
        assert capsule.role_of("stranger") is None
        assert capsule.is_member("viewer")
        assert not capsule.is_member("stranger")

    def test_title_and_tags_are_normalized(self) -> None:
        """Given padded title and mixed-case tags, when creating, then they are cleaned."""
        capsule = Capsule(title="  Summer  ", owner_id="o", tags=[" Beach ", "", "FAMILY"])

        assert capsule.title == "Summer"
        assert capsule.tags == ["beach", "family"]

    def test_blank_title_is_rejected(self) -> None:
        """Given a whitespace title, when creating, then validation fails."""
        with pytest.raises(ValidationError):
            Capsule(title="   ", owner_id="o")

    def test_timed_capsule_requires_release_date(self) -> None:
        """Given a timed capsule without release date, when creating, then validation fails."""
        with pytest.raises(ValidationError, match="release_date is required"):
            Capsule(title="Later", owner_id="o", type=CapsuleType.TIMED)

    def test_release_gate(self) -> None:
        """Given a timed capsule, when checking release, then it opens at the release date."""
        release = datetime(2030, 1, 1, tzinfo=UTC)
        capsule = Capsule(title="Later", owner_id="o", type=CapsuleType.TIMED, release_date=release)

        assert not capsule.is_released(release - timedelta(seconds=1))
        assert capsule.is_released(release)
        assert Capsule(title="Now", owner_id="o").is_released(release - timedelta(days=999))

    def test_contributor_changes_refresh_stats(self) -> None:
        """Given contributor changes, when adding and removing, then the counter follows."""
        capsule = Capsule(title="Summer", owner_id="o")

        capsule.add_contributor("a", ContributorRole.CONTRIBUTOR)
        capsule.add_contributor("b", ContributorRole.VIEWER)
        capsule.remove_contributor("a")

        assert capsule.stats.total_contributors == 1
        assert [c.user_id for c in capsule.contributors] == ["b"]

    def test_invite_codes_are_unique(self) -> None:
        """Given two capsules, when created, then each gets its own invite code."""
        first = Capsule(title="A", owner_id="o")
        second = Capsule(title="B", owner_id="o")

        assert first.invite_code != second.invite_code
        assert len(first.invite_code) == 24

    def test_payload_uses_camel_case(self) -> None:
        """Given a capsule, when serialized for clients, then keys are camelCase."""
        payload = Capsule(title="A", owner_id="o").to_payload()

        assert payload["ownerId"] == "o"
        assert payload["settings"]["allowComments"] is True
        assert "owner_id" not in payload


class TestMemoryItem:
    """Tests for MemoryItem."""

    def test_text_memory_requires_text(self) -> None:
        """Given a text memory with blank text, when creating, then validation fails."""
        with pytest.raises(ValidationError, match="Text is required"):
            MemoryItem(capsule_id="c", author_id="a", type=MemoryType.TEXT, text="  ")

    def test_media_memory_requires_url(self) -> None:
        """Given a video memory without URL, when creating, then validation fails."""
        with pytest.raises(ValidationError, match="media_url is required"):
            MemoryItem(capsule_id="c", author_id="a", type=MemoryType.VIDEO)

    def test_reaction_toggle_is_per_user_and_emoji(self) -> None:
        """Given reactions by two users, when one toggles again, then only theirs is removed."""
        memory = MemoryItem(capsule_id="c", author_id="a", type=MemoryType.TEXT, text="Hi")

        assert memory.toggle_reaction("u1", "👍") == "added"
        assert memory.toggle_reaction("u2", "👍") == "added"
        assert memory.toggle_reaction("u1", "🎉") == "added"
        assert memory.toggle_reaction("u1", "👍") == "removed"

        assert [(r.user_id, r.emoji) for r in memory.reactions] == [("u2", "👍"), ("u1", "🎉")]

    def test_pin_toggles(self) -> None:
        """Given an unpinned memory, when toggling twice, then it is pinned then unpinned."""
        memory = MemoryItem(capsule_id="c", author_id="a", type=MemoryType.TEXT, text="Hi")

        assert memory.toggle_pin() is True
        assert memory.toggle_pin() is False

    def test_comment_is_trimmed(self) -> None:
        """Given a padded comment, when added, then it is stored trimmed."""
        memory = MemoryItem(capsule_id="c", author_id="a", type=MemoryType.TEXT, text="Hi")

        comment = memory.add_comment("u1", "  Nice  ")

        assert comment.text == "Nice"
        assert memory.comments == [comment]


def test_user_payload_hides_password_hash() -> None:
    """Given a user with a password hash, when serialized, then the hash is absent."""
    user = User(name="Alice", email="alice@example.com", password_hash="$argon2id$...")

    payload = user.to_payload()

    assert "passwordHash" not in payload
    assert payload["email"] == "alice@example.com"
    assert user.profile().to_payload() == {"id": user.id, "name": "Alice", "avatarUrl": ""}


def test_domain_event_wire_format() -> None:
    """Given an event, when converted to a message, then it has event and data keys."""
    event = DomainEvent(OutboundEvent.MEMORY_PINNED, {"memoryId": "m1"})

    assert event.to_message() == {"event": "memory_pinned", "data": {"memoryId": "m1"}}
