"""Capsule domain model and contributor role hierarchy."""

import secrets
from datetime import datetime
from enum import StrEnum

from pydantic import Field, field_validator, model_validator

from memoryscape.domain.models.base import DomainModel, new_id, utc_now


class ContributorRole(StrEnum):
    """Roles a user can hold in a capsule. OWNER is implied by ownership, never stored."""

    VIEWER = "viewer"
    CONTRIBUTOR = "contributor"
    ADMIN = "admin"
    OWNER = "owner"


ROLE_RANK: dict[ContributorRole, int] = {
    ContributorRole.VIEWER: 1,
    ContributorRole.CONTRIBUTOR: 2,
    ContributorRole.ADMIN: 3,
    ContributorRole.OWNER: 4,
}


def role_satisfies(role: ContributorRole, required: ContributorRole) -> bool:
    """Check whether ``role`` ranks at least as high as ``required``."""
    return ROLE_RANK[role] >= ROLE_RANK[required]


class CapsuleType(StrEnum):
    """Visibility of a capsule."""

    PUBLIC = "public"
    PRIVATE = "private"
    TIMED = "timed"


class CapsuleTheme(StrEnum):
    """Visual theme of a capsule."""

    DEFAULT = "default"
    VINTAGE = "vintage"
    MODERN = "modern"
    NATURE = "nature"
    SPACE = "space"
    OCEAN = "ocean"


class Contributor(DomainModel):
    """A user listed on a capsule with a role."""

    user_id: str
    role: ContributorRole = ContributorRole.CONTRIBUTOR
    joined_at: datetime = Field(default_factory=utc_now)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: ContributorRole) -> ContributorRole:
        """Owner is not a storable contributor role."""
        if v == ContributorRole.OWNER:
            raise ValueError("owner cannot be stored as a contributor role")
        return v


class CapsuleSettings(DomainModel):
    """Per-capsule feature switches."""

    allow_public_discovery: bool = False
    require_approval: bool = False
    allow_comments: bool = True
    allow_reactions: bool = True


class CapsuleStats(DomainModel):
    """Denormalized counters maintained on every write."""

    total_memories: int = 0
    total_contributors: int = 1
    last_activity: datetime = Field(default_factory=utc_now)


def _generate_invite_code() -> str:
    return secrets.token_hex(12)


class Capsule(DomainModel):
    """A named collection of memories with an owner and contributors."""

    id: str = Field(default_factory=new_id)
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    type: CapsuleType = CapsuleType.PRIVATE
    owner_id: str
    contributors: list[Contributor] = Field(default_factory=list)
    memory_ids: list[str] = Field(default_factory=list)
    release_date: datetime | None = None
    theme: CapsuleTheme = CapsuleTheme.DEFAULT
    tags: list[str] = Field(default_factory=list)
    cover_image: str = ""
    is_active: bool = True
    invite_code: str = Field(default_factory=_generate_invite_code)
    settings: CapsuleSettings = Field(default_factory=CapsuleSettings)
    stats: CapsuleStats = Field(default_factory=CapsuleStats)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Trim surrounding whitespace; an all-blank title is rejected."""
        v = v.strip()
        if not v:
            raise ValueError("Capsule title is required")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        """Tags are stored trimmed and lowercase."""
        return [tag.strip().lower() for tag in v if tag.strip()]

    @model_validator(mode="after")
    def check_release_date(self) -> "Capsule":
        """Timed capsules need a release date."""
        if self.type == CapsuleType.TIMED and self.release_date is None:
            raise ValueError("release_date is required for timed capsules")
        return self

    def role_of(self, user_id: str) -> ContributorRole | None:
        """Return the user's role in this capsule, or None for non-members."""
        if self.owner_id == user_id:
            return ContributorRole.OWNER
        for contributor in self.contributors:
            if contributor.user_id == user_id:
                return contributor.role
        return None

    def is_member(self, user_id: str) -> bool:
        """Owner or listed contributor."""
        return self.role_of(user_id) is not None

    def is_released(self, now: datetime) -> bool:
        """Timed capsules are hidden until their release date."""
        if self.type != CapsuleType.TIMED or self.release_date is None:
            return True
        return now >= self.release_date

    def add_contributor(self, user_id: str, role: ContributorRole) -> None:
        """Append a contributor and refresh the contributor counter."""
        self.contributors = [*self.contributors, Contributor(user_id=user_id, role=role)]
        self.refresh_stats()

    def remove_contributor(self, user_id: str) -> None:
        """Drop a contributor and refresh the contributor counter."""
        self.contributors = [c for c in self.contributors if c.user_id != user_id]
        self.refresh_stats()

    def refresh_stats(self) -> None:
        """Recompute counters and bump the activity timestamp."""
        now = utc_now()
        self.stats = self.stats.model_copy(
            update={
                "total_contributors": len(self.contributors),
                "total_memories": len(self.memory_ids),
                "last_activity": now,
            }
        )
        self.updated_at = now
