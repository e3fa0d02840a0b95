"""User domain model."""

from datetime import datetime

from pydantic import ConfigDict, Field

from memoryscape.domain.models.base import DomainModel, new_id, utc_now


class UserProfile(DomainModel):
    """Public profile snapshot attached to events and presence entries."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    avatar_url: str = ""


class User(DomainModel):
    """A registered account."""

    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=2, max_length=50)
    email: str
    password_hash: str = Field(default="", exclude=True)
    avatar_url: str = ""
    bio: str = Field(default="", max_length=300)
    created_capsule_ids: list[str] = Field(default_factory=list)
    joined_capsule_ids: list[str] = Field(default_factory=list)
    last_active: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)

    def profile(self) -> UserProfile:
        """Return the public profile snapshot of this user."""
        return UserProfile(id=self.id, name=self.name, avatar_url=self.avatar_url)
