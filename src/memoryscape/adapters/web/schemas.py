"""Request bodies accepted by the HTTP API (camelCase on the wire)."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from memoryscape.domain.models.capsule import CapsuleTheme, CapsuleType
from memoryscape.domain.models.memory_item import Location, MediaMetadata, MemoryType


class RequestBody(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


class RegisterRequest(RequestBody):
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str


class LoginRequest(RequestBody):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdate(RequestBody):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    bio: str | None = Field(default=None, max_length=300)
    avatar_url: str | None = None


class CapsuleCreate(RequestBody):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    type: CapsuleType = CapsuleType.PRIVATE
    release_date: datetime | None = None
    theme: CapsuleTheme | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("release_date")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Naive release dates are interpreted as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class CapsuleSettingsPatch(RequestBody):
    allow_public_discovery: bool | None = None
    require_approval: bool | None = None
    allow_comments: bool | None = None
    allow_reactions: bool | None = None


class CapsuleUpdate(RequestBody):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    theme: CapsuleTheme | None = None
    tags: list[str] | None = None
    settings: CapsuleSettingsPatch | None = None
    cover_image: str | None = None

    def changes(self) -> dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        if self.settings is not None:
            data["settings"] = self.settings.model_dump(exclude_none=True)
        return data


class JoinRequest(RequestBody):
    invite_code: str | None = None


class MemoryCreate(RequestBody):
    capsule_id: str = Field(min_length=1)
    type: MemoryType
    title: str | None = Field(default=None, max_length=100)
    text: str | None = Field(default=None, max_length=2000)
    media_url: str | None = None
    thumbnail_url: str | None = None
    media_metadata: MediaMetadata | None = None
    tags: list[str] = Field(default_factory=list)
    location: Location | None = None


class MemoryUpdate(RequestBody):
    title: str | None = Field(default=None, max_length=100)
    text: str | None = Field(default=None, max_length=2000)
    tags: list[str] | None = None


class ReactRequest(RequestBody):
    emoji: str = ""


class CommentRequest(RequestBody):
    text: str = ""


class TextRequest(RequestBody):
    text: str = Field(min_length=1)
    type: str = "text"


class EnhanceRequest(RequestBody):
    text: str = Field(min_length=1, max_length=2000)


class TagsRequest(RequestBody):
    text: str = Field(min_length=1)
    existing_tags: list[str] = Field(default_factory=list)


class SummaryRequest(RequestBody):
    memories: list[dict[str, Any]] = Field(min_length=1)


class InsightsRequest(RequestBody):
    capsule: dict[str, Any]
    memories: list[dict[str, Any]]
