"""Memory item domain model with reactions and threaded comments."""

from datetime import datetime
from enum import StrEnum

from pydantic import Field, model_validator

from memoryscape.domain.models.base import DomainModel, new_id, utc_now

MEDIA_TYPES = frozenset({"image", "video", "audio", "voice"})


class MemoryType(StrEnum):
    """Kinds of content a memory can hold."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"
    VOICE = "voice"


class MediaDimensions(DomainModel):
    width: int | None = None
    height: int | None = None


class MediaMetadata(DomainModel):
    """Metadata reported by the media store for uploaded files."""

    size: int | None = None
    duration: float | None = None
    dimensions: MediaDimensions = Field(default_factory=MediaDimensions)
    format: str | None = None


class Location(DomainModel):
    name: str = ""
    latitude: float | None = None
    longitude: float | None = None


class AiGenerated(DomainModel):
    """Outputs of the AI helpers attached to a memory."""

    auto_title: str | None = None
    summary: str | None = None
    mood: str | None = None
    generated_at: datetime | None = None


class Reaction(DomainModel):
    user_id: str
    emoji: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=utc_now)


class CommentReply(DomainModel):
    user_id: str
    text: str = Field(min_length=1, max_length=300)
    created_at: datetime = Field(default_factory=utc_now)


class Comment(DomainModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    text: str = Field(min_length=1, max_length=500)
    replies: list[CommentReply] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)


class MemoryItem(DomainModel):
    """A single content item belonging to a capsule."""

    id: str = Field(default_factory=new_id)
    capsule_id: str
    author_id: str
    type: MemoryType
    title: str | None = Field(default=None, max_length=100)
    text: str | None = Field(default=None, max_length=2000)
    media_url: str | None = None
    thumbnail_url: str | None = None
    media_metadata: MediaMetadata | None = None
    reactions: list[Reaction] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    location: Location | None = None
    ai_generated: AiGenerated | None = None
    is_public: bool = True
    is_pinned: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def check_content(self) -> "MemoryItem":
        """Text memories need text; media memories need a media URL."""
        if self.type == MemoryType.TEXT and not (self.text and self.text.strip()):
            raise ValueError("Text is required for text memories")
        if self.type in MEDIA_TYPES and not self.media_url:
            raise ValueError(f"media_url is required for {self.type} memories")
        return self

    def toggle_reaction(self, user_id: str, emoji: str) -> str:
        """Add the reaction, or remove it if the user already reacted with it.

        Returns:
            "added" or "removed".
        """
        remaining = [r for r in self.reactions if not (r.user_id == user_id and r.emoji == emoji)]
        if len(remaining) != len(self.reactions):
            self.reactions = remaining
            action = "removed"
        else:
            self.reactions = [*self.reactions, Reaction(user_id=user_id, emoji=emoji)]
            action = "added"
        self.updated_at = utc_now()
        return action

    def add_comment(self, user_id: str, text: str) -> Comment:
        """Append a top-level comment and return it."""
        comment = Comment(user_id=user_id, text=text.strip())
        self.comments = [*self.comments, comment]
        self.updated_at = utc_now()
        return comment

    def toggle_pin(self) -> bool:
        """Flip the pinned flag and return the new value."""
        self.is_pinned = not self.is_pinned
        self.updated_at = utc_now()
        return self.is_pinned
