"""Domain models for Memoryscape."""

from memoryscape.domain.models.analytics_event import AnalyticsBucket, AnalyticsEvent
from memoryscape.domain.models.capsule import (
    ROLE_RANK,
    Capsule,
    CapsuleSettings,
    CapsuleStats,
    CapsuleTheme,
    CapsuleType,
    Contributor,
    ContributorRole,
    role_satisfies,
)
from memoryscape.domain.models.domain_event import DomainEvent, InboundEvent, OutboundEvent
from memoryscape.domain.models.errors import (
    AccessDenied,
    Conflict,
    MemoryscapeError,
    NotFound,
    TransientStoreFailure,
    Unauthorized,
    ValidationFailed,
)
from memoryscape.domain.models.memory_item import (
    AiGenerated,
    Comment,
    CommentReply,
    Location,
    MediaMetadata,
    MemoryItem,
    MemoryType,
    Reaction,
)
from memoryscape.domain.models.presence import ActiveIdentity, RoomSnapshot
from memoryscape.domain.models.user import User, UserProfile

__all__ = [
    "ROLE_RANK",
    "AccessDenied",
    "ActiveIdentity",
    "AiGenerated",
    "AnalyticsBucket",
    "AnalyticsEvent",
    "Capsule",
    "CapsuleSettings",
    "CapsuleStats",
    "CapsuleTheme",
    "CapsuleType",
    "Comment",
    "CommentReply",
    "Conflict",
    "Contributor",
    "ContributorRole",
    "DomainEvent",
    "InboundEvent",
    "Location",
    "MediaMetadata",
    "MemoryItem",
    "MemoryType",
    "MemoryscapeError",
    "NotFound",
    "OutboundEvent",
    "Reaction",
    "RoomSnapshot",
    "TransientStoreFailure",
    "Unauthorized",
    "User",
    "UserProfile",
    "ValidationFailed",
    "role_satisfies",
]
