"""Ports (interfaces) for the ports-and-adapters architecture."""

from memoryscape.domain.ports.analytics_repository import AnalyticsRepository
from memoryscape.domain.ports.capsule_repository import CapsuleRepository
from memoryscape.domain.ports.identity import PasswordHasher, TokenIssuer
from memoryscape.domain.ports.media_store import MediaStore, UploadedMedia
from memoryscape.domain.ports.memory_repository import MemoryRepository
from memoryscape.domain.ports.text_generator import TextGenerator
from memoryscape.domain.ports.user_repository import UserRepository

__all__ = [
    "AnalyticsRepository",
    "CapsuleRepository",
    "MediaStore",
    "MemoryRepository",
    "PasswordHasher",
    "TextGenerator",
    "TokenIssuer",
    "UploadedMedia",
    "UserRepository",
]
