"""Application services (use cases)."""

from memoryscape.application.services.ai_service import AiService
from memoryscape.application.services.analytics_service import AnalyticsService
from memoryscape.application.services.auth_service import AuthService
from memoryscape.application.services.capsule_service import CapsuleService
from memoryscape.application.services.memory_service import MemoryService
from memoryscape.application.services.user_service import UserService

__all__ = [
    "AiService",
    "AnalyticsService",
    "AuthService",
    "CapsuleService",
    "MemoryService",
    "UserService",
]
