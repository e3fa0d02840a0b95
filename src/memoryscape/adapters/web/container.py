"""Wiring of services and realtime components shared by the web adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from openai import AsyncOpenAI

from memoryscape.adapters.ai.openai_text_generator import OpenAiTextGenerator
from memoryscape.adapters.api_rate_limiter import ApiRateLimiter
from memoryscape.adapters.auth.argon2_password_hasher import Argon2PasswordHasher
from memoryscape.adapters.auth.jwt_token_issuer import JwtTokenIssuer
from memoryscape.adapters.config.app_config import AppConfig
from memoryscape.adapters.media.cloudinary_media_store import CloudinaryMediaStore
from memoryscape.adapters.web.monitoring import PerformanceMonitor
from memoryscape.adapters.web.presence import PresenceRegistry
from memoryscape.application.services.ai_service import AiService
from memoryscape.application.services.analytics_service import AnalyticsService
from memoryscape.application.services.auth_service import AuthService
from memoryscape.application.services.capsule_service import CapsuleService
from memoryscape.application.services.memory_service import MemoryService
from memoryscape.application.services.user_service import UserService
from memoryscape.domain.ports.media_store import MediaStore

if TYPE_CHECKING:
    from aiohttp import ClientSession

    from memoryscape.domain.ports.analytics_repository import AnalyticsRepository
    from memoryscape.domain.ports.capsule_repository import CapsuleRepository
    from memoryscape.domain.ports.memory_repository import MemoryRepository
    from memoryscape.domain.ports.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Everything a request handler may need, stored on ``app.state.container``."""

    config: AppConfig
    registry: PresenceRegistry
    auth: AuthService
    users: UserService
    capsules: CapsuleService
    memories: MemoryService
    ai: AiService
    analytics: AnalyticsService
    monitor: PerformanceMonitor
    media: MediaStore | None = None
    text_generator: OpenAiTextGenerator | None = None

    async def close(self) -> None:
        """Release clients owned by the container."""
        if self.text_generator is not None:
            await self.text_generator.close()


def _realtime_stats(registry: PresenceRegistry) -> dict[str, int]:
    return {
        "connectedUsers": len(registry.all_active()),
        "connections": registry.connection_count(),
        "rooms": len(registry.room_ids()),
    }


def build_container(
    config: AppConfig,
    users: UserRepository,
    capsules: CapsuleRepository,
    memories: MemoryRepository,
    analytics: AnalyticsRepository,
    session: ClientSession | None = None,
) -> Container:
    """Create services, the presence registry and the optional integrations.

    Args:
        config: Application configuration.
        users: User repository.
        capsules: Capsule repository.
        memories: Memory repository.
        analytics: Analytics repository.
        session: Shared aiohttp session. Media uploads need one.
    """
    registry = PresenceRegistry(capsules)
    dispatcher = registry.dispatcher

    tokens = JwtTokenIssuer(
        config.jwt_secret,
        algorithm=config.jwt_algorithm,
        expires_in=timedelta(days=config.jwt_expires_days),
    )

    generator = None
    media: MediaStore | None = None
    if config.ai_enabled:
        client = AsyncOpenAI(
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            timeout=config.openai_timeout,
            max_retries=0,
        )
        generator = OpenAiTextGenerator(
            client,
            model=config.openai_model,
            rate_limiter=ApiRateLimiter("openai", config.openai_min_delay_seconds),
        )
    else:
        logger.info("AI helpers disabled (no OPENAI_API_KEY)")
    if session is not None and config.media_enabled:
        media = CloudinaryMediaStore(
            session,
            cloud_name=config.cloudinary_cloud_name or "",
            api_key=config.cloudinary_api_key or "",
            api_secret=config.cloudinary_api_secret or "",
        )
    else:
        logger.info("Media uploads disabled (Cloudinary credentials or HTTP session missing)")

    return Container(
        config=config,
        registry=registry,
        auth=AuthService(users, Argon2PasswordHasher(), tokens),
        users=UserService(users, capsules, memories),
        capsules=CapsuleService(capsules, users, dispatcher, presence=registry),
        memories=MemoryService(memories, capsules, dispatcher),
        ai=AiService(generator),
        analytics=AnalyticsService(analytics),
        monitor=PerformanceMonitor(realtime_stats=lambda: _realtime_stats(registry)),
        media=media,
        text_generator=generator,
    )
