"""Starlette application and the uvicorn-backed web adapter."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import WebSocketRoute

from memoryscape.adapters.persistence import (
    InMemoryAnalyticsRepository,
    InMemoryCapsuleRepository,
    InMemoryMemoryRepository,
    InMemoryUserRepository,
)
from memoryscape.adapters.persistence.mongo_store import MongoStore
from memoryscape.adapters.web.analytics_middleware import AnalyticsMiddleware
from memoryscape.adapters.web.container import Container, build_container
from memoryscape.adapters.web.monitoring import MonitoringMiddleware
from memoryscape.adapters.web.rate_limit_middleware import RateLimitMiddleware
from memoryscape.adapters.web.realtime import EventProtocol, SocketHandler
from memoryscape.adapters.web.responses import (
    handle_domain_error,
    handle_unexpected_error,
    handle_validation_error,
)
from memoryscape.adapters.web.routes import api_routes
from memoryscape.adapters.web.sweepers import PresenceSweeper
from memoryscape.domain.models.errors import MemoryscapeError

if TYPE_CHECKING:
    from aiohttp import ClientSession

    from memoryscape.adapters.config import AppConfig

logger = logging.getLogger(__name__)


def create_app(container: Container, sweeper: PresenceSweeper | None = None) -> Starlette:
    """Build the Starlette application around a wired container.

    Args:
        container: Services and realtime components.
        sweeper: Optional idle presence sweeper, run for the lifetime of the app.
    """
    config = container.config
    protocol = EventProtocol(container.registry, container.registry.dispatcher)
    socket_handler = SocketHandler(
        container.registry,
        protocol,
        authenticate=container.auth.authenticate_profile,
        max_queue_size=config.connection_queue_size,
    )

    @asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        if sweeper is not None:
            await sweeper.start()
        try:
            yield
        finally:
            if sweeper is not None:
                await sweeper.stop()
            for connection in container.registry.reset():
                await connection.close(1001)

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(MonitoringMiddleware, monitor=container.monitor),
        Middleware(RateLimitMiddleware, requests_per_minute=config.rate_limit_per_minute),
        Middleware(
            RateLimitMiddleware,
            requests_per_minute=config.ai_rate_limit_per_minute,
            path_prefix="/api/ai/",
            message="Too many AI requests, please try again later",
        ),
        Middleware(AnalyticsMiddleware, service=container.analytics),
    ]

    app = Starlette(
        routes=[*api_routes, WebSocketRoute("/ws", socket_handler.endpoint)],
        middleware=middleware,
        exception_handlers={
            MemoryscapeError: handle_domain_error,
            ValidationError: handle_validation_error,
            Exception: handle_unexpected_error,
        },
        lifespan=lifespan,
    )
    app.state.container = container
    return app


class MemoryscapeWebAdapter:
    """Runs the HTTP and WebSocket server with uvicorn."""

    def __init__(self, config: AppConfig, session: ClientSession | None = None) -> None:
        """Initialize the web adapter.

        Args:
            config: Application configuration.
            session: Shared aiohttp session for media uploads.
        """
        self.config = config
        self.session = session
        self._mongo: MongoStore | None = None
        self._server: Any | None = None

    async def _build_container(self) -> Container:
        if self.config.store_backend == "mongo":
            self._mongo = MongoStore(self.config.mongodb_uri, self.config.mongodb_database)
            await self._mongo.connect()
            return build_container(
                self.config,
                users=self._mongo.users(),
                capsules=self._mongo.capsules(),
                memories=self._mongo.memories(),
                analytics=self._mongo.analytics(),
                session=self.session,
            )
        logger.warning("Using the in-memory store; data is lost on restart")
        return build_container(
            self.config,
            users=InMemoryUserRepository(),
            capsules=InMemoryCapsuleRepository(),
            memories=InMemoryMemoryRepository(),
            analytics=InMemoryAnalyticsRepository(),
            session=self.session,
        )

    async def start(self) -> None:
        """Start the web server."""
        import uvicorn

        container = await self._build_container()
        sweeper = PresenceSweeper(
            container.registry,
            interval_seconds=self.config.presence_sweep_interval_seconds,
            stale_after_seconds=self.config.presence_stale_after_seconds,
        )
        app = create_app(container, sweeper)

        config = uvicorn.Config(
            app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level,
        )
        self._server = uvicorn.Server(config)
        logger.info(f"Memoryscape listening on {self.config.host}:{self.config.port}")

        try:
            await self._server.serve()
        finally:
            await container.close()
            await self._close_store()

    async def stop(self) -> None:
        """Stop the web server."""
        if self._server:
            self._server.should_exit = True
        await self._close_store()

    async def _close_store(self) -> None:
        if self._mongo is not None:
            await self._mongo.disconnect()
            self._mongo = None
