"""Records one analytics event per tracked API request."""

import logging
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from memoryscape.adapters.web.rate_limit_middleware import extract_client_ip
from memoryscape.application.services.analytics_service import (
    AnalyticsService,
    event_type_for,
    sanitize_body,
)
from memoryscape.domain.models.analytics_event import AnalyticsEvent

logger = logging.getLogger(__name__)

UNTRACKED_PATHS = ("/api/health",)


class AnalyticsMiddleware(BaseHTTPMiddleware):
    """Tracks requests under ``/api/`` after they are handled.

    The acting user and the parsed JSON body are read from ``request.state``,
    where the route helpers leave them. Tracking failures never affect the response.
    """

    def __init__(self, app: ASGIApp, service: AnalyticsService) -> None:
        super().__init__(app)
        self.service = service

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        path = request.url.path
        if not path.startswith("/api/") or path.startswith(UNTRACKED_PATHS):
            return response

        try:
            event = AnalyticsEvent(
                user_id=getattr(request.state, "user_id", None),
                session_id=request.headers.get("x-session-id"),
                event=event_type_for(request.method, path),
                path=path,
                method=request.method,
                user_agent=request.headers.get("user-agent", ""),
                ip=extract_client_ip(request),
                metadata={
                    "referer": request.headers.get("referer"),
                    "query": dict(request.query_params),
                    "body": sanitize_body(getattr(request.state, "json_body", None)),
                    "statusCode": response.status_code,
                },
            )
        except Exception as e:
            logger.error(f"Analytics middleware error: {e}", exc_info=True)
            return response

        await self.service.track(event)
        return response
