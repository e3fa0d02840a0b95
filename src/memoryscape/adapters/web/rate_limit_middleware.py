"""Per-IP rate limiting for API path prefixes, using throttled-py token buckets."""

import logging
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import HTTPConnection, Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp
from throttled import RateLimiterType, Throttled, rate_limiter, store

logger = logging.getLogger(__name__)


def extract_client_ip(connection: HTTPConnection) -> str:
    """Client IP, preferring the first address of X-Forwarded-For when behind a proxy."""
    forwarded_for = connection.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()
        if client_ip:
            return client_ip
    if connection.client and connection.client.host:
        return connection.client.host
    logger.warning("Could not determine client IP, using 'unknown'")
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Token bucket per client IP for HTTP requests under ``path_prefix``.

    Several instances can be stacked with different prefixes and quotas; each
    keeps its own buckets.
    """

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 100,
        path_prefix: str = "/api/",
        message: str = "Too many requests from this IP, please try again later.",
        key_func: Callable[[HTTPConnection], str] = extract_client_ip,
    ) -> None:
        """Initialize rate limiting middleware.

        Args:
            app: The ASGI application to wrap.
            requests_per_minute: Requests allowed per IP per minute under the prefix.
            path_prefix: Only paths starting with this prefix are limited.
            message: Message returned with 429 responses.
            key_func: Derives the bucket key from a request.
        """
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.path_prefix = path_prefix
        self.message = message
        self.key_func = key_func
        self.quota = rate_limiter.per_min(requests_per_minute, burst=requests_per_minute)
        self.rate_limiter_store = store.MemoryStore()
        logger.info(
            f"Rate limiting {path_prefix}*: {requests_per_minute} requests per minute per IP"
        )

    def _extract_retry_after(self, result: object) -> float:
        """Seconds until the bucket refills, from throttled-py's result state."""
        state = getattr(result, "state", None)
        retry_after = getattr(state, "retry_after", None) if state is not None else None
        if retry_after is None:
            retry_after = getattr(result, "retry_after", None)
        return float(retry_after) if retry_after else 60.0

    def _limited_response(self, client_key: str, path: str, retry_after: float) -> Response:
        logger.warning(
            f"Rate limit exceeded for {client_key} on {path}, retry after {retry_after:.0f}s"
        )
        return JSONResponse(
            {"success": False, "message": self.message},
            status_code=429,
            headers={"Retry-After": str(max(1, int(retry_after)))},
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and enforce the quota for limited paths."""
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_key = self.key_func(request)
        throttle = Throttled(
            key=f"{self.path_prefix}:{client_key}",
            using=RateLimiterType.TOKEN_BUCKET.value,
            quota=self.quota,
            store=self.rate_limiter_store,
        )
        result = throttle.limit()
        if result.limited:
            retry_after = self._extract_retry_after(result)
            return self._limited_response(client_key, request.url.path, retry_after)

        response: Response = await call_next(request)
        return response
