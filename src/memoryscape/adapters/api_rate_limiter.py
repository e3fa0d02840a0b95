"""Spacing and back-off for outgoing requests to hosted APIs."""

from __future__ import annotations

import asyncio
import logging
import time

logger = logging.getLogger(__name__)


class ApiRateLimiter:
    """Keeps a minimum delay between requests to one API and honours Retry-After.

    Async-safe: concurrent callers queue on an asyncio.Lock.
    """

    def __init__(self, api_name: str, min_delay_seconds: float = 0.0) -> None:
        """Initialize the rate limiter.

        Args:
            api_name: Name of the API (for logging).
            min_delay_seconds: Minimum delay between requests in seconds.
        """
        self.api_name = api_name
        self.min_delay_seconds = min_delay_seconds
        self._next_allowed_at: float = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until the next request to this API is allowed."""
        async with self._lock:
            wait_time = self._next_allowed_at - time.monotonic()
            if wait_time > 0:
                logger.debug(f"{self.api_name}: waiting {wait_time:.2f}s before next request")
                await asyncio.sleep(wait_time)
            self._next_allowed_at = time.monotonic() + self.min_delay_seconds

    def back_off(self, seconds: float) -> None:
        """Push the next allowed request out, e.g. after a 429 with Retry-After."""
        if seconds <= 0:
            return
        self._next_allowed_at = max(self._next_allowed_at, time.monotonic() + seconds)
        logger.warning(f"{self.api_name}: backing off for {seconds:.1f}s")

    async def __aenter__(self) -> ApiRateLimiter:
        await self.acquire()
        return self

    async def __aexit__(
        self, _exc_type: type | None, _exc_val: Exception | None, _exc_tb: object
    ) -> None:
        return None
