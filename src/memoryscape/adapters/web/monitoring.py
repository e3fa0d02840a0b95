"""Request performance monitoring and health reporting."""

import logging
import os
import platform
import resource
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from memoryscape.domain.models.base import utc_now

logger = logging.getLogger(__name__)

MAX_SAMPLES = 1000
ERROR_RATE_THRESHOLD = 5.0
SLOW_RESPONSE_MS = 1000
HIGH_MEMORY_MB = 500


@dataclass(frozen=True)
class RequestSample:
    timestamp: datetime
    path: str
    method: str
    status_code: int
    response_ms: float


def _resident_memory_mb() -> int:
    # ru_maxrss is reported in KiB on Linux and bytes on macOS.
    usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    divisor = 1024 * 1024 if platform.system() == "Darwin" else 1024
    return round(usage / divisor)


class PerformanceMonitor:
    """Counts requests and errors and keeps the most recent response times."""

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        realtime_stats: Callable[[], dict[str, int]] | None = None,
    ) -> None:
        self._clock = clock
        self._realtime_stats = realtime_stats
        self._started = time.monotonic()
        self.requests = 0
        self.errors = 0
        self.samples: deque[RequestSample] = deque(maxlen=MAX_SAMPLES)

    def record(self, path: str, method: str, status_code: int, response_ms: float) -> None:
        self.requests += 1
        if status_code >= 400:
            self.errors += 1
        self.samples.append(
            RequestSample(self._clock(), path, method, status_code, response_ms)
        )

    def uptime_seconds(self) -> int:
        return round(time.monotonic() - self._started)

    def metrics(self) -> dict[str, Any]:
        now = self._clock()
        hour_ago = now - timedelta(hours=1)
        recent = [s.response_ms for s in self.samples if s.timestamp > hour_ago]
        error_rate = (self.errors / self.requests) * 100 if self.requests else 0.0
        metrics: dict[str, Any] = {
            "requests": {"total": self.requests, "errors": self.errors, "errorRate": error_rate},
            "performance": {
                "avgResponseTime": round(sum(recent) / len(recent)) if recent else 0,
                "maxResponseTime": round(max(recent)) if recent else 0,
                "requestsLastHour": len(recent),
            },
            "system": {
                "memory": {"rss": _resident_memory_mb()},
                "uptime": self.uptime_seconds(),
                "loadAverage": list(os.getloadavg()) if hasattr(os, "getloadavg") else [],
                "platform": platform.system().lower(),
                "pythonVersion": platform.python_version(),
            },
            "timestamp": now.isoformat(),
        }
        if self._realtime_stats is not None:
            metrics["realtime"] = self._realtime_stats()
        return metrics

    def health_status(self) -> dict[str, Any]:
        """Metrics plus a list of threshold violations; ``warning`` when any exist."""
        metrics = self.metrics()
        issues = []
        if metrics["requests"]["errorRate"] > ERROR_RATE_THRESHOLD:
            issues.append(f"High error rate: {metrics['requests']['errorRate']:.2f}%")
        if metrics["performance"]["avgResponseTime"] > SLOW_RESPONSE_MS:
            issues.append(f"Slow response time: {metrics['performance']['avgResponseTime']}ms")
        if metrics["system"]["memory"]["rss"] > HIGH_MEMORY_MB:
            issues.append(f"High memory usage: {metrics['system']['memory']['rss']}MB")
        return {
            "status": "healthy" if not issues else "warning",
            "issues": issues,
            "metrics": metrics,
        }


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Feeds every HTTP request's status and duration into a PerformanceMonitor."""

    def __init__(self, app: ASGIApp, monitor: PerformanceMonitor) -> None:
        super().__init__(app)
        self.monitor = monitor

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.monitor.record(request.url.path, request.method, status_code, elapsed_ms)
