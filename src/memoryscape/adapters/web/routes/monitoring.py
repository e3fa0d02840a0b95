"""Health, metrics and admin maintenance endpoints."""

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from memoryscape.adapters.web.request_helpers import admin_denial, container
from memoryscape.adapters.web.responses import success
from memoryscape.domain.models.base import utc_now

logger = logging.getLogger(__name__)

RESET_CLOSE_CODE = 1012


async def health(request: Request) -> JSONResponse:
    """Liveness check for load balancers."""
    return JSONResponse(
        {
            "status": "OK",
            "timestamp": utc_now().isoformat(),
            "uptime": container(request).monitor.uptime_seconds(),
        }
    )


async def monitoring_health(request: Request) -> JSONResponse:
    denied = admin_denial(request)
    if denied is not None:
        return denied
    status = container(request).monitor.health_status()
    return success(status, status_code=200 if status["status"] == "healthy" else 503)


async def monitoring_metrics(request: Request) -> JSONResponse:
    denied = admin_denial(request)
    if denied is not None:
        return denied
    return success(container(request).monitor.metrics())


async def reset_connections(request: Request) -> JSONResponse:
    """Close every realtime connection and clear presence without announcing departures.

    Typical usage:
        curl -X POST https://your-host/admin/reset-connections -H "X-Admin-Token: $ADMIN_COMMAND_TOKEN"
    """
    denied = admin_denial(request)
    if denied is not None:
        return denied

    registry = container(request).registry
    users_removed = len(registry.all_active())
    connections = registry.reset()
    for connection in connections:
        try:
            await connection.close(RESET_CLOSE_CODE)
        except Exception:
            logger.exception(f"Failed to close connection {connection.connection_id} during reset")

    logger.info(
        "Admin reset_connections completed: "
        f"disconnected_connections={len(connections)}, presence_removed={users_removed}"
    )
    return JSONResponse(
        {
            "status": "ok",
            "disconnected_connections": len(connections),
            "presence_removed": users_removed,
        }
    )


routes = [
    Route("/api/health", health, methods=["GET"]),
    Route("/api/monitoring/health", monitoring_health, methods=["GET"]),
    Route("/api/monitoring/metrics", monitoring_metrics, methods=["GET"]),
    Route("/admin/reset-connections", reset_connections, methods=["POST"]),
]
