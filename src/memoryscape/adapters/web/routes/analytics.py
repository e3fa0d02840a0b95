"""Admin analytics endpoints, guarded by the X-Admin-Token header."""

from datetime import UTC, datetime

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from memoryscape.adapters.web.request_helpers import admin_denial, container
from memoryscape.adapters.web.responses import success
from memoryscape.domain.models.errors import ValidationFailed


def _date_param(request: Request, name: str) -> datetime | None:
    raw = request.query_params.get(name)
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw)
    except ValueError as e:
        raise ValidationFailed(f"{name} must be an ISO 8601 date") from e
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


async def list_analytics(request: Request) -> JSONResponse:
    denied = admin_denial(request)
    if denied is not None:
        return denied
    buckets = await container(request).analytics.aggregate(
        start=_date_param(request, "startDate"),
        end=_date_param(request, "endDate"),
        event=request.query_params.get("event") or None,
        user_id=request.query_params.get("userId") or None,
    )
    return success(
        {
            "analytics": [
                {
                    "event": bucket.event,
                    "date": bucket.date,
                    "count": bucket.count,
                    "uniqueUsers": bucket.unique_users,
                }
                for bucket in buckets
            ]
        }
    )


async def dashboard(request: Request) -> JSONResponse:
    denied = admin_denial(request)
    if denied is not None:
        return denied
    return success(await container(request).analytics.dashboard())


routes = [
    Route("/api/analytics", list_analytics, methods=["GET"]),
    Route("/api/analytics/dashboard", dashboard, methods=["GET"]),
]
