"""Helpers shared by route handlers: authentication, bodies and pagination."""

import json
import logging
from typing import Any, TypeVar

from pydantic import BaseModel
from starlette.requests import HTTPConnection, Request
from starlette.responses import JSONResponse

from memoryscape.adapters.web.container import Container
from memoryscape.adapters.web.responses import failure
from memoryscape.domain.models.errors import Unauthorized, ValidationFailed
from memoryscape.domain.models.user import User

logger = logging.getLogger(__name__)

BodyT = TypeVar("BodyT", bound=BaseModel)

MAX_PAGE_LIMIT = 100


def container(connection: HTTPConnection) -> Container:
    return connection.app.state.container


def bearer_token(connection: HTTPConnection) -> str | None:
    scheme, _, credentials = connection.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


async def current_user(request: Request) -> User:
    """Authenticate the request's bearer token and remember the user for analytics."""
    token = bearer_token(request)
    if token is None:
        raise Unauthorized("No token, authorization denied")
    user = await container(request).auth.authenticate(token)
    request.state.user_id = user.id
    return user


async def read_body(request: Request, model: type[BodyT]) -> BodyT:
    """Parse and validate a JSON body. The raw body is kept on ``request.state`` for analytics."""
    raw = await request.body()
    try:
        data: Any = json.loads(raw) if raw else {}
    except ValueError as e:
        raise ValidationFailed("Malformed JSON body") from e
    if not isinstance(data, dict):
        raise ValidationFailed("JSON body must be an object")
    request.state.json_body = data
    return model.model_validate(data)


def pagination(request: Request, default_limit: int) -> tuple[int, int, int]:
    """Read ``page`` and ``limit`` query parameters.

    Returns:
        Tuple of (page, limit, skip).
    """
    try:
        page = int(request.query_params.get("page", 1))
        limit = int(request.query_params.get("limit", default_limit))
    except ValueError as e:
        raise ValidationFailed("Page and limit must be integers") from e
    if page < 1:
        raise ValidationFailed("Page must be a positive integer")
    if not 1 <= limit <= MAX_PAGE_LIMIT:
        raise ValidationFailed(f"Limit must be between 1 and {MAX_PAGE_LIMIT}")
    return page, limit, (page - 1) * limit


def pagination_payload(page: int, limit: int, total: int) -> dict[str, int]:
    return {"page": page, "limit": limit, "total": total, "pages": -(-total // limit)}


def admin_denial(request: Request) -> JSONResponse | None:
    """Check the X-Admin-Token header; returns the error response when access is denied."""
    expected_token = container(request).config.admin_command_token
    if not expected_token:
        return failure("Admin endpoints disabled - ADMIN_COMMAND_TOKEN not configured", 503)
    if request.headers.get("X-Admin-Token", "") != expected_token:
        logger.warning(f"Unauthorized attempt to call admin endpoint {request.url.path}")
        return failure("Admin access required", 403)
    return None
