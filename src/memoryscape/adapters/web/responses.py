"""JSON response envelope and the mapping of domain errors to HTTP status codes."""

import logging
from typing import Any

from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from memoryscape.domain.models.errors import (
    AccessDenied,
    Conflict,
    MemoryscapeError,
    NotFound,
    TransientStoreFailure,
    Unauthorized,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[MemoryscapeError], int] = {
    Unauthorized: 401,
    AccessDenied: 403,
    NotFound: 404,
    ValidationFailed: 400,
    Conflict: 409,
    TransientStoreFailure: 503,
}


def success(
    data: dict[str, Any] | None = None, message: str | None = None, status_code: int = 200
) -> JSONResponse:
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return JSONResponse(body, status_code=status_code)


def failure(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse({"success": False, "message": message, **extra}, status_code=status_code)


def status_for(exc: MemoryscapeError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


async def handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, MemoryscapeError)
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return failure(exc.message, status_code, code=exc.code)


async def handle_validation_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, ValidationError)
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return failure("Validation failed", 400, code=ValidationFailed.code, errors=errors)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return failure("Internal server error", 500)
