"""Opt-in logging of outgoing API traffic (MEMORYSCAPE_LOG_REQUESTS=true)."""

import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

REDACTED = "***REDACTED***"
_SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})
_SENSITIVE_FIELDS = frozenset({"api_key", "signature", "password", "token", "secret"})


def should_log_requests() -> bool:
    """Whether outgoing request logging is switched on."""
    return os.getenv("MEMORYSCAPE_LOG_REQUESTS", "").lower() == "true"


def redact(values: dict[str, Any], sensitive: frozenset[str]) -> dict[str, Any]:
    """Replace sensitive values, matching keys case-insensitively."""
    return {k: REDACTED if k.lower() in sensitive else v for k, v in values.items()}


def log_api_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    payload: dict[str, Any] | None = None,
) -> None:
    """Log an outgoing request with credentials redacted."""
    if not should_log_requests():
        return
    parts = [f"{method} {url}"]
    if headers:
        parts.append(f"Headers: {json.dumps(redact(headers, _SENSITIVE_HEADERS), indent=2)}")
    if payload is not None:
        safe_payload = redact(payload, _SENSITIVE_FIELDS)
        parts.append(f"Payload: {json.dumps(safe_payload, indent=2, default=str)}")
    logger.info("API Request:\n" + "\n".join(parts))


def log_api_response(method: str, url: str, status: int, elapsed_seconds: float) -> None:
    """Log the outcome of an outgoing request."""
    if not should_log_requests():
        return
    logger.info(f"API Response: {method} {url} -> {status} in {elapsed_seconds * 1000:.0f}ms")
