"""Error taxonomy shared by services, the realtime layer and the web boundary."""


class MemoryscapeError(Exception):
    """Base class for expected, user-facing failures."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(MemoryscapeError):
    """Missing, malformed or expired credential."""

    code = "unauthorized"


class AccessDenied(MemoryscapeError):
    """Authenticated, but not entitled to the requested resource."""

    code = "access_denied"


class NotFound(MemoryscapeError):
    """Referenced entity does not exist."""

    code = "not_found"


class TransientStoreFailure(MemoryscapeError):
    """Persistence lookup failed; callers must deny by default."""

    code = "store_unavailable"


class ValidationFailed(MemoryscapeError):
    """Request data violates a business rule."""

    code = "validation_failed"


class Conflict(MemoryscapeError):
    """Request conflicts with the current state (e.g. duplicate membership)."""

    code = "conflict"
