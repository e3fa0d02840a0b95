"""HTTP route tables of the web adapter."""

from memoryscape.adapters.web.routes import (
    ai,
    analytics,
    auth,
    capsules,
    memories,
    monitoring,
    upload,
    users,
)

api_routes = [
    *monitoring.routes,
    *auth.routes,
    *users.routes,
    *capsules.routes,
    *memories.routes,
    *upload.routes,
    *ai.routes,
    *analytics.routes,
]

__all__ = ["api_routes"]
