"""Profile, statistics and presence endpoints for users."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from memoryscape.adapters.web.request_helpers import container, current_user, read_body
from memoryscape.adapters.web.responses import success
from memoryscape.adapters.web.schemas import ProfileUpdate


async def get_profile(request: Request) -> JSONResponse:
    user = await current_user(request)
    return success({"user": user.to_payload()})


async def update_profile(request: Request) -> JSONResponse:
    user = await current_user(request)
    body = await read_body(request, ProfileUpdate)
    updated = await container(request).users.update_profile(user.id, body.model_dump())
    return success({"user": updated.to_payload()}, message="Profile updated successfully")


async def stats(request: Request) -> JSONResponse:
    user = await current_user(request)
    return success({"stats": await container(request).users.stats(user.id)})


async def online(request: Request) -> JSONResponse:
    await current_user(request)
    active = container(request).registry.all_active()
    users = [
        {
            "userId": identity.user_id,
            "user": identity.user.to_payload(),
            "connectedAt": identity.connected_at.isoformat(),
            "lastActiveAt": identity.last_active_at.isoformat(),
        }
        for identity in active
    ]
    return success({"users": users, "count": len(users)})


async def public_profile(request: Request) -> JSONResponse:
    await current_user(request)
    user_id = request.path_params["user_id"]
    services = container(request)
    profile = await services.users.public_profile(user_id)
    profile["isOnline"] = services.registry.is_online(user_id)
    return success({"user": profile})


routes = [
    Route("/api/users/profile", get_profile, methods=["GET"]),
    Route("/api/users/profile", update_profile, methods=["PUT"]),
    Route("/api/users/stats", stats, methods=["GET"]),
    Route("/api/users/online", online, methods=["GET"]),
    Route("/api/users/{user_id}", public_profile, methods=["GET"]),
]
