"""Capsule listing, discovery, membership and room presence endpoints."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from memoryscape.adapters.web.request_helpers import (
    container,
    current_user,
    pagination,
    pagination_payload,
    read_body,
)
from memoryscape.adapters.web.responses import success
from memoryscape.adapters.web.schemas import CapsuleCreate, CapsuleUpdate, JoinRequest
from memoryscape.application.services.capsule_service import capsule_payload
from memoryscape.domain.models.capsule import ContributorRole

CAPSULES_PER_PAGE = 10
PUBLIC_CAPSULES_PER_PAGE = 12
_MANAGER_ROLES = (ContributorRole.OWNER, ContributorRole.ADMIN)


async def list_capsules(request: Request) -> JSONResponse:
    user = await current_user(request)
    page, limit, skip = pagination(request, CAPSULES_PER_PAGE)
    capsules, total = await container(request).capsules.list_for_member(user.id, skip, limit)
    return success(
        {
            "capsules": [capsule_payload(c, c.role_of(user.id) in _MANAGER_ROLES) for c in capsules],
            "pagination": pagination_payload(page, limit, total),
        }
    )


async def create_capsule(request: Request) -> JSONResponse:
    user = await current_user(request)
    body = await read_body(request, CapsuleCreate)
    capsule = await container(request).capsules.create(
        user,
        title=body.title,
        description=body.description,
        type=body.type,
        release_date=body.release_date,
        theme=body.theme,
        tags=body.tags,
    )
    return success(
        {"capsule": capsule_payload(capsule, include_invite_code=True)},
        message="Capsule created successfully",
        status_code=201,
    )


async def explore(request: Request) -> JSONResponse:
    await current_user(request)
    page, limit, skip = pagination(request, PUBLIC_CAPSULES_PER_PAGE)
    search = request.query_params.get("search", "").strip()
    capsules, total = await container(request).capsules.explore(search, skip, limit)
    return success(
        {
            "capsules": [capsule_payload(c) for c in capsules],
            "pagination": pagination_payload(page, limit, total),
        }
    )


async def get_capsule(request: Request) -> JSONResponse:
    user = await current_user(request)
    capsule, role = await container(request).capsules.get(
        user.id, request.path_params["capsule_id"]
    )
    return success(
        {
            "capsule": capsule_payload(capsule, include_invite_code=role in _MANAGER_ROLES),
            "userRole": role.value,
        }
    )


async def update_capsule(request: Request) -> JSONResponse:
    user = await current_user(request)
    body = await read_body(request, CapsuleUpdate)
    capsule = await container(request).capsules.update(
        user, request.path_params["capsule_id"], body.changes()
    )
    return success(
        {"capsule": capsule_payload(capsule, include_invite_code=True)},
        message="Capsule updated successfully",
    )


async def join_capsule(request: Request) -> JSONResponse:
    user = await current_user(request)
    body = await read_body(request, JoinRequest)
    capsule = await container(request).capsules.join(
        user, request.path_params["capsule_id"], body.invite_code
    )
    return success({"capsule": capsule_payload(capsule)}, message="Successfully joined capsule")


async def leave_capsule(request: Request) -> JSONResponse:
    user = await current_user(request)
    await container(request).capsules.leave(user, request.path_params["capsule_id"])
    return success(message="Successfully left capsule")


async def active_users(request: Request) -> JSONResponse:
    user = await current_user(request)
    services = container(request)
    capsule = await services.capsules.require_member(user.id, request.path_params["capsule_id"])
    members = services.registry.active_members_of(capsule.id)
    return success(
        {
            "activeUsers": [
                member.model_dump(by_alias=True, mode="json", exclude={"rooms"})
                for member in members
            ],
            "count": len(members),
        }
    )


routes = [
    Route("/api/capsules", list_capsules, methods=["GET"]),
    Route("/api/capsules", create_capsule, methods=["POST"]),
    Route("/api/capsules/explore/public", explore, methods=["GET"]),
    Route("/api/capsules/{capsule_id}", get_capsule, methods=["GET"]),
    Route("/api/capsules/{capsule_id}", update_capsule, methods=["PUT"]),
    Route("/api/capsules/{capsule_id}/join", join_capsule, methods=["POST"]),
    Route("/api/capsules/{capsule_id}/leave", leave_capsule, methods=["DELETE"]),
    Route("/api/capsules/{capsule_id}/active-users", active_users, methods=["GET"]),
]
