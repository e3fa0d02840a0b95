"""Memory CRUD, reaction, comment and pin endpoints."""

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
from memoryscape.adapters.web.schemas import (
    CommentRequest,
    MemoryCreate,
    MemoryUpdate,
    ReactRequest,
)
from memoryscape.domain.models.errors import ValidationFailed
from memoryscape.domain.models.memory_item import MemoryType

MEMORIES_PER_PAGE = 20


async def list_memories(request: Request) -> JSONResponse:
    user = await current_user(request)
    page, limit, skip = pagination(request, MEMORIES_PER_PAGE)
    memory_type = request.query_params.get("type") or None
    if memory_type is not None and memory_type not in {t.value for t in MemoryType}:
        raise ValidationFailed(f"Unknown memory type '{memory_type}'")
    memories, total = await container(request).memories.list_for_capsule(
        user.id, request.path_params["capsule_id"], memory_type, skip, limit
    )
    return success(
        {
            "memories": [memory.to_payload() for memory in memories],
            "pagination": pagination_payload(page, limit, total),
        }
    )


async def create_memory(request: Request) -> JSONResponse:
    user = await current_user(request)
    body = await read_body(request, MemoryCreate)
    memory = await container(request).memories.create(
        user, body.capsule_id, body.model_dump(exclude={"capsule_id"})
    )
    return success(
        {"memory": memory.to_payload()}, message="Memory created successfully", status_code=201
    )


async def get_memory(request: Request) -> JSONResponse:
    user = await current_user(request)
    memory = await container(request).memories.get(user.id, request.path_params["memory_id"])
    return success({"memory": memory.to_payload()})


async def update_memory(request: Request) -> JSONResponse:
    user = await current_user(request)
    body = await read_body(request, MemoryUpdate)
    memory = await container(request).memories.update(
        user, request.path_params["memory_id"], body.model_dump(exclude_unset=True)
    )
    return success({"memory": memory.to_payload()}, message="Memory updated successfully")


async def delete_memory(request: Request) -> JSONResponse:
    user = await current_user(request)
    await container(request).memories.delete(user, request.path_params["memory_id"])
    return success(message="Memory deleted successfully")


async def react(request: Request) -> JSONResponse:
    user = await current_user(request)
    body = await read_body(request, ReactRequest)
    reactions, action = await container(request).memories.react(
        user, request.path_params["memory_id"], body.emoji
    )
    return success(
        {"reactions": [reaction.to_payload() for reaction in reactions], "action": action},
        message=f"Reaction {action}",
    )


async def comment(request: Request) -> JSONResponse:
    user = await current_user(request)
    body = await read_body(request, CommentRequest)
    new_comment = await container(request).memories.comment(
        user, request.path_params["memory_id"], body.text
    )
    payload = {**new_comment.to_payload(), "user": user.profile().to_payload()}
    return success({"comment": payload}, message="Comment added successfully", status_code=201)


async def pin(request: Request) -> JSONResponse:
    user = await current_user(request)
    is_pinned = await container(request).memories.toggle_pin(
        user, request.path_params["memory_id"]
    )
    message = "Memory pinned" if is_pinned else "Memory unpinned"
    return success({"isPinned": is_pinned}, message=message)


routes = [
    Route("/api/memories/capsule/{capsule_id}", list_memories, methods=["GET"]),
    Route("/api/memories", create_memory, methods=["POST"]),
    Route("/api/memories/{memory_id}", get_memory, methods=["GET"]),
    Route("/api/memories/{memory_id}", update_memory, methods=["PUT"]),
    Route("/api/memories/{memory_id}", delete_memory, methods=["DELETE"]),
    Route("/api/memories/{memory_id}/react", react, methods=["POST"]),
    Route("/api/memories/{memory_id}/comment", comment, methods=["POST"]),
    Route("/api/memories/{memory_id}/pin", pin, methods=["POST"]),
]
