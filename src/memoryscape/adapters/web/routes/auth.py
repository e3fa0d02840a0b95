"""Registration, login and current-user endpoints."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from memoryscape.adapters.web.request_helpers import container, current_user, read_body
from memoryscape.adapters.web.responses import success
from memoryscape.adapters.web.schemas import LoginRequest, RegisterRequest


async def register(request: Request) -> JSONResponse:
    body = await read_body(request, RegisterRequest)
    user, token = await container(request).auth.register(body.name, body.email, body.password)
    request.state.user_id = user.id
    return success(
        {"user": user.to_payload(), "token": token},
        message="User registered successfully",
        status_code=201,
    )


async def login(request: Request) -> JSONResponse:
    body = await read_body(request, LoginRequest)
    user, token = await container(request).auth.login(body.email, body.password)
    request.state.user_id = user.id
    return success({"user": user.to_payload(), "token": token}, message="Login successful")


async def me(request: Request) -> JSONResponse:
    user = await current_user(request)
    return success({"user": user.to_payload()})


routes = [
    Route("/api/auth/register", register, methods=["POST"]),
    Route("/api/auth/login", login, methods=["POST"]),
    Route("/api/auth/me", me, methods=["GET"]),
]
