"""AI helper endpoints. They sit behind a stricter rate limit than the rest of the API."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from memoryscape.adapters.web.request_helpers import container, current_user, read_body
from memoryscape.adapters.web.responses import failure, success
from memoryscape.adapters.web.schemas import (
    EnhanceRequest,
    InsightsRequest,
    SummaryRequest,
    TagsRequest,
    TextRequest,
)
from memoryscape.application.services.ai_service import AiService


async def _ai_service(request: Request) -> AiService | JSONResponse:
    """Authenticate, then return the AI service or a 503 response when AI is disabled."""
    await current_user(request)
    service = container(request).ai
    if not service.enabled:
        return failure("AI features are not configured", 503)
    return service


async def generate_title(request: Request) -> JSONResponse:
    service = await _ai_service(request)
    if isinstance(service, JSONResponse):
        return service
    body = await read_body(request, TextRequest)
    title = await service.generate_title(body.text, body.type)
    if title is None:
        return failure("Failed to generate title", 500)
    return success({"title": title})


async def analyze_mood(request: Request) -> JSONResponse:
    service = await _ai_service(request)
    if isinstance(service, JSONResponse):
        return service
    body = await read_body(request, TextRequest)
    return success({"mood": await service.analyze_mood(body.text)})


async def enhance_text(request: Request) -> JSONResponse:
    service = await _ai_service(request)
    if isinstance(service, JSONResponse):
        return service
    body = await read_body(request, EnhanceRequest)
    return success({"enhancedText": await service.enhance_text(body.text)})


async def generate_tags(request: Request) -> JSONResponse:
    service = await _ai_service(request)
    if isinstance(service, JSONResponse):
        return service
    body = await read_body(request, TagsRequest)
    return success({"tags": await service.generate_tags(body.text, body.existing_tags)})


async def capsule_summary(request: Request) -> JSONResponse:
    service = await _ai_service(request)
    if isinstance(service, JSONResponse):
        return service
    body = await read_body(request, SummaryRequest)
    summary = await service.generate_summary(body.memories)
    if summary is None:
        return failure("Failed to generate summary", 500)
    return success({"summary": summary})


async def capsule_insights(request: Request) -> JSONResponse:
    service = await _ai_service(request)
    if isinstance(service, JSONResponse):
        return service
    body = await read_body(request, InsightsRequest)
    insights = await service.generate_capsule_insights(body.capsule, body.memories)
    return success({"insights": insights})


routes = [
    Route("/api/ai/generate-title", generate_title, methods=["POST"]),
    Route("/api/ai/analyze-mood", analyze_mood, methods=["POST"]),
    Route("/api/ai/enhance-text", enhance_text, methods=["POST"]),
    Route("/api/ai/generate-tags", generate_tags, methods=["POST"]),
    Route("/api/ai/capsule-summary", capsule_summary, methods=["POST"]),
    Route("/api/ai/capsule-insights", capsule_insights, methods=["POST"]),
]
