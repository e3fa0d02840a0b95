"""Media and avatar upload endpoints backed by the configured MediaStore."""

import logging

from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from memoryscape.adapters.media.cloudinary_media_store import MediaUploadError
from memoryscape.adapters.web.request_helpers import container, current_user
from memoryscape.adapters.web.responses import failure, success
from memoryscape.domain.models.capsule import ContributorRole, role_satisfies
from memoryscape.domain.models.errors import AccessDenied
from memoryscape.domain.ports.media_store import MediaStore

logger = logging.getLogger(__name__)

ALLOWED_MEDIA_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "video/mp4",
        "video/mpeg",
        "video/quicktime",
        "video/webm",
        "audio/mpeg",
        "audio/wav",
        "audio/ogg",
        "audio/mp3",
    }
)


def _media_store(request: Request) -> MediaStore | None:
    return container(request).media


async def _read_upload(
    request: Request, field: str, max_bytes: int
) -> tuple[UploadFile, bytes, dict[str, str]] | JSONResponse:
    """Read one file field of a multipart form, or the error response to return."""
    form = await request.form()
    upload = form.get(field)
    if not isinstance(upload, UploadFile):
        return failure("No file uploaded", 400)
    too_large = failure(f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB", 413)
    try:
        if upload.size is not None and upload.size > max_bytes:
            return too_large
        # At most one byte past the limit is buffered.
        content = await upload.read(max_bytes + 1)
    finally:
        await upload.close()
    if len(content) > max_bytes:
        return too_large
    fields = {key: value for key, value in form.items() if isinstance(value, str)}
    return upload, content, fields


async def upload_media(request: Request) -> JSONResponse:
    user = await current_user(request)
    store = _media_store(request)
    if store is None:
        return failure("Media uploads are not configured", 503)

    result = await _read_upload(request, "file", container(request).config.max_upload_bytes)
    if isinstance(result, JSONResponse):
        return result
    upload, content, fields = result

    content_type = upload.content_type or ""
    if content_type not in ALLOWED_MEDIA_TYPES:
        return failure("Invalid file type. Only images, videos, and audio files are allowed.", 400)
    capsule_id = fields.get("capsuleId", "").strip()
    if not capsule_id:
        return failure("Capsule ID is required", 400)

    capsule = await container(request).capsules.require_member(user.id, capsule_id)
    role = capsule.role_of(user.id)
    if role is None or not role_satisfies(role, ContributorRole.CONTRIBUTOR):
        raise AccessDenied("Access denied - contributor privileges required")

    try:
        uploaded = await store.upload(
            content,
            upload.filename or "upload",
            content_type,
            folder=f"memoryscape/capsules/{capsule_id}",
        )
    except MediaUploadError as e:
        logger.error(f"Media upload for capsule {capsule_id} failed: {e}")
        return failure("Failed to upload file", 500)

    thumbnail_url = None
    if content_type.startswith("video/"):
        thumbnail_url = store.video_thumbnail_url(uploaded.url)

    return success(
        {
            "url": uploaded.url,
            "thumbnailUrl": thumbnail_url,
            "publicId": uploaded.public_id,
            "metadata": {
                "size": uploaded.bytes,
                "format": uploaded.format,
                "dimensions": {"width": uploaded.width, "height": uploaded.height},
            },
        },
        message="File uploaded successfully",
    )


async def upload_avatar(request: Request) -> JSONResponse:
    user = await current_user(request)
    store = _media_store(request)
    if store is None:
        return failure("Media uploads are not configured", 503)

    result = await _read_upload(request, "avatar", container(request).config.max_upload_bytes)
    if isinstance(result, JSONResponse):
        return result
    upload, content, _ = result

    content_type = upload.content_type or ""
    if not content_type.startswith("image/") or content_type not in ALLOWED_MEDIA_TYPES:
        return failure("Only image files are allowed for avatars", 400)

    try:
        uploaded = await store.upload(
            content, upload.filename or "avatar", content_type, folder="memoryscape/avatars"
        )
    except MediaUploadError as e:
        logger.error(f"Avatar upload for user {user.id} failed: {e}")
        return failure("Failed to upload avatar", 500)

    await container(request).users.set_avatar(user.id, uploaded.url)
    return success({"avatarUrl": uploaded.url}, message="Avatar uploaded successfully")


routes = [
    Route("/api/upload/media", upload_media, methods=["POST"]),
    Route("/api/upload/avatar", upload_avatar, methods=["POST"]),
]
