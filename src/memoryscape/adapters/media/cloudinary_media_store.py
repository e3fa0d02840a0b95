"""Media store backed by Cloudinary's signed upload REST API."""

import hashlib
import logging
import re
import time
from typing import TYPE_CHECKING, Any

import aiohttp

from memoryscape.adapters.api_request_logger import log_api_request, log_api_response
from memoryscape.domain.ports.media_store import UploadedMedia

if TYPE_CHECKING:
    from aiohttp import ClientSession

logger = logging.getLogger(__name__)

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"
VIDEO_THUMBNAIL_TRANSFORMATION = "so_1,w_300,h_200,c_fill"


class MediaUploadError(Exception):
    """The provider rejected or failed an upload."""


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    """Cloudinary request signature: SHA-1 of the sorted ``k=v`` pairs followed by the secret."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] != "")
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()


class CloudinaryMediaStore:
    """Uploads files with ``resource_type=auto`` into per-capsule or avatar folders."""

    def __init__(
        self,
        session: "ClientSession",
        cloud_name: str,
        api_key: str,
        api_secret: str,
        timeout_seconds: float = 120,
    ) -> None:
        self._session = session
        self._api_key = api_key
        self._api_secret = api_secret
        self._upload_url = f"{CLOUDINARY_API_BASE}/{cloud_name}/auto/upload"
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def upload(
        self, content: bytes, filename: str, content_type: str, folder: str
    ) -> UploadedMedia:
        params = {"folder": folder, "timestamp": str(int(time.time()))}
        signed = {**params, "api_key": self._api_key, "signature": sign_params(params, self._api_secret)}

        form = aiohttp.FormData()
        for key, value in signed.items():
            form.add_field(key, value)
        form.add_field("file", content, filename=filename, content_type=content_type)

        log_api_request("POST", self._upload_url, payload={**signed, "file": filename})
        started = time.monotonic()
        try:
            async with self._session.post(
                self._upload_url, data=form, timeout=self._timeout
            ) as response:
                log_api_response("POST", self._upload_url, response.status, time.monotonic() - started)
                if response.status != 200:
                    body = await response.text()
                    raise MediaUploadError(f"Cloudinary returned status {response.status}: {body[:200]}")
                data = await response.json()
        except aiohttp.ClientError as e:
            raise MediaUploadError(f"Cloudinary upload failed: {e}") from e

        logger.info(f"Uploaded {filename} to {folder} ({data.get('bytes')} bytes)")
        return UploadedMedia(
            url=data["secure_url"],
            public_id=data["public_id"],
            format=data.get("format"),
            width=data.get("width"),
            height=data.get("height"),
            bytes=data.get("bytes"),
        )

    def video_thumbnail_url(self, video_url: str) -> str | None:
        """First-second JPEG frame of an uploaded video, as a delivery transformation URL."""
        if "/video/upload/" not in video_url:
            return None
        transformed = video_url.replace(
            "/video/upload/", f"/video/upload/{VIDEO_THUMBNAIL_TRANSFORMATION}/", 1
        )
        return re.sub(r"\.[A-Za-z0-9]+$", ".jpg", transformed)
