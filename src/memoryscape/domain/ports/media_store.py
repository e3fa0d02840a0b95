"""Media store port."""

from typing import Protocol

from pydantic import BaseModel, ConfigDict


class UploadedMedia(BaseModel):
    """Result of a successful upload."""

    model_config = ConfigDict(frozen=True)

    url: str
    public_id: str
    format: str | None = None
    width: int | None = None
    height: int | None = None
    bytes: int | None = None


class MediaStore(Protocol):
    """Port for storing uploaded media with a hosted provider."""

    async def upload(
        self, content: bytes, filename: str, content_type: str, folder: str
    ) -> UploadedMedia:
        """Upload a file into a folder."""
        ...

    def video_thumbnail_url(self, video_url: str) -> str | None:
        """Thumbnail URL for an uploaded video, if the provider can derive one."""
        ...
