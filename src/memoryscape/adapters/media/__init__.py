"""Media storage adapters."""

from memoryscape.adapters.media.cloudinary_media_store import (
    CloudinaryMediaStore,
    MediaUploadError,
)

__all__ = ["CloudinaryMediaStore", "MediaUploadError"]
