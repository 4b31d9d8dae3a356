# music_combinators/core/storage_utils.py
"""
Media Gateway: durable storage for audio, video and image uploads.

Services depend on the `MediaGateway` interface and receive an instance
through `get_media_gateway()`, so tests can override it with a fake.

Limits are enforced by `validate_media()` before anything is uploaded:

    audio : <= 15MB, audio/mpeg
    video : <= 50MB, video/mp4 (60s duration policy is checked client-side)
    image : <= 5MB,  image/jpeg | image/png | image/webp
"""

import re
import time
from dataclasses import dataclass
from typing import Literal

from fastapi import UploadFile

from music_combinators.core.config import get_settings
from music_combinators.core.errors import ValidationError
from music_combinators.core.supabase_client import supabase_admin

MediaCategory = Literal["audio", "video", "image"]

MB = 1024 * 1024

MAX_MEDIA_BYTES: dict[str, int] = {
    "audio": 15 * MB,
    "video": 50 * MB,
    "image": 5 * MB,
}

# content type -> file extension
ALLOWED_MEDIA_TYPES: dict[str, dict[str, str]] = {
    "audio": {
        "audio/mpeg": "mp3",
        "audio/mp3": "mp3",
    },
    "video": {
        "video/mp4": "mp4",
    },
    "image": {
        "image/jpeg": "jpg",
        "image/jpg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
    },
}


@dataclass(frozen=True)
class MediaUpload:
    """Binary payload taken off a multipart request."""

    content_type: str
    data: bytes
    filename: str | None = None


def validate_media(category: MediaCategory, upload: MediaUpload | None) -> str:
    """
    Check presence, MIME type and size of an upload.

    Returns:
        The file extension to store the object under.

    Raises:
        ValidationError: if the payload is missing, empty, of the wrong
        type, or too large.
    """
    if upload is None or not upload.data:
        raise ValidationError(f"{category.capitalize()} file is required")

    allowed = ALLOWED_MEDIA_TYPES[category]
    if upload.content_type not in allowed:
        raise ValidationError(
            f"Invalid {category} file type. Allowed types: {', '.join(allowed)}"
        )

    max_bytes = MAX_MEDIA_BYTES[category]
    if len(upload.data) > max_bytes:
        raise ValidationError(f"File size exceeds {max_bytes // MB}MB limit")

    return allowed[upload.content_type]


def media_from_upload(file: UploadFile | None) -> MediaUpload | None:
    """Read a multipart file into memory; an empty field counts as absent."""
    if file is None or not file.filename:
        return None
    return MediaUpload(
        content_type=file.content_type or "",
        data=file.file.read(),
        filename=file.filename,
    )


def build_object_path(
    category: str,
    owner_id: str,
    ext: str,
    filename: str | None = None,
) -> str:
    """
    Object path pattern:
        <category>/<owner_id>/<millis>_<sanitized name>.<ext>
    """
    stem = (filename or "upload").rsplit(".", 1)[0]
    sanitized = re.sub(r"[^A-Za-z0-9]", "_", stem) or "upload"
    return f"{category}/{owner_id}/{int(time.time() * 1000)}_{sanitized}.{ext}"


class MediaGateway:
    """Interface consumed by content services."""

    def put(
        self,
        category: MediaCategory,
        owner_id: str,
        upload: MediaUpload,
    ) -> str:
        raise NotImplementedError

    def delete(self, url: str) -> None:
        raise NotImplementedError


class SupabaseMediaGateway(MediaGateway):
    """
    Supabase Storage implementation.

    Objects live in a single public bucket; the public URL is the
    durable locator stored on the content row.
    """

    def __init__(self, bucket: str):
        self.bucket = bucket

    def _storage(self):
        return supabase_admin().storage.from_(self.bucket)

    def put(
        self,
        category: MediaCategory,
        owner_id: str,
        upload: MediaUpload,
    ) -> str:
        """
        Upload raw bytes and return the public URL.

        Raises:
            Any exception raised by the Supabase client if upload fails.
        """
        ext = validate_media(category, upload)
        path = build_object_path(category, owner_id, ext, upload.filename)
        self._storage().upload(
            path,
            upload.data,
            {"content-type": upload.content_type, "upsert": "false"},
        )
        return self._storage().get_public_url(path)

    def extract_path_from_public_url(self, url: str) -> str | None:
        """
        Given a public URL, extract the object path relative to the bucket.

        Example:
            https://<proj>.supabase.co/storage/v1/object/public/<bucket>/audio/u/1_a.mp3
            -> 'audio/u/1_a.mp3'
        """
        marker = f"/storage/v1/object/public/{self.bucket}/"
        idx = url.find(marker)
        if idx == -1:
            return None
        return url[idx + len(marker) :].split("?", 1)[0]

    def delete(self, url: str) -> None:
        """
        Delete an object by its public URL.
        No-op if the URL does not belong to this bucket.
        """
        path = self.extract_path_from_public_url(url)
        if path:
            self._storage().remove([path])


def get_media_gateway() -> MediaGateway:
    """FastAPI dependency; override in tests."""
    return SupabaseMediaGateway(get_settings().STORAGE_BUCKET)
