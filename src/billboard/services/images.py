"""Blob storage client for submission images.

Images are validated locally (size and MIME type) before any network call and
then streamed to the storage bucket in chunks so callers can report progress.
The storage API follows the object-store convention of ``POST
/object/{bucket}/{path}`` for uploads and ``/object/public/{bucket}/{path}``
for public reads.
"""

from __future__ import annotations

import logging
import mimetypes
import uuid
from collections.abc import AsyncIterator, Callable
from pathlib import PurePosixPath

import httpx

from billboard.core.settings import settings
from billboard.services.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def resolve_content_type(content_type: str | None, filename: str | None) -> str | None:
    """Return the declared MIME type, falling back to a guess from the filename."""
    if content_type:
        return content_type.split(";", 1)[0].strip().lower()
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        return guessed
    return None


def validate_image(
    data: bytes,
    content_type: str | None,
    *,
    filename: str | None = None,
    max_bytes: int | None = None,
) -> str:
    """Check an image payload and return its normalized MIME type.

    Raises:
        ValidationError: Empty payload, payload over the size limit, or a
            non-image MIME type.
    """
    limit = settings.image_max_bytes if max_bytes is None else max_bytes
    if not data:
        raise ValidationError("image", "Image file is empty")
    if len(data) > limit:
        raise ValidationError(
            "image",
            f"Image must be at most {limit // (1024 * 1024)} MB",
        )
    mime = resolve_content_type(content_type, filename)
    if not mime or not mime.startswith("image/"):
        raise ValidationError("image", "File must be an image")
    return mime


def _object_name(mime: str, filename: str | None) -> str:
    suffix = PurePosixPath(filename).suffix.lower() if filename else ""
    if not suffix:
        suffix = mimetypes.guess_extension(mime) or ""
    return f"{uuid.uuid4()}{suffix}"


class ImageStorage:
    """Uploads validated images to the configured storage bucket."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        bucket: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        chunk_size: int | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.storage_base_url).rstrip("/")
        self.bucket = bucket or settings.storage_bucket
        self.api_key = api_key if api_key is not None else settings.storage_api_key
        self.chunk_size = chunk_size or settings.storage_chunk_size
        self._client = client or httpx.AsyncClient(
            timeout=timeout or settings.storage_timeout_seconds,
        )

    def public_url(self, object_name: str) -> str:
        return f"{self.base_url}/object/public/{self.bucket}/{object_name}"

    def _headers(self, mime: str) -> dict[str, str]:
        headers = {"Content-Type": mime, "x-upsert": "false"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return headers

    async def _chunks(
        self,
        data: bytes,
        on_progress: ProgressCallback | None,
    ) -> AsyncIterator[bytes]:
        total = len(data)
        for offset in range(0, total, self.chunk_size):
            chunk = data[offset : offset + self.chunk_size]
            yield chunk
            if on_progress is not None:
                on_progress(min(offset + len(chunk), total), total)

    async def upload(
        self,
        data: bytes,
        content_type: str | None,
        *,
        filename: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """Validate and upload an image, returning its public URL.

        Args:
            data: Raw image bytes.
            content_type: Declared MIME type; guessed from ``filename`` when absent.
            filename: Original client filename, used for the object suffix.
            on_progress: Called with ``(bytes_sent, total_bytes)`` after each chunk.

        Raises:
            ValidationError: The payload is not an acceptable image. Nothing is sent.
            StorageError: The upload failed or timed out.
        """
        mime = validate_image(data, content_type, filename=filename)
        object_name = _object_name(mime, filename)
        url = f"{self.base_url}/object/{self.bucket}/{object_name}"

        headers = self._headers(mime)
        headers["Content-Length"] = str(len(data))
        try:
            response = await self._client.post(
                url,
                content=self._chunks(data, on_progress),
                headers=headers,
            )
        except httpx.HTTPError as err:
            logger.error("Image upload to %s failed: %s", self.bucket, err, exc_info=True)
            raise StorageError("Image upload failed") from err

        if response.status_code >= 300:
            logger.error(
                "Image upload to %s rejected with %s: %s",
                self.bucket,
                response.status_code,
                response.text[:200],
            )
            raise StorageError(f"Image upload rejected ({response.status_code})")

        logger.info("Uploaded image %s (%d bytes)", object_name, len(data))
        return self.public_url(object_name)

    async def close(self) -> None:
        await self._client.aclose()


_storage: ImageStorage | None = None


def get_image_storage() -> ImageStorage:
    """Return the process-wide image storage client."""
    global _storage
    if _storage is None:
        _storage = ImageStorage()
    return _storage


async def close_image_storage() -> None:
    global _storage
    if _storage is not None:
        await _storage.close()
        _storage = None
