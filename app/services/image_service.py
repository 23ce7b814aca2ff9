"""Service for storing uploaded images and addressing their variants."""

from __future__ import annotations

import io
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from PIL import Image

from app.adapters.storage.base import AbstractStorage, Thumbs
from app.core.errors import ValidationAppError
from app.utils.file_validators import detect_image_extension

logger = logging.getLogger(__name__)

# Variants served for uploaded images: "r" for inline display, "t" for previews.
IMAGE_THUMBS: Thumbs = {
    "r": (1360, 1360),
    "t": (360, 360),
}


@dataclass(frozen=True)
class StoredImage:
    key: str
    urls: dict[str, str]


class ImageService:
    """Persist images through a storage adapter under generated keys."""

    def __init__(
        self,
        storage: AbstractStorage,
        *,
        thumbs: Thumbs = IMAGE_THUMBS,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.storage = storage
        self.thumbs = thumbs
        self._now = now

    def build_key(self, extension: str) -> str:
        """Return a fresh key such as ``2024/05/<hex>.png``."""
        return f"{self._now():%Y/%m}/{uuid.uuid4().hex}{extension}"

    def upload(self, data: bytes, *, webp: bool = False) -> StoredImage:
        """Validate and store an image.

        Raises:
            ValidationAppError: If the payload is empty, not a supported image
                type, or cannot be decoded.
            StorageAppError: If the backend rejects the write.
        """
        if not data:
            raise ValidationAppError(
                code="image_empty",
                message="Uploaded image is empty",
                errors={"image": "empty"},
            )

        extension = detect_image_extension(data)
        if extension is None:
            raise ValidationAppError(
                code="image_unsupported_type",
                message="Only JPEG, PNG, GIF and WebP images are accepted",
                errors={"image": "unsupported type"},
            )

        self._ensure_decodable(data)

        key = self.build_key(extension)
        self.storage.write(key, io.BytesIO(data), self.thumbs)

        logger.info("image.stored", extra={"key": key, "size": len(data)})
        return StoredImage(key=key, urls=self.storage.get(key, self.thumbs, webp=webp))

    @staticmethod
    def _ensure_decodable(data: bytes) -> None:
        """Decode the whole image so truncated or oversized files never reach storage."""
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
        except (OSError, SyntaxError, EOFError, Image.DecompressionBombError) as exc:
            logger.info(
                "image.unreadable",
                extra={"size": len(data), "error_type": type(exc).__name__},
            )
            raise ValidationAppError(
                code="image_unreadable",
                message="Uploaded image is corrupt or too large to decode",
                errors={"image": "unreadable"},
            ) from exc

    def urls(self, key: str, *, webp: bool = False) -> dict[str, str]:
        return self.storage.get(key, self.thumbs, webp=webp)

    def delete(self, key: str) -> None:
        self.storage.delete(key, self.thumbs)
        logger.info("image.deleted", extra={"key": key})
