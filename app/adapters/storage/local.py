"""Local filesystem storage adapter.

Unlike Qiniu, the filesystem cannot transform images on request, so thumbnails
are rendered with Pillow at write time. Each thumbnail is stored twice, in the
original format and as WebP, and ``get`` picks the variant the client accepts.

Layout for ``2024/05/abc.png`` with a thumbnail named ``t``::

    <root>/2024/05/abc.png
    <root>/2024/05/abc_t.png
    <root>/2024/05/abc_t.webp
"""

from __future__ import annotations

import io
import logging
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from PIL import Image, ImageOps

from app.adapters.storage.base import ORIGINAL_VARIANT, AbstractStorage, Thumbs
from app.core.errors import StorageAppError, ValidationAppError

logger = logging.getLogger(__name__)

# Pillow format names for saving thumbnails in the original's format
_FORMAT_BY_SUFFIX = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".gif": "GIF",
    ".webp": "WEBP",
}


def thumb_path(path: str, name: str, *, webp: bool = False) -> str:
    """Return the key of a thumbnail variant of ``path``."""
    original = PurePosixPath(path)
    suffix = ".webp" if webp else original.suffix
    return str(original.with_name(f"{original.stem}_{name}{suffix}"))


class LocalStorage(AbstractStorage):
    """Storage adapter writing to a directory served under ``url``."""

    def __init__(self, *, root: str | Path, url: str) -> None:
        self.root = Path(root).resolve()
        self.base_url = url if url.endswith("/") else f"{url}/"

    def _resolve(self, path: str) -> Path:
        """Map an object key to a file inside the root."""
        target = (self.root / path).resolve()
        if target == self.root or self.root not in target.parents:
            raise ValidationAppError(
                code="storage_invalid_path",
                message="Path escapes the storage root",
                errors={"key": "invalid path"},
            )
        return target

    def get(self, path: str, thumbs: Thumbs, *, webp: bool = False) -> dict[str, str]:
        urls = {ORIGINAL_VARIANT: f"{self.base_url}{path}"}
        for name in thumbs:
            urls[name] = f"{self.base_url}{thumb_path(path, name, webp=webp)}"
        return urls

    def write(self, path: str, stream: BinaryIO, thumbs: Thumbs) -> None:
        target = self._resolve(path)
        data = stream.read()

        # Variants are rendered in memory so an unreadable image writes nothing.
        files = [(target, data)]
        if thumbs:
            files.extend(self._render_thumbs(path, data, thumbs))

        written: list[Path] = []
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            for destination, payload in files:
                destination.write_bytes(payload)
                written.append(destination)
        except OSError as exc:
            for leftover in written:
                leftover.unlink(missing_ok=True)
            logger.error(
                "storage.write_failed",
                extra={"provider": "local", "path": path, "error_type": type(exc).__name__},
            )
            raise StorageAppError(
                code="storage_write_failed",
                message=exc.strerror or str(exc),
                details={"provider": "local", "path": path},
            ) from exc

        logger.info(
            "storage.written",
            extra={"provider": "local", "path": path, "size": len(data), "thumbs": len(thumbs)},
        )

    def _render_thumbs(self, path: str, data: bytes, thumbs: Thumbs) -> list[tuple[Path, bytes]]:
        try:
            with Image.open(io.BytesIO(data)) as source:
                image = ImageOps.exif_transpose(source) or source
                return self._render_variants(path, image, thumbs)
        except (OSError, SyntaxError, EOFError, Image.DecompressionBombError) as exc:
            logger.warning(
                "storage.unreadable_image",
                extra={"provider": "local", "path": path, "error_type": type(exc).__name__},
            )
            raise StorageAppError(
                code="storage_write_failed",
                message="Stored object is not a readable image",
                details={"provider": "local", "path": path},
            ) from exc

    def _render_variants(self, path: str, image: Image.Image, thumbs: Thumbs) -> list[tuple[Path, bytes]]:
        original_format = _FORMAT_BY_SUFFIX.get(PurePosixPath(path).suffix.lower(), "PNG")
        rendered = []

        for name, (width, height) in thumbs.items():
            thumb = ImageOps.fit(image, (width, height), method=Image.Resampling.LANCZOS)
            if original_format == "JPEG" and thumb.mode not in ("RGB", "L"):
                thumb = thumb.convert("RGB")

            for webp, fmt in ((False, original_format), (True, "WEBP")):
                buffer = io.BytesIO()
                thumb.save(buffer, format=fmt)
                rendered.append((self._resolve(thumb_path(path, name, webp=webp)), buffer.getvalue()))

        return rendered

    def delete(self, path: str, thumbs: Thumbs) -> None:
        keys = [path]
        for name in thumbs:
            keys.append(thumb_path(path, name))
            keys.append(thumb_path(path, name, webp=True))

        for key in keys:
            try:
                self._resolve(key).unlink(missing_ok=True)
            except OSError as exc:
                raise StorageAppError(
                    code="storage_delete_failed",
                    message=exc.strerror or str(exc),
                    details={"provider": "local", "path": key},
                ) from exc

        logger.info("storage.deleted", extra={"provider": "local", "path": path})
