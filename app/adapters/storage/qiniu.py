"""Qiniu Kodo storage adapter.

Objects live entirely in Qiniu. This adapter only:
- builds public URLs, letting Qiniu derive thumbnails (and WebP) on the fly
- uploads through the regional form-upload endpoint with an upload token
- deletes through the resource-management API with an access token

Uses httpx for HTTP. No retries: timeout and retry policy belong to the caller.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Any, BinaryIO, Mapping

import httpx

from app.adapters.storage.base import ORIGINAL_VARIANT, AbstractStorage, Thumbs
from app.adapters.storage.signing import QiniuSigner, urlsafe_b64encode
from app.core.errors import StorageAppError, ValidationAppError

logger = logging.getLogger(__name__)

# Zone -> form-upload host.
QINIU_UPLOAD_HOSTS: Mapping[str, str] = MappingProxyType(
    {
        "z0": "up.qiniup.com",
        "z1": "up-z1.qiniup.com",
        "z2": "up-z2.qiniup.com",
        "na0": "up-na0.qiniup.com",
        "as0": "up-as0.qiniup.com",
    }
)

QINIU_RS_HOST = "rs.qiniu.com"

# Qiniu answers a delete of a missing key with this non-standard status.
STATUS_NO_SUCH_ENTRY = 612


def _failure_reason(response: httpx.Response) -> str:
    """Prefer the HTTP reason phrase, then Qiniu's ``{"error": ...}`` body."""
    provider_error = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        provider_error = str(body["error"])

    return response.reason_phrase or provider_error or f"HTTP {response.status_code}"


class QiniuStorage(AbstractStorage):
    """Storage adapter backed by a Qiniu bucket."""

    def __init__(
        self,
        *,
        signer: QiniuSigner,
        zone: str,
        url: str,
        client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize the adapter.

        Args:
            signer: Signs upload/management requests for the bucket.
            zone: Qiniu zone; selects the upload host.
            url: Public base URL of the bucket (CDN domain).
            client: Optional httpx client; tests inject one with a mock transport.
            timeout_seconds: Request timeout when the adapter builds its own client.

        Raises:
            ValidationAppError: If the zone is unknown.
        """
        if zone not in QINIU_UPLOAD_HOSTS:
            raise ValidationAppError(
                code="storage_unknown_zone",
                message=(
                    f"Unknown Qiniu zone: '{zone}'. "
                    f"Supported zones: {', '.join(QINIU_UPLOAD_HOSTS)}"
                ),
                details={"zone": zone},
            )

        self.zone = zone
        self.upload_host = QINIU_UPLOAD_HOSTS[zone]
        self.base_url = url if url.endswith("/") else f"{url}/"
        self._signer = signer
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_seconds)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def get(self, path: str, thumbs: Thumbs, *, webp: bool = False) -> dict[str, str]:
        original = f"{self.base_url}{path}"
        urls = {ORIGINAL_VARIANT: original}

        for name, (width, height) in thumbs.items():
            params = f"?imageView2/1/w/{width}/h/{height}"
            if webp:
                params += "/format/webp"
            urls[name] = f"{original}{params}"

        return urls

    def write(self, path: str, stream: BinaryIO, thumbs: Thumbs) -> None:
        # Thumbnails are derived by Qiniu at read time; only the original is sent.
        response = self._post(
            f"https://{self.upload_host}/",
            operation="write",
            path=path,
            headers={"Host": self.upload_host},
            data={"key": path, "token": self._signer.upload_token(path)},
            files={"file": (PurePosixPath(path).name, stream)},
        )

        if response.status_code != 200:
            self._raise_failure("write", path, response)

        logger.info("storage.written", extra={"provider": "qiniu", "path": path})

    def delete(self, path: str, thumbs: Thumbs) -> None:
        encoded_entry = urlsafe_b64encode(f"{self._signer.bucket}:{path}")
        resource = f"/delete/{encoded_entry}"

        response = self._post(
            f"https://{QINIU_RS_HOST}{resource}",
            operation="delete",
            path=path,
            headers={
                "Host": QINIU_RS_HOST,
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": f"QBox {self._signer.access_token(resource)}",
            },
        )

        if response.status_code == STATUS_NO_SUCH_ENTRY:
            logger.info(
                "storage.delete_absent",
                extra={"provider": "qiniu", "path": path},
            )
            return

        if response.status_code != 200:
            self._raise_failure("delete", path, response)

        logger.info("storage.deleted", extra={"provider": "qiniu", "path": path})

    def _post(self, url: str, *, operation: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.post(url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(
                "storage.transport_error",
                extra={
                    "provider": "qiniu",
                    "operation": operation,
                    "path": path,
                    "error_type": type(exc).__name__,
                },
            )
            raise StorageAppError(
                code=f"storage_{operation}_failed",
                message=f"Qiniu request failed: {exc}",
                details={"provider": "qiniu", "path": path},
            ) from exc

    def _raise_failure(self, operation: str, path: str, response: httpx.Response) -> None:
        reason = _failure_reason(response)
        logger.warning(
            f"storage.{operation}_failed",
            extra={
                "provider": "qiniu",
                "path": path,
                "http_status": response.status_code,
                "reason": reason,
            },
        )
        raise StorageAppError(
            code=f"storage_{operation}_failed",
            message=reason,
            details={"provider": "qiniu", "path": path, "http_status": response.status_code},
        )
