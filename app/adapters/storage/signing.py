"""Qiniu credential signing.

Qiniu authorizes uploads with an *upload token* (a signed put policy) and
management calls with an *access token* (a signed request path). Both are
HMAC-SHA1 digests in Qiniu's URL-safe base64 flavour. They are recomputed for
every request and must not be logged or cached.

Docs:
- https://developer.qiniu.com/kodo/manual/1231/appendix#urlsafe-base64
- https://developer.qiniu.com/kodo/manual/1206/put-policy
- https://developer.qiniu.com/kodo/manual/1208/upload-token
- https://developer.qiniu.com/kodo/manual/1201/access-token
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from typing import Any, Callable

DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


def urlsafe_b64encode(data: bytes | str) -> str:
    """Standard base64 with ``+`` -> ``-`` and ``/`` -> ``_``. Padding is kept."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii").replace("+", "-").replace("/", "_")


def urlsafe_b64decode(data: str) -> bytes:
    return base64.b64decode(data.replace("-", "+").replace("_", "/"))


class QiniuSigner:
    """Mint upload and access tokens for one bucket."""

    def __init__(
        self,
        *,
        access_key: str,
        secret_key: str,
        bucket: str,
        clock: Callable[[], float] = time.time,
        lifetime_seconds: int = DEFAULT_TOKEN_LIFETIME_SECONDS,
    ) -> None:
        if not access_key or not secret_key:
            raise ValueError("access_key and secret_key are required")
        if not bucket:
            raise ValueError("bucket is required")

        self.access_key = access_key
        self.bucket = bucket
        self._secret_key = secret_key.encode("utf-8")
        self._clock = clock
        self._lifetime_seconds = lifetime_seconds

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"QiniuSigner(access_key={self.access_key!r}, bucket={self.bucket!r})"

    def _sign(self, data: str) -> str:
        digest = hmac.new(self._secret_key, data.encode("utf-8"), hashlib.sha1).digest()
        return urlsafe_b64encode(digest)

    def build_policy(self, path: str) -> str:
        """Encode a put policy scoped to ``bucket:path`` that expires in one hour."""
        policy = {
            "scope": f"{self.bucket}:{path}",
            "deadline": int(self._clock()) + self._lifetime_seconds,
        }
        return urlsafe_b64encode(json.dumps(policy, separators=(",", ":")))

    def upload_token(self, path: str) -> str:
        """Return ``access_key:signature:policy`` authorizing one upload to ``path``."""
        policy = self.build_policy(path)
        return f"{self.access_key}:{self._sign(policy)}:{policy}"

    def access_token(self, resource: str) -> str:
        """Return ``access_key:signature`` for a management request path.

        Args:
            resource: Request path, e.g. ``/delete/<encoded entry>``.
        """
        signature = self._sign(resource + "\n")
        return f"{self.access_key}:{signature}"

    @staticmethod
    def decode_policy(upload_token: str) -> dict[str, Any]:
        """Recover the put policy embedded in an upload token."""
        _, _, policy = upload_token.split(":", 2)
        return json.loads(urlsafe_b64decode(policy))
