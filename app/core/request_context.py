"""Accessors for the parts of an inbound request the core needs.

Services never see the FastAPI ``Request``. Route handlers call these helpers
and pass plain values down:
- ``CaptchaFields`` carries ``captcha_token`` / ``captcha_code`` from the body
- ``accepts_webp`` answers the image-format capability probe
- ``client_identity`` names the caller for throttling
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from json import JSONDecodeError

from fastapi import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptchaFields:
    """Captcha answer submitted with a write request."""

    token: str = ""
    code: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.token) and bool(self.code)


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


async def read_captcha_fields(request: Request) -> CaptchaFields:
    """Extract ``captcha_token`` and ``captcha_code`` from the request body.

    JSON bodies and form bodies (urlencoded or multipart) are supported.
    Anything else, or a malformed body, yields empty fields: the gate then
    treats the captcha as missing.
    """

    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except (JSONDecodeError, UnicodeDecodeError):
            logger.info("request.captcha_fields_unreadable", extra={"content_type": "json"})
            return CaptchaFields()
        if not isinstance(body, dict):
            return CaptchaFields()
        return CaptchaFields(
            token=_as_str(body.get("captcha_token")),
            code=_as_str(body.get("captcha_code")),
        )

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        return CaptchaFields(
            token=_as_str(form.get("captcha_token")),
            code=_as_str(form.get("captcha_code")),
        )

    return CaptchaFields()


def _quality(params: str) -> float:
    for param in params.split(";"):
        name, _, value = param.partition("=")
        if name.strip().lower() == "q":
            try:
                return float(value)
            except ValueError:
                return 0.0
    return 1.0


def accepts_webp(request: Request) -> bool:
    """Whether the client listed ``image/webp`` in ``Accept`` with a non-zero quality.

    Wildcards such as ``image/*`` do not count: browsers send them even when
    they cannot decode WebP.
    """

    for media_range in request.headers.get("accept", "").split(","):
        media_type, _, params = media_range.partition(";")
        if media_type.strip().lower() == "image/webp":
            return _quality(params) > 0
    return False


def client_identity(request: Request) -> str:
    """Identity used for per-client throttling."""

    return request.client.host if request.client else "unknown"
