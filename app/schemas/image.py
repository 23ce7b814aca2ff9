"""Pydantic schemas for image storage responses."""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field

from app.schemas.captcha import CaptchaResponse


class ImageUrlsResponse(BaseModel):
    """Public URLs of a stored image."""

    key: str = Field(..., description="Storage key of the image.")
    urls: Dict[str, str] = Field(
        ...,
        description="Variant name to URL. 'o' is the original; other keys are thumbnails.",
    )


class ImageUploadResponse(ImageUrlsResponse):
    """Result of an image upload, with throttling advice."""

    captcha_required: bool = Field(
        False,
        description="Whether the next upload must include captcha_token and captcha_code.",
    )
    captcha: CaptchaResponse | None = Field(
        default=None,
        description="A captcha to show right away when captcha_required is true.",
    )
