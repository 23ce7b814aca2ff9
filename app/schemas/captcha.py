"""Pydantic schemas for captcha responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CaptchaResponse(BaseModel):
    """A freshly issued captcha."""

    captcha_token: str = Field(
        ..., description="Opaque token to send back as captcha_token with the answer."
    )
    captcha_image: str = Field(
        ..., description="PNG image as a data URI (data:image/png;base64,...)."
    )
