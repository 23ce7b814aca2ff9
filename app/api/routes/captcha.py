from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_captcha_service
from app.core.config import settings
from app.schemas.captcha import CaptchaResponse
from app.services.captcha_service import CaptchaService

router = APIRouter(tags=["Captcha"])


@router.post("/captchas", response_model=CaptchaResponse)
def create_captcha(
    width: int = Query(settings.captcha.width, ge=1, le=400, description="Image width in pixels"),
    height: int = Query(settings.captcha.height, ge=1, le=200, description="Image height in pixels"),
    captcha_service: CaptchaService = Depends(get_captcha_service),
) -> CaptchaResponse:
    """Issue a new image captcha.

    The answer stays on the server. The client shows ``captcha_image`` and
    sends ``captcha_token`` together with the typed ``captcha_code`` on the
    request that needs it. Each token can be checked only once.
    """
    issued = captcha_service.generate(width, height)
    return CaptchaResponse(captcha_token=issued.token, captcha_image=issued.inline())
