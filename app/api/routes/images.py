from __future__ import annotations

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile, status
from starlette.concurrency import run_in_threadpool

from app.api.dependencies import get_captcha_service, get_image_service
from app.core.auth import require_admin_key
from app.core.config import settings
from app.core.file_validation import read_upload_file_limited
from app.core.request_context import accepts_webp, client_identity, read_captcha_fields
from app.schemas.captcha import CaptchaResponse
from app.schemas.image import ImageUploadResponse, ImageUrlsResponse
from app.services.captcha_service import CaptchaService
from app.services.image_service import ImageService

router = APIRouter(tags=["Images"])

UPLOAD_IMAGE_ACTION = "upload_image"


@router.post(
    "/images",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_image(
    request: Request,
    image: UploadFile = File(..., description="JPEG, PNG, GIF or WebP image"),
    captcha_service: CaptchaService = Depends(get_captcha_service),
    image_service: ImageService = Depends(get_image_service),
) -> ImageUploadResponse:
    """Upload an image.

    Each client gets a budget of uploads per period. On the last free upload
    the response sets ``captcha_required`` and carries a captcha to display.
    Once the budget is spent, uploads must include ``captcha_token`` and
    ``captcha_code`` form fields or they fail with 400.
    """
    fields = await read_captcha_fields(request)
    captcha_required = captcha_service.is_next_time_need(
        client_identity(request),
        UPLOAD_IMAGE_ACTION,
        settings.app.image_upload_max_count,
        settings.app.image_upload_period_seconds,
        fields,
    )

    data = await read_upload_file_limited(image)
    # Storage backends and captcha rendering block.
    stored = await run_in_threadpool(image_service.upload, data, webp=accepts_webp(request))

    response = ImageUploadResponse(
        key=stored.key,
        urls=stored.urls,
        captcha_required=captcha_required,
    )
    if captcha_required:
        issued = await run_in_threadpool(
            captcha_service.generate, settings.captcha.width, settings.captcha.height
        )
        response.captcha = CaptchaResponse(
            captcha_token=issued.token,
            captcha_image=issued.inline(),
        )
    return response


@router.get("/images/{key:path}", response_model=ImageUrlsResponse)
def get_image_urls(
    key: str,
    request: Request,
    image_service: ImageService = Depends(get_image_service),
) -> ImageUrlsResponse:
    """Return the URLs of a stored image, negotiating WebP from ``Accept``."""
    return ImageUrlsResponse(key=key, urls=image_service.urls(key, webp=accepts_webp(request)))


@router.delete(
    "/images/{key:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin_key)],
)
def delete_image(
    key: str,
    image_service: ImageService = Depends(get_image_service),
) -> Response:
    """Delete a stored image and its variants. Deleting twice is not an error."""
    image_service.delete(key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
