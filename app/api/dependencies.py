"""Process-wide collaborators handed to routes through FastAPI ``Depends``.

Instances are cached in-module so the captcha cache and the throttle counters
survive across requests. Tests swap them with ``app.dependency_overrides``
or ``reset_dependencies()``.
"""

from __future__ import annotations

import logging

from fastapi import Depends

from app.adapters.cache.in_memory import InMemoryTokenCache
from app.adapters.rate_limit.in_memory import InMemoryActionCounter
from app.adapters.storage.base import AbstractStorage
from app.adapters.storage.factory import create_storage
from app.core.config import settings
from app.services.captcha_service import CaptchaService
from app.services.image_service import ImageService
from app.utils.captcha_image import CaptchaBuilder

logger = logging.getLogger(__name__)


_captcha_service: CaptchaService | None = None
_storage: AbstractStorage | None = None


def get_captcha_service() -> CaptchaService:
    """Return the process-wide captcha gate."""

    global _captcha_service

    if _captcha_service is None:
        _captcha_service = CaptchaService(
            cache=InMemoryTokenCache(max_entries=settings.captcha.cache_max_entries),
            counter=InMemoryActionCounter(),
            builder=CaptchaBuilder(length=settings.captcha.length),
            ttl_seconds=settings.captcha.ttl_seconds,
        )
        logger.info(
            "dependencies.captcha_service_created",
            extra={"ttl_s": settings.captcha.ttl_seconds},
        )

    return _captcha_service


def get_storage() -> AbstractStorage:
    """Return the configured storage adapter, built on first use."""

    global _storage

    if _storage is None:
        _storage = create_storage(settings.storage)
        logger.info(
            "dependencies.storage_created",
            extra={"driver": settings.storage.driver},
        )

    return _storage


def get_image_service(storage: AbstractStorage = Depends(get_storage)) -> ImageService:
    return ImageService(storage)


def reset_dependencies() -> None:
    """Drop cached instances so the next request rebuilds them."""

    global _captcha_service, _storage
    _captcha_service = None
    _storage = None
