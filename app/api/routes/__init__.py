from __future__ import annotations

from app.api.routes.captcha import router as captcha_router
from app.api.routes.health import router as health_router
from app.api.routes.images import router as images_router

__all__ = ["captcha_router", "health_router", "images_router"]
