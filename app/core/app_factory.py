"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability and separation of concerns compared to a monolithic main.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api.routes import captcha_router, health_router, images_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Community Guard API",
        description=(
            "Anti-abuse and image storage backend for a Q&A community: "
            "one-shot image captchas, per-client action throttling that asks "
            "for a captcha once the budget is spent, and image storage on the "
            "local filesystem or Qiniu with on-read thumbnail variants."
        ),
        version="0.1.0",
        debug=settings.app.debug,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(captcha_router, prefix="/v1")
    app.include_router(images_router, prefix="/v1")
    app.include_router(health_router)

    if settings.storage.driver.lower() == "local" and settings.storage.local_mount_path:
        app.mount(
            settings.storage.local_mount_path,
            StaticFiles(directory=settings.storage.local_root, check_dir=False),
            name="storage",
        )

    apply_openapi_customizations(app)

    return app
