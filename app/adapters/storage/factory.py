"""Factory pattern for creating storage adapter instances."""

from __future__ import annotations

from app.adapters.storage.base import AbstractStorage
from app.adapters.storage.local import LocalStorage
from app.adapters.storage.qiniu import QiniuStorage
from app.adapters.storage.signing import QiniuSigner
from app.core.config import StorageSettings, settings
from app.core.errors import ValidationAppError

SUPPORTED_DRIVERS = ("local", "qiniu")


def create_storage(storage_settings: StorageSettings | None = None) -> AbstractStorage:
    """Factory function to instantiate a storage adapter based on the driver.

    Reads configuration from app.core.config.settings (Pydantic Settings)
    unless explicit settings are passed. Validates driver-specific
    requirements and routes to the appropriate adapter.

    Returns:
        AbstractStorage: Configured storage adapter.

    Raises:
        ValidationAppError: If driver-specific requirements are not met.
    """
    cfg = storage_settings or settings.storage
    driver = cfg.driver.lower()

    if driver == "local":
        return LocalStorage(root=cfg.local_root, url=cfg.url)

    if driver == "qiniu":
        missing = [
            name
            for name, value in (
                ("STORAGE_QINIU_ACCESS_ID", cfg.qiniu_access_id),
                ("STORAGE_QINIU_ACCESS_SECRET", cfg.qiniu_access_secret),
                ("STORAGE_QINIU_BUCKET", cfg.qiniu_bucket),
            )
            if not value
        ]
        if missing:
            raise ValidationAppError(
                code="storage_missing_credentials",
                message=f"Qiniu driver requires {', '.join(missing)}",
                details={"driver": driver},
            )

        signer = QiniuSigner(
            access_key=cfg.qiniu_access_id,  # type: ignore[arg-type]
            secret_key=cfg.qiniu_access_secret,  # type: ignore[arg-type]
            bucket=cfg.qiniu_bucket,  # type: ignore[arg-type]
        )
        return QiniuStorage(
            signer=signer,
            zone=cfg.qiniu_zone,
            url=cfg.url,
            timeout_seconds=cfg.timeout_seconds,
        )

    raise ValidationAppError(
        code="storage_unknown_driver",
        message=(
            f"Unknown storage driver: '{driver}'. "
            f"Supported drivers: {', '.join(SUPPORTED_DRIVERS)}"
        ),
        details={"driver": driver},
    )
