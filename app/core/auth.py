"""Admin API key checks for destructive endpoints.

Deleting a stored image is reserved for moderators. They authenticate with an
``X-API-Key`` header validated against a comma-separated list from the
environment. When no keys are configured, deletes are refused outright.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header

from app.core.config import settings
from app.core.errors import PermissionAppError
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ")
        {'key1', 'key2', 'key3'}
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_admin_key(provided_key: str | None) -> None:
    """Check that ``provided_key`` is one of the configured admin keys.

    Pure validation logic without FastAPI dependencies for easy testing.

    Raises:
        PermissionAppError: If no keys are configured or the key is not one of them.
    """
    valid_keys = parse_api_keys(settings.app.admin_api_keys)

    if not valid_keys:
        logger.warning(
            "auth.admin_denied",
            extra={"reason": "admin_keys_not_configured"},
        )
        raise PermissionAppError(
            code="admin_keys_not_configured",
            message="This operation is disabled: no admin API keys are configured",
            details={"hint": "Set APP_ADMIN_API_KEYS to enable moderator operations"},
        )

    if not provided_key or provided_key not in valid_keys:
        logger.warning(
            "auth.admin_denied",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": hash_for_log(provided_key) if provided_key else None,
            },
        )
        raise PermissionAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def require_admin_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency guarding moderator-only routes.

    Usage:
        @router.delete("/images/{key}", dependencies=[Depends(require_admin_key)])
    """
    validate_admin_key(x_api_key)
    logger.info(
        "auth.admin_granted",
        extra={"api_key_hash": hash_for_log(x_api_key or "")},
    )
