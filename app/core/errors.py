"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Two failure kinds are kept apart on purpose: ``ValidationAppError`` is
recoverable by the client re-submitting corrected input, while
``StorageAppError`` is fatal for the current request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    max_value: int
    actual_value: int
    http_status: int
    provider: str
    driver: str
    zone: str
    path: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


@dataclass
class ValidationAppError(AppError):
    """Raised when input/config validation fails.

    Attributes:
        errors: Field name to human-readable message.
        captcha_required: Whether the client must show a captcha on its next
            attempt. Only the captcha gate sets this.
    """

    errors: dict[str, str] = field(default_factory=dict)
    captcha_required: bool = False


class PermissionAppError(AppError):
    """Raised when the caller may not perform the requested action."""


class StorageAppError(AppError):
    """Raised when a storage backend rejects or fails an operation."""
