"""Captcha gate: issue captchas, verify them once, and tie them to throttling.

Lifecycle:
1. ``generate()`` renders a new captcha and returns its token and image.
2. The client submits the token and the typed code; ``check()`` compares them.
3. Whether or not the code matches, a token can be checked only once.

``is_next_time_need()`` combines a throttle counter with ``check()``: it warns
one attempt before the budget runs out and demands a valid captcha once it has.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from app.adapters.cache.base import AbstractTokenCache
from app.adapters.rate_limit.base import AbstractActionCounter
from app.core.errors import ValidationAppError
from app.core.logging import hash_for_log
from app.core.request_context import CaptchaFields
from app.utils.captcha_image import CaptchaBuilder, to_data_uri

logger = logging.getLogger(__name__)

DEFAULT_LIFETIME_SECONDS = 3600


@dataclass(frozen=True)
class IssuedCaptcha:
    """What the client receives: never the phrase."""

    token: str
    image: bytes

    def inline(self) -> str:
        return to_data_uri(self.image)


class CaptchaService:
    """Captcha lifecycle plus the throttle decision built on top of it."""

    def __init__(
        self,
        *,
        cache: AbstractTokenCache,
        counter: AbstractActionCounter,
        builder: CaptchaBuilder | None = None,
        ttl_seconds: int = DEFAULT_LIFETIME_SECONDS,
    ) -> None:
        """Initialize the gate with explicit collaborators.

        Args:
            cache: Store holding ``captcha_<token> -> phrase``.
            counter: Per-identity, per-action attempt counter.
            builder: Captcha renderer; a default builder is used when omitted.
            ttl_seconds: Lifetime of an issued captcha.
        """
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        self._cache = cache
        self._counter = counter
        self._builder = builder or CaptchaBuilder()
        self._ttl_seconds = ttl_seconds

    @staticmethod
    def _cache_key(token: str) -> str:
        return f"captcha_{token}"

    def generate(self, width: int = 100, height: int = 36) -> IssuedCaptcha:
        """Render a new captcha and remember its answer.

        Raises:
            ValidationAppError: If the requested size is not positive.
        """
        if width < 1 or height < 1:
            raise ValidationAppError(
                code="captcha_invalid_size",
                message="Captcha width and height must be positive",
                errors={"width": "must be positive", "height": "must be positive"},
            )

        challenge = self._builder.build(width, height)
        token = uuid.uuid4().hex

        self._cache.set(self._cache_key(token), challenge.phrase, self._ttl_seconds)

        logger.info(
            "captcha.generated",
            extra={
                "token_hash": hash_for_log(token),
                "width": width,
                "height": height,
                "ttl_s": self._ttl_seconds,
            },
        )
        return IssuedCaptcha(token=token, image=challenge.image)

    def check(self, token: str, code: str) -> bool:
        """Verify ``code`` against the captcha issued under ``token``.

        The stored answer is removed before it is compared, so a token can
        never be tried twice. Unknown, expired and already-used tokens all
        return False without telling them apart.
        """
        if not token or not code:
            return False

        expected = self._cache.pop(self._cache_key(token))
        if expected is None:
            logger.info(
                "captcha.check_failed",
                extra={"token_hash": hash_for_log(token), "reason": "unknown_or_used"},
            )
            return False

        passed = expected == code
        if not passed:
            logger.info(
                "captcha.check_failed",
                extra={"token_hash": hash_for_log(token), "reason": "mismatch"},
            )
        return passed

    def is_next_time_need(
        self,
        identity: str,
        action: str,
        max_count: int,
        period: int,
        fields: CaptchaFields | None = None,
    ) -> bool:
        """Count this attempt and decide whether a captcha is involved.

        Args:
            identity: Caller identifier for throttling.
            action: Action being throttled.
            max_count: Attempts allowed per window without a captcha.
            period: Window length in seconds.
            fields: Captcha token/code submitted with the current request.

        Returns:
            True when the client must show a captcha on its next attempt.

        Raises:
            ValidationAppError: The budget is spent and no valid captcha was
                supplied. ``captcha_required`` carries the same advice as the
                return value would have.
        """
        fields = fields or CaptchaFields()
        remaining = self._counter.remaining_attempts(
            identity,
            action,
            max_count=max_count,
            period=period,
        )
        need_captcha = remaining <= 1

        if remaining <= 0 and not (fields.is_complete and self.check(fields.token, fields.code)):
            logger.warning(
                "throttle.captcha_rejected",
                extra={
                    "identity_hash": hash_for_log(identity),
                    "action": action,
                    "captcha_present": fields.is_complete,
                },
            )
            raise ValidationAppError(
                code="captcha_invalid",
                message="A valid captcha is required to continue",
                errors={"captcha_code": "invalid"},
                captcha_required=need_captcha,
            )

        if need_captcha:
            logger.info(
                "throttle.captcha_required",
                extra={
                    "identity_hash": hash_for_log(identity),
                    "action": action,
                    "remaining": remaining,
                },
            )
        return need_captcha
