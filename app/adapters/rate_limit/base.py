"""Action counter interfaces.

The captcha gate depends on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractActionCounter(ABC):
    """Counts attempts per ``(identity, action)`` within a time window."""

    @abstractmethod
    def remaining_attempts(
        self,
        identity: str,
        action: str,
        *,
        max_count: int,
        period: int,
    ) -> int:
        """Count one attempt and report the budget left before it.

        The returned value never increases within a window and is clamped
        at 0 once the budget is spent.

        Args:
            identity: Caller identifier (user id, client IP, ...).
            action: Action name, e.g. ``"upload_image"``.
            max_count: Attempts allowed per window.
            period: Window length in seconds.

        Returns:
            Attempts that were still available when this one arrived.
        """
        raise NotImplementedError
