"""In-memory fixed-window action counter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- The window for a key opens on its first counted attempt and closes
  ``period`` seconds later.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractActionCounter


@dataclass
class _WindowState:
    window_start: float
    period: int
    count: int


class InMemoryActionCounter(AbstractActionCounter):
    """Action counter using a fixed window per ``(identity, action)`` key.

    Important:
        This counter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        max_keys: int = 100_000,
    ) -> None:
        """Initialize the in-memory counter.

        Args:
            clock: Time source function returning UNIX time in seconds.
            max_keys: Number of tracked keys above which closed windows are
                purged on the next call.

        Raises:
            ValueError: If max_keys is invalid.
        """
        if max_keys < 1:
            raise ValueError("max_keys must be >= 1")

        self._clock = clock
        self._max_keys = max_keys
        self._lock = threading.RLock()
        self._state_by_key: dict[tuple[str, str], _WindowState] = {}

    def _get_or_reset_state(self, key: tuple[str, str], now: float, period: int) -> _WindowState:
        """Get the current state for key or open a new window when it lapsed."""
        state = self._state_by_key.get(key)
        if state is None or now - state.window_start >= state.period:
            state = _WindowState(window_start=now, period=period, count=0)
            self._state_by_key[key] = state
        return state

    def _purge_closed_windows_locked(self, now: float) -> None:
        if len(self._state_by_key) <= self._max_keys:
            return
        closed = [
            key
            for key, state in self._state_by_key.items()
            if now - state.window_start >= state.period
        ]
        for key in closed:
            del self._state_by_key[key]

    def remaining_attempts(
        self,
        identity: str,
        action: str,
        *,
        max_count: int,
        period: int,
    ) -> int:
        """Count one attempt for ``(identity, action)``.

        Raises:
            ValueError: If identity/action are empty or limits are invalid.
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")
        if not action:
            raise ValueError("action must be a non-empty string")
        if max_count < 1:
            raise ValueError("max_count must be >= 1")
        if period < 1:
            raise ValueError("period must be >= 1")

        now = self._clock()
        key = (identity, action)

        with self._lock:
            self._purge_closed_windows_locked(now)
            state = self._get_or_reset_state(key, now, period)
            remaining = max(0, max_count - state.count)
            state.count += 1
            return remaining
