"""Token cache interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractTokenCache(ABC):
    """Key-value store with per-key time-to-live."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""
        raise NotImplementedError

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the live value for ``key`` or None when absent/expired."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``. Missing keys are ignored."""
        raise NotImplementedError

    @abstractmethod
    def pop(self, key: str) -> str | None:
        """Atomically read and remove ``key``.

        Two concurrent calls for the same key must never both receive the
        value. Backends without a native primitive have to serialize the
        read and the delete themselves.

        Returns:
            The live value, or None when the key is absent or expired.
        """
        raise NotImplementedError
