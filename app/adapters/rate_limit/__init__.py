"""Action throttling adapters.

This package provides a small abstraction layer so the service can start with
an in-memory counter and later migrate to Redis or another shared store
without changing the captcha gate.
"""

from app.adapters.rate_limit.base import AbstractActionCounter
from app.adapters.rate_limit.in_memory import InMemoryActionCounter

__all__ = [
    "AbstractActionCounter",
    "InMemoryActionCounter",
]
