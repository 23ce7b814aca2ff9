"""Token cache adapters.

Captcha answers live in a key-value store with per-key expiry. The service
layer depends on ``AbstractTokenCache`` so the in-memory store can later be
replaced by a shared one (e.g., Redis) without touching the gate.
"""

from app.adapters.cache.base import AbstractTokenCache
from app.adapters.cache.in_memory import InMemoryTokenCache

__all__ = [
    "AbstractTokenCache",
    "InMemoryTokenCache",
]
