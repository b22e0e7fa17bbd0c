"""
Protocol definitions for generic infrastructure services.

Available Protocols:
    CacheBackend: Cache operations interface used by the rate limiter

Usage:
    from core.protocols import CacheBackend

    def read_counter(cache: CacheBackend, key: str) -> int:
        return cache.get(key, 0)

Note:
    - Protocols are primarily for type checking
    - @runtime_checkable allows isinstance() checks
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing import Any


@runtime_checkable
class CacheBackend(Protocol):
    """
    Protocol for cache backends.

    Compatible with Django's cache interface (django-redis, LocMemCache),
    so `django.core.cache.cache` satisfies it without adapters.
    """

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value for key, or default when missing."""
        ...

    def set(self, key: str, value: Any, timeout: int | None = None) -> None:
        """Store value under key for timeout seconds."""
        ...

    def add(self, key: str, value: Any, timeout: int | None = None) -> bool:
        """Store value only if key is missing. Returns True when stored."""
        ...

    def incr(self, key: str, delta: int = 1) -> int:
        """Atomically increment an existing integer value."""
        ...

    def decr(self, key: str, delta: int = 1) -> int:
        """Atomically decrement an existing integer value."""
        ...

    def delete(self, key: str) -> bool:
        """Remove key. Returns True when something was deleted."""
        ...
