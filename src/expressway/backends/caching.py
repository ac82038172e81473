"""
Caching backend.

Publishes a bounded, TTL-aware :class:`InMemoryCache` as
``services["cache"]``, sized from the ``cache`` namespace::

    # config/cache.py
    config = {"max_size": 5000, "default_ttl_seconds": 600}

Guardrails:
    ❌ DON'T: Share the in-memory cache across worker processes
    ✅ DO: Publish a distributed cache from a provider when you need one
"""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Any, Protocol

from expressway.core.logging import get_logger

logger = get_logger(__name__)


class CacheBackend(Protocol):
    """get/set/delete/exists/clear with optional TTL."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def clear(self) -> None: ...


class InMemoryCache:
    """Bounded LRU cache with per-key expiry. Expired keys are dropped lazily.

    Example:
        cache = InMemoryCache(max_size=500, default_ttl_seconds=1800)
        cache.set("session:abc", {"user_id": 42}, ttl_seconds=3600)
        session = cache.get("session:abc")
    """

    def __init__(self, *, max_size: int = 10_000, default_ttl_seconds: int | None = 3600):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._entries: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl_seconds

    def _live(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        expires_at = entry[1]
        if expires_at is not None and time.monotonic() > expires_at:
            del self._entries[key]
            return False
        return True

    def get(self, key: str) -> Any | None:
        if not self._live(key):
            return None
        self._entries.move_to_end(key)
        return self._entries[key][0]

    def set(self, key: str, value: Any, *, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        expires_at = time.monotonic() + ttl if ttl else None
        if key not in self._entries and len(self._entries) >= self._max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("cache_evicted", key=evicted)
        self._entries[key] = (value, expires_at)
        self._entries.move_to_end(key)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def exists(self, key: str) -> bool:
        return self._live(key)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)


async def load(app) -> InMemoryCache:
    max_size = int(app.config.get("cache.max_size", 10_000))
    default_ttl = app.config.get("cache.default_ttl_seconds", 3600)
    cache = InMemoryCache(max_size=max_size, default_ttl_seconds=default_ttl)
    app.services["cache"] = cache
    logger.info("cache_configured", max_size=max_size, default_ttl_seconds=default_ttl)
    return cache


__all__ = ["CacheBackend", "InMemoryCache", "load"]
