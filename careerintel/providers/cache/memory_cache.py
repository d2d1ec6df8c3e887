"""In-memory cache provider using cachetools.TLRUCache.

Simple, fast cache suitable for single-process deployments.  Each entry
carries its own time-to-live.  The clock is injectable so tests can expire
entries without sleeping.
"""

from __future__ import annotations

import time
from typing import Any, Callable, NamedTuple

import structlog
from cachetools import TLRUCache

from careerintel.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheProvider(ICacheProvider):
    """In-memory per-item TTL cache backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    ttl:
        Default time-to-live in seconds, used when :meth:`set` gets none.
    timer:
        Monotonic clock returning seconds.  Defaults to
        :func:`time.monotonic`.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: int = 3600,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = ttl
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        entry = self._cache.get(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self._cache[key] = _Entry(value, float(ttl if ttl is not None else self._default_ttl))
        logger.debug("cache_set", key=key, ttl=ttl or self._default_ttl)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def exists(self, key: str) -> bool:
        return key in self._cache
