"""Time-bounded memoization of upstream results.

Entries expire at an absolute time fixed when they are written and are
dropped from the store by every later write, so keys that are never read
again do not accumulate. When the producer is a coroutine the cache stores
the scheduled task itself, so callers that overlap during a fetch all await
the same task instead of issuing a second request. A task that fails is
evicted as soon as it completes; every caller already awaiting it receives
the same exception.
"""

import asyncio
import inspect
import math
import time
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional, TypeVar

import cachetools

from registry_auth.core.config import DEFAULT_CACHE_TTL
from registry_auth.infrastructure.logging import get_logger
from registry_auth.infrastructure.metrics import result_cache_requests_total

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


def _expires_at(key: str, entry: CacheEntry, now: float) -> float:
    return entry.expires_at


class ResultCache:
    """Per-key result cache with a fixed TTL"""

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._clock = clock
        self._entries: cachetools.TLRUCache = cachetools.TLRUCache(
            math.inf, _expires_at, timer=clock
        )

    def get(self, key: str, compute: Callable[[], T]) -> T:
        """Return the live value for ``key``, computing it at most once per TTL window.

        If ``compute`` returns an awaitable, the returned value is an
        ``asyncio.Future`` shared by every caller until it expires.
        """
        operation = key.split(":", 1)[0]
        entry: Optional[CacheEntry] = self._entries.get(key)
        if entry is not None:
            result_cache_requests_total.labels(operation=operation, result="hit").inc()
            logger.debug("cache_hit", key=key)
            return entry.value

        result_cache_requests_total.labels(operation=operation, result="miss").inc()
        logger.debug("cache_miss", key=key)

        value = compute()
        if inspect.isawaitable(value):
            value = asyncio.ensure_future(value)
            value.add_done_callback(partial(self._evict_failed, key))

        self.set(key, value)
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        expires_at = self._clock() + (self.ttl if ttl is None else ttl)
        self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> None:
        self._entries.expire()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        self.purge_expired()
        return len(self._entries)

    def _evict_failed(self, key: str, future: "asyncio.Future[Any]") -> None:
        if not future.cancelled() and future.exception() is None:
            return

        entry = self._entries.get(key)
        if entry is not None and entry.value is future:
            self._entries.pop(key, None)
            logger.debug("cache_entry_evicted", key=key, reason="computation_failed")
