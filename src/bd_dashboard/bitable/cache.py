"""Time-boxed, single-flight in-memory cache.

Backs both the field map cache and the person indexes. Each key holds one
whole value with an expiry; after expiry the next caller rebuilds it from
scratch. While a rebuild is in flight, concurrent callers for the same key
await that rebuild instead of starting their own.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Keyed cache of whole values with a fixed time-to-live.

    Args:
        ttl: Seconds a loaded value stays fresh.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, tuple[V, float]] = {}
        self._inflight: dict[Hashable, asyncio.Future[V]] = {}

    def peek(self, key: Hashable) -> V | None:
        """Return the fresh value for ``key`` without loading, else None."""
        entry = self._entries.get(key)
        if entry is not None and self._clock() < entry[1]:
            return entry[0]
        return None

    async def get_or_load(self, key: Hashable, loader: Callable[[], Awaitable[V]]) -> V:
        cached = self.peek(key)
        if cached is not None:
            return cached

        future = self._inflight.get(key)
        if future is None:
            future = asyncio.ensure_future(self._load(key, loader))
            self._inflight[key] = future
        # shield: a cancelled waiter must not cancel the rebuild others share
        return await asyncio.shield(future)

    async def _load(self, key: Hashable, loader: Callable[[], Awaitable[V]]) -> V:
        started_at = self._clock()
        try:
            value = await loader()
            self._entries[key] = (value, started_at + self.ttl)
            return value
        finally:
            self._inflight.pop(key, None)
