"""Bounded in-memory sliding window rate limiter.

One instance per process, injected where needed. Keys are evicted least
recently used first once ``max_keys`` is exceeded, so memory stays
bounded no matter how many actors appear.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections import OrderedDict, deque
from collections.abc import Callable

from govgate.application.ports.mutation_rate_limiter import RateLimitDecision


class InMemoryMutationRateLimiter:
    """Sliding window limiter keyed by actor.

    Attributes:
        limit: Attempts allowed per window.
        window_seconds: Window length.
        max_keys: Maximum tracked keys before LRU eviction.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        max_keys: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if max_keys < 1:
            raise ValueError("max_keys must be at least 1")
        self.limit = limit
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._hits: OrderedDict[str, deque[float]] = OrderedDict()
        self._lock = asyncio.Lock()

    def _prune(self, hits: deque[float], now: float) -> None:
        window_start = now - self.window_seconds
        while hits and hits[0] <= window_start:
            hits.popleft()

    async def hit(self, key: str) -> RateLimitDecision:
        async with self._lock:
            now = self._clock()
            hits = self._hits.get(key)
            if hits is None:
                hits = deque()
                self._hits[key] = hits
            self._hits.move_to_end(key)
            self._prune(hits, now)

            if len(hits) >= self.limit:
                retry_after = math.ceil(hits[0] + self.window_seconds - now)
                return RateLimitDecision(
                    allowed=False,
                    remaining=0,
                    limit=self.limit,
                    retry_after_seconds=max(1, retry_after),
                )

            hits.append(now)
            while len(self._hits) > self.max_keys:
                self._hits.popitem(last=False)
            return RateLimitDecision(
                allowed=True,
                remaining=self.limit - len(hits),
                limit=self.limit,
            )

    @property
    def tracked_keys(self) -> int:
        return len(self._hits)
