"""Rate limiter port for gated mutations.

Limits how often one actor may attempt governed mutations. Implementations
are injected per process; a bare module-level map is not acceptable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the attempt is under the limit.
        remaining: Attempts left in the current window.
        limit: Configured attempts per window.
        retry_after_seconds: Seconds until the oldest attempt leaves the
            window, 0 when allowed.
    """

    allowed: bool
    remaining: int
    limit: int
    retry_after_seconds: int = 0


@runtime_checkable
class MutationRateLimiterProtocol(Protocol):
    """Protocol for per-key sliding window rate limiting."""

    async def hit(self, key: str) -> RateLimitDecision:
        """Record an attempt for ``key`` if allowed and report the decision."""
        ...
