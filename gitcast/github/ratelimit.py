"""Shared REST rate-limit budget tracking for GitHub calls.

GitHub reports the remaining request budget on every response. The gate
records it and, once the budget drops below a threshold, holds further calls
until the advertised reset time so workers degrade to slow progress instead
of burning through the last requests and failing.
"""

from __future__ import annotations

import asyncio
import time
import typing as typ

from gitcast.logging import get_logger, log_warning

from .errors import GitHubRateLimitError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import httpx

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 10
_RATE_LIMITED_STATUSES = frozenset({403, 429})


def _header_int(headers: httpx.Headers, name: str) -> int | None:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class RateLimitGate:
    """Track ``X-RateLimit-*`` headers and throttle when the budget runs low.

    Parameters
    ----------
    threshold
        Remaining-request count below which calls are held until reset.
    max_wait_s
        Upper bound for one hold, so a skewed reset header cannot park a
        worker past its task timeout.
    clock, sleep
        Injectable time sources for tests.

    """

    def __init__(
        self,
        *,
        threshold: int = DEFAULT_THRESHOLD,
        max_wait_s: float = 60.0,
        clock: cabc.Callable[[], float] = time.time,
        sleep: cabc.Callable[[float], cabc.Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Create an open gate with an unknown budget."""
        self._threshold = threshold
        self._max_wait_s = max_wait_s
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self.remaining: int | None = None
        self.reset_at: float | None = None

    @property
    def is_low(self) -> bool:
        """Return whether the last observed budget is under the threshold."""
        return self.remaining is not None and self.remaining < self._threshold

    async def wait(self) -> None:
        """Hold the caller until the budget resets when it is running low."""
        if not self.is_low:
            return
        async with self._lock:
            # Another waiter may already have slept through the reset.
            if not self.is_low:
                return
            delay = 0.0
            if self.reset_at is not None:
                delay = min(max(self.reset_at - self._clock(), 0.0), self._max_wait_s)
            if delay > 0:
                await self._sleep(delay)
            self.remaining = None

    def observe(self, response: httpx.Response) -> None:
        """Record the budget headers from ``response``.

        Raises
        ------
        GitHubRateLimitError
            If the response is a 403/429 reporting a zero remaining budget.

        """
        remaining = _header_int(response.headers, "x-ratelimit-remaining")
        reset = _header_int(response.headers, "x-ratelimit-reset")
        if remaining is not None:
            self.remaining = remaining
        if reset is not None:
            self.reset_at = float(reset)

        if response.status_code in _RATE_LIMITED_STATUSES and remaining == 0:
            raise GitHubRateLimitError.exhausted(response.status_code, self.reset_at)

        if remaining is not None and remaining < self._threshold:
            log_warning(
                logger,
                "GitHub rate limit low: remaining=%d reset_at=%s",
                remaining,
                self.reset_at,
            )


__all__ = ["DEFAULT_THRESHOLD", "RateLimitGate"]
