"""Quota-aware wrapper for GitHub API calls."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from .models import Quota

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Wait for the window to reset once fewer calls than this remain
MIN_REMAINING = 10
SAFETY_MARGIN = 1.0  # seconds


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RateLimiter:
    """
    Guards each outbound call with a quota check.

    Before every call the current quota is read. When it runs low, the calling
    sequence sleeps until the window resets (plus a safety margin). A failing
    quota check is logged and ignored so that it never blocks the run.
    """

    def __init__(
        self,
        quota_source: Callable[[], Awaitable[Quota]],
        *,
        min_remaining: int = MIN_REMAINING,
        safety_margin: float = SAFETY_MARGIN,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._quota_source = quota_source
        self._min_remaining = min_remaining
        self._safety_margin = safety_margin
        self._sleep = sleep
        self._clock = clock

    def wait_time(self, quota: Quota) -> float:
        """Seconds to wait before the next call, 0 if quota is sufficient."""
        if quota.remaining >= self._min_remaining:
            return 0.0
        until_reset = (quota.reset_at - self._clock()).total_seconds()
        return max(until_reset, 0.0) + self._safety_margin

    async def check_and_wait(self) -> float:
        """Read the quota and sleep if it is nearly exhausted. Returns seconds slept."""
        try:
            quota = await self._quota_source()
        except Exception as e:
            logger.warning("Could not check rate limit: %s", e)
            return 0.0

        logger.debug("API rate limit: %d/%d remaining", quota.remaining, quota.limit)

        delay = self.wait_time(quota)
        if delay > 0:
            logger.warning(
                "Rate limit low (%d remaining). Waiting %.1fs until %s",
                quota.remaining,
                delay,
                quota.reset_at.isoformat(),
            )
            await self._sleep(delay)
        return delay

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` once the quota allows it."""
        await self.check_and_wait()
        return await operation()
