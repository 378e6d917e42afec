"""Unit tests for the quota-aware RateLimiter."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from badge_stats.models import Quota
from badge_stats.rate_limit import RateLimiter

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _limiter(quota_source, sleep=None) -> tuple[RateLimiter, AsyncMock]:
    sleep = sleep or AsyncMock()
    return RateLimiter(quota_source, sleep=sleep, clock=lambda: NOW), sleep


def _quota(remaining: int, reset_in: float = 2.0) -> AsyncMock:
    return AsyncMock(
        return_value=Quota(
            remaining=remaining, limit=5000, reset_at=NOW + timedelta(seconds=reset_in)
        )
    )


class TestCheckAndWait:
    @pytest.mark.asyncio
    async def test_waits_until_reset_plus_margin_when_low(self):
        limiter, sleep = _limiter(_quota(remaining=3, reset_in=2.0))

        waited = await limiter.check_and_wait()

        sleep.assert_awaited_once()
        assert sleep.await_args.args[0] == pytest.approx(3.0)
        assert waited == pytest.approx(3.0)

    @pytest.mark.asyncio
    async def test_no_wait_with_enough_quota(self):
        limiter, sleep = _limiter(_quota(remaining=10))

        waited = await limiter.check_and_wait()

        sleep.assert_not_awaited()
        assert waited == 0.0

    @pytest.mark.asyncio
    async def test_reset_in_the_past_waits_only_the_margin(self):
        limiter, sleep = _limiter(_quota(remaining=0, reset_in=-30.0))

        await limiter.check_and_wait()

        assert sleep.await_args.args[0] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_quota_check_failure_fails_open(self, caplog):
        source = AsyncMock(side_effect=RuntimeError("boom"))
        limiter, sleep = _limiter(source)

        with caplog.at_level(logging.WARNING, logger="badge_stats.rate_limit"):
            waited = await limiter.check_and_wait()

        assert waited == 0.0
        sleep.assert_not_awaited()
        assert "Could not check rate limit" in caplog.text


class TestExecute:
    @pytest.mark.asyncio
    async def test_waits_before_running_operation(self):
        order: list[str] = []

        async def sleep(seconds: float) -> None:
            order.append("sleep")

        async def operation() -> str:
            order.append("call")
            return "result"

        limiter = RateLimiter(_quota(remaining=1), sleep=sleep, clock=lambda: NOW)

        assert await limiter.execute(operation) == "result"
        assert order == ["sleep", "call"]

    @pytest.mark.asyncio
    async def test_runs_operation_when_quota_check_fails(self):
        limiter, _ = _limiter(AsyncMock(side_effect=ConnectionError("offline")))
        operation = AsyncMock(return_value=7)

        assert await limiter.execute(operation) == 7
        operation.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_operation_error_propagates_unchanged(self):
        limiter, _ = _limiter(_quota(remaining=5000))
        error = ValueError("remote failure")

        with pytest.raises(ValueError) as exc_info:
            await limiter.execute(AsyncMock(side_effect=error))

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_quota_is_read_before_every_call(self):
        source = _quota(remaining=5000)
        limiter, _ = _limiter(source)

        for _ in range(3):
            await limiter.execute(AsyncMock(return_value=None))

        assert source.await_count == 3
