"""Combinators for running fetches concurrently and with fallbacks."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def join_all(*aws: Awaitable[Any]) -> list[Any]:
    """
    Await every branch concurrently and return their results in order.

    The first failure is raised as soon as it happens. Sibling branches are
    not cancelled: requests already in flight may still complete, but their
    results are discarded.
    """
    return list(await asyncio.gather(*aws))


async def with_fallback(
    primary: Callable[[], Awaitable[T]],
    fallback: Callable[[], Awaitable[T]],
    *,
    description: str = "operation",
) -> T:
    """
    Run ``primary``; if it raises, run ``fallback`` instead.

    Errors raised by the fallback propagate to the caller.
    """
    try:
        return await primary()
    except Exception as e:
        logger.warning("%s failed (%s), using fallback", description, e)
    return await fallback()
