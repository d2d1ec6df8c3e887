"""Shared concurrency primitives.

Two helpers:

1. **throttled_gather** -- ``asyncio.gather`` with every awaitable wrapped
   in a semaphore acquire/release.  Used for the research answer fan-out and
   for scheduler batches.

2. **bounded_map** -- apply an async function to a list of items with at
   most *limit* calls in flight, returning results (or exceptions) in input
   order.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

_T = TypeVar("_T")
_R = TypeVar("_R")

# Default ceiling for outbound provider calls when the caller passes no
# semaphore of its own.
_DEFAULT_LIMIT = 5


async def throttled_gather(
    coros: Sequence[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with semaphore throttling.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Semaphore for concurrency control.  A fresh one with
        ``_DEFAULT_LIMIT`` slots is created per call when omitted.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if semaphore is None:
        semaphore = asyncio.Semaphore(_DEFAULT_LIMIT)

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


async def bounded_map(
    fn: Callable[[_T], Awaitable[_R]],
    items: Sequence[_T],
    limit: int,
) -> list[_R | BaseException]:
    """Apply *fn* to every item with at most *limit* calls in flight.

    Exceptions are captured per item so one failure never cancels its
    siblings.
    """
    semaphore = asyncio.Semaphore(max(1, limit))
    return await throttled_gather([fn(item) for item in items], semaphore=semaphore)
