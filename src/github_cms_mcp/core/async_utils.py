"""Async helpers for running blocking GitHub REST calls off the event loop."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

# Bounds the number of in-flight API requests; set once at server startup
_semaphore: asyncio.Semaphore | None = None


def init_semaphore(max_parallel: int = 5) -> None:
    """Create the request semaphore. Call once at server startup."""
    global _semaphore
    _semaphore = asyncio.Semaphore(max_parallel)
    logger.info(
        "GitHub request semaphore initialized: max_parallel=%d",
        max_parallel,
    )


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Call a blocking function in a worker thread.

    Used for one-off store calls (connectivity checks, local file I/O)
    that should not count against the request semaphore.

    Example:
        repo = await run_sync(client.get_repository, remote)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_sync_limited(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Call a blocking function in a worker thread under the request semaphore.

    Without an initialized semaphore the call is unbounded.
    """
    if _semaphore is None:
        return await asyncio.to_thread(func, *args, **kwargs)
    async with _semaphore:
        return await asyncio.to_thread(func, *args, **kwargs)


async def gather_limited(
    coros: Sequence[Awaitable[T]],
) -> list[T]:
    """Await *coros* concurrently and return their results in input order.

    Each coroutine is expected to go through ``run_sync_limited`` so the
    semaphore caps concurrency. The first exception propagates; the other
    coroutines still run to completion in the background of ``gather``.
    """
    return list(await asyncio.gather(*coros))


async def gather_settled(
    coros: Sequence[Awaitable[T]],
) -> list[T | BaseException]:
    """Like ``gather_limited`` but returns exceptions in place of results."""
    return list(await asyncio.gather(*coros, return_exceptions=True))
