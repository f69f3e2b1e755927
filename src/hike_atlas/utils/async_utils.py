"""
Async utilities for wrapping synchronous operations.

Provides helpers to run blocking work (HTTP requests, file I/O, CPU-bound
statistics) in a thread pool without blocking the event loop, and to run
many coroutines with a concurrency cap.
"""

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, Iterable, List, TypeVar

T = TypeVar("T")


async def to_thread(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Run a synchronous function in the default thread pool.

    Parameters
    ----------
    func : Callable
        Synchronous function to run.
    *args
        Positional arguments for the function.
    **kwargs
        Keyword arguments for the function.

    Returns
    -------
    T
        Result of the function.

    Example
    -------
    >>> data = await to_thread(client.fetch_tile, 12, 2138, 1420)
    """
    loop = asyncio.get_running_loop()
    bound_func = partial(func, *args, **kwargs)
    return await loop.run_in_executor(None, bound_func)


async def gather_bounded(
    factories: Iterable[Callable[[], Awaitable[T]]], limit: int
) -> List[T]:
    """
    Await coroutines produced by `factories` with at most `limit` running at once.

    Results are returned in input order. Exceptions propagate as with
    asyncio.gather.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    semaphore = asyncio.Semaphore(limit)

    async def run(factory: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await factory()

    return list(await asyncio.gather(*(run(f) for f in factories)))
