"""Bounded async work pool that keeps results in input order."""
import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


async def run_bounded(concurrency: int, items: Sequence[T],
                      worker_fn: Callable[[T, int], Awaitable[R]]) -> List[R]:
    """
    Run ``worker_fn`` over ``items`` with at most ``concurrency`` calls in flight.

    Workers share one cursor and claim the next unprocessed index until the
    list is exhausted. Each result is stored at its item's index, so the
    output order matches the input order whatever the completion order is.

    Args:
        concurrency: Maximum number of simultaneous calls; values below 1 act as 1
        items: Items to process
        worker_fn: Coroutine function called as ``worker_fn(item, index)``.
            It is expected not to raise; the pool does not catch errors.

    Returns:
        List of results, ``results[i] == await worker_fn(items[i], i)``
    """
    items = list(items)
    total = len(items)
    results: List[R] = [None] * total
    if not total:
        return results

    workers = min(max(1, concurrency), total)
    cursor = 0

    async def worker() -> None:
        nonlocal cursor
        while True:
            # Claiming has no await, so no other worker can interleave here
            index = cursor
            cursor += 1
            if index >= total:
                return
            results[index] = await worker_fn(items[index], index)

    logger.debug(f"Processing {total} items with {workers} workers")
    await asyncio.gather(*(worker() for _ in range(workers)))
    return results
