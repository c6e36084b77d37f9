"""Continuation-driven pagination and bounded id batching."""

import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

PageFetcher = Callable[[str], Awaitable[tuple[list[T], str]]]


async def paginate(fetch_page: PageFetcher, limit: int | None = None) -> list[T]:
    """Collect pages until the server returns an empty continuation.

    ``fetch_page`` receives the continuation of the previous page (empty on
    the first call) and returns the decoded items and the next continuation.
    When ``limit`` is given the loop also stops once that many items were
    collected. Errors raised by ``fetch_page`` propagate unchanged.
    """
    results: list[T] = []
    continuation = ""
    pages = 0

    while True:
        items, continuation = await fetch_page(continuation)
        results.extend(items)
        pages += 1
        if not continuation:
            break
        if limit is not None and len(results) >= limit:
            logger.debug("Stopping after %d pages, limit of %d items reached", pages, limit)
            break

    return results


def chunked(ids: list[str], size: int) -> Iterator[list[str]]:
    """Yield consecutive slices of ``ids`` holding at most ``size`` entries."""
    if size <= 0:
        raise ValueError("Batch size must be positive")
    for start in range(0, len(ids), size):
        yield ids[start : start + size]


async def fetch_in_batches(
    ids: list[str],
    size: int,
    fetch_batch: Callable[[list[str]], Awaitable[list[T]]],
) -> list[T]:
    """Run ``fetch_batch`` over each chunk of ``ids`` and concatenate in order.

    The first failing chunk aborts the whole operation.
    """
    results: list[T] = []
    for batch in chunked(ids, size):
        results.extend(await fetch_batch(batch))
    return results
