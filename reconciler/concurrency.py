"""
Concurrency Module
===================
Keyed single-flight execution for asyncio.

At most one construction runs per key at a time. Callers racing on the
same key share the in-flight task and receive the same result; callers on
different keys never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar('K', bound=Hashable)
T = TypeVar('T')


class SingleFlight(Generic[K, T]):
    """
    Deduplicates concurrent work per key.

    The first caller for a key starts ``factory()`` as a task; later callers
    for the same key await that task instead of starting their own. The
    entry is dropped once the task finishes, so a failed attempt is never
    cached and the next call starts fresh.

    Waiters are shielded: cancelling one caller's await leaves the shared
    task running for everyone else.

    Example:
        flights = SingleFlight[str, Book]()

        async def load():
            return await build_book("book-1")

        book = await flights.do("book-1", load)
    """

    def __init__(self):
        self._inflight: dict[K, asyncio.Task[T]] = {}

    def in_flight(self, key: K) -> bool:
        """Check if work for ``key`` is currently running."""
        return key in self._inflight

    async def do(self, key: K, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``factory`` for ``key`` unless it is already running.

        Args:
            key: Deduplication key
            factory: Zero-argument coroutine function producing the value

        Returns:
            The value produced by the single in-flight execution
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._finish(key, done))
        else:
            logger.debug(f"Joining in-flight work for {key}")
        return await asyncio.shield(task)

    def _finish(self, key: K, task: asyncio.Task[T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the exception as retrieved; every live waiter re-raises it.
        if not task.cancelled():
            task.exception()
