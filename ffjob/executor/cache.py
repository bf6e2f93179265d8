"""
Single-flight cache for static ffmpeg capability queries.

``ffmpeg -version``, ``-codecs`` and ``-formats`` never change while the
program runs, so each is computed once. Concurrent first callers share the
one in-flight computation instead of each starting a process.
"""

import asyncio
from typing import Any, Awaitable, Callable, Hashable

from ..utils import get_logger

logger = get_logger(__name__)


class SingleFlightCache:
    """Caches the result of one coroutine per key."""

    def __init__(self) -> None:
        self._tasks: dict[Hashable, asyncio.Task] = {}

    async def get(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached value for ``key``, computing it at most once.

        A computation that raises is evicted, so the next call retries.

        Args:
            key: Cache key
            factory: Zero-argument coroutine function producing the value
        """
        task = self._tasks.get(key)
        if task is None:
            logger.debug(f"Computing cached value for {key!r}")
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
            task.add_done_callback(lambda t: self._evict_failed(key, t))

        # One cancelled caller must not cancel the computation for the others
        return await asyncio.shield(task)

    def _evict_failed(self, key: Hashable, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is not None:
            if self._tasks.get(key) is task:
                del self._tasks[key]

    def __contains__(self, key: Hashable) -> bool:
        task = self._tasks.get(key)
        return task is not None and task.done() and not task.cancelled() and task.exception() is None

    def clear(self) -> None:
        """Drop all cached values."""
        self._tasks.clear()
