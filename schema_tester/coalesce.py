"""
Per-key coalescing of in-flight async work.

Concurrent callers asking for the same key share one running task instead
of starting duplicates. Once the task settles the key is released; results
are not remembered here, callers keep their own caches.

Invariants:
    - At most one task runs per key at any time
    - A caller being cancelled does not cancel the shared task
    - A failure is delivered to every waiter of that task and then forgotten
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Coalescer(Generic[T]):
    """Share one in-flight task per key.

    Example:
        >>> flights: Coalescer[bytes] = Coalescer()
        >>> data = await flights.run("3.24.2", lambda: fetch("3.24.2"))
    """

    def __init__(self, name: str = "coalescer") -> None:
        self._name = name
        self._inflight: dict[str, asyncio.Task[T]] = {}

    def pending(self, key: str) -> bool:
        """Whether work for key is currently running."""
        return key in self._inflight

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Run factory for key, or join the run already in flight.

        Args:
            key: Request key
            factory: Zero-argument callable returning the awaitable to run

        Returns:
            The shared result
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._release(k, t))
        else:
            logger.debug(f"{self._name}: joining in-flight request for {key}")
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task[T]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the exception retrieved when every waiter went away
        if not task.cancelled():
            task.exception()
