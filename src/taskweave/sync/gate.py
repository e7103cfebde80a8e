"""Bounded concurrency gate.

BoundedGate caps the number of in-flight operations and remembers the
first error any of them produced. It plays two roles:

- A wait group: ``spawn()`` operations, then ``wait()`` for all of them.
- An admission gate: ``async with gate.slot(priority)`` holds one slot
  without spawning anything. The task manager admits workers this way.

Waiters are admitted highest priority first, then by their ``order``
tie-breaker, then in arrival order.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from taskweave.core.recover import to_panic_error
from taskweave.queues.priority import PriorityQueue

logger = logging.getLogger(__name__)


class BoundedGate:
    """Counting semaphore with priority admission and first-error capture.

    Args:
        limit: Maximum simultaneous operations (0 = unlimited).
        recover_panics: Convert exceptions raised by spawned operations
            into PanicError ("panic: ...") before recording them.

    Example:
        >>> gate = BoundedGate(limit=2, recover_panics=True)
        >>> for url in urls:
        ...     await gate.spawn(fetch, url)   # blocks while 2 are running
        >>> error = await gate.wait()
    """

    def __init__(self, limit: int = 0, recover_panics: bool = False) -> None:
        if limit < 0:
            raise ValueError("limit cannot be negative")
        self._limit = limit
        self._recover_panics = recover_panics
        self._active = 0
        self._waiters: PriorityQueue[asyncio.Future[None]] = PriorityQueue()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._error: BaseException | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._dispatch_handle: asyncio.Handle | None = None

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def in_flight(self) -> int:
        """Number of operations currently holding a slot."""
        return self._active

    @property
    def error(self) -> BaseException | None:
        """First recorded error, if any."""
        return self._error

    def set_error(self, error: BaseException) -> None:
        """Record ``error`` unless an earlier error was already recorded."""
        if self._error is None:
            self._error = error
        else:
            logger.debug("gate_error_dropped: error=%s", error)

    async def acquire(self, priority: int = 0, order: int = 0) -> None:
        """Take one slot, waiting if the gate is full.

        With a limit, every request is queued and slots are granted on a
        later loop iteration, so requests made in the same iteration
        compete by priority rather than by who asked first.

        Args:
            priority: Admission priority among waiters (higher first).
            order: Tie-breaker among equal priorities (lower first).
        """
        if self._limit == 0:
            self._active += 1
            return

        self._loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = self._loop.create_future()
        self._waiters.enqueue(future, priority, order=order)
        self._schedule_dispatch()
        try:
            await future
        except asyncio.CancelledError:
            # The slot may have been granted just before cancellation
            if future.done() and not future.cancelled():
                self.release()
            raise

    def release(self) -> None:
        """Give a slot back; waiters are admitted on the next dispatch."""
        if self._active <= 0:
            raise RuntimeError("release() called more times than acquire()")
        self._active -= 1
        if not self._waiters.is_empty():
            self._schedule_dispatch()

    def _schedule_dispatch(self) -> None:
        if self._dispatch_handle is None and self._loop is not None:
            self._dispatch_handle = self._loop.call_soon(self._dispatch)

    def _dispatch(self) -> None:
        self._dispatch_handle = None
        while self._active < self._limit and not self._waiters.is_empty():
            future = self._waiters.dequeue()
            if future.done():
                continue
            self._active += 1
            future.set_result(None)

    @asynccontextmanager
    async def slot(self, priority: int = 0, order: int = 0) -> AsyncIterator[None]:
        """Hold one slot for the duration of the block."""
        await self.acquire(priority, order)
        try:
            yield
        finally:
            self.release()

    async def spawn(
        self,
        fn: Callable[..., Awaitable[Any] | Any],
        *args: Any,
        priority: int = 0,
    ) -> asyncio.Task[Any]:
        """Run ``fn(*args)`` once a slot is free.

        Blocks the caller while the gate is full. Coroutine functions run
        on the event loop; plain callables run on a worker thread.

        Returns:
            The asyncio task running the operation.
        """
        await self.acquire(priority)
        task = asyncio.create_task(self._run(fn, args))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait(self) -> BaseException | None:
        """Wait for every spawned operation.

        Returns:
            The first recorded error, or None.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        return self._error

    async def _run(self, fn: Callable[..., Any], args: tuple[Any, ...]) -> Any:
        try:
            if inspect.iscoroutinefunction(fn):
                return await fn(*args)
            result = await asyncio.to_thread(fn, *args)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        except Exception as e:
            self.set_error(to_panic_error(e) if self._recover_panics else e)
            return None
        finally:
            self.release()

    def __repr__(self) -> str:
        return f"BoundedGate(limit={self._limit}, in_flight={self._active})"
