"""Cooperative cancellation for task execution.

CancellationToken is the cancellation scope threaded through the task
manager and the queues. Cancellation is cooperative - workers must check
the token at appropriate points.

Tokens form a tree: ``token.child()`` derives a token that is cancelled
whenever its parent is, but can also be cancelled on its own without
affecting the parent. The task manager derives one child per task from
the root token passed to ``TaskManager.run()``.

``cancel()`` may be called from any thread, including the worker threads
that run synchronous task workers. Waiters on the event loop are woken
through ``call_soon_threadsafe`` in that case.

Typical usage:
1. Create a CancellationToken before starting a run
2. Pass it to ``TaskManager.run(token)``
3. Call token.cancel() from another task or thread to request cancellation
4. Workers call ``token.check()`` between units of work
"""

from __future__ import annotations

import asyncio
import threading
import weakref

from taskweave.core.errors import TaskweaveError


class CancelledException(TaskweaveError):
    """Raised when execution is cancelled.

    Distinct from ``asyncio.CancelledError``: this one is raised by
    cooperative checks, never by the event loop.
    """

    def __init__(self, message: str = "operation cancelled") -> None:
        super().__init__(message)


class CancellationToken:
    """Token for cooperative cancellation.

    Example:
        >>> root = CancellationToken()
        >>> task_token = root.child()
        >>>
        >>> async def worker(token, value):
        ...     for chunk in value:
        ...         token.check()
        ...         await process(chunk)
        >>>
        >>> root.cancel()          # cancels task_token too
        >>> task_token.is_cancelled
        True
    """

    def __init__(self, parent: CancellationToken | None = None) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._event = asyncio.Event()
        # Loop that last waited on the token; set lazily by wait()/sleep()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._parent = parent
        self._children: weakref.WeakSet[CancellationToken] = weakref.WeakSet()
        self._lock = threading.Lock()

    def child(self) -> CancellationToken:
        """Derive a child token.

        The child is cancelled when this token is cancelled. Cancelling
        the child leaves this token untouched.

        Returns:
            New child token (already cancelled if this one is).
        """
        token = CancellationToken(parent=self)
        with self._lock:
            cancelled = self._cancelled
            if not cancelled:
                self._children.add(token)
        if cancelled:
            token.cancel(self._reason)
        return token

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation.

        Sets the cancelled flag, wakes any waiters and cancels every
        child token. Safe to call multiple times and from any thread; the
        first reason wins.

        Args:
            reason: Optional human readable reason.
        """
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            children = list(self._children)
            self._children.clear()
        self._wake()
        for child in children:
            child.cancel(reason)

    def _wake(self) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            # Nobody waits on a loop yet; wait()/sleep() see the flag first
            self._event.set()
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._event.set()
        else:
            loop.call_soon_threadsafe(self._event.set)

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._cancelled

    @property
    def reason(self) -> str | None:
        """Reason passed to the first cancel() call."""
        return self._reason

    @property
    def parent(self) -> CancellationToken | None:
        """Token this one was derived from, if any."""
        return self._parent

    def check(self) -> None:
        """Raise CancelledException if cancelled.

        Raises:
            CancelledException: If cancellation was requested.
        """
        if self._cancelled:
            raise CancelledException(self._reason or "operation cancelled")

    async def wait(self) -> None:
        """Wait until cancelled."""
        self._loop = asyncio.get_running_loop()
        if self._cancelled:
            return
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds unless cancelled first.

        Args:
            delay: Seconds to sleep.

        Returns:
            True if the sleep was interrupted by cancellation.
        """
        self._loop = asyncio.get_running_loop()
        if self._cancelled:
            return True
        if delay <= 0:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True

    def reset(self) -> None:
        """Reset the token for reuse.

        Clears the cancelled flag and event. Children cancelled earlier
        stay cancelled - typically you should create a new token instead.
        """
        with self._lock:
            self._cancelled = False
            self._reason = None
        self._event.clear()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"
