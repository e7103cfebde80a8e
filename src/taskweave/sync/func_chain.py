"""Function chain - ordered batch runner with per-item outcomes.

Items run in ascending priority order (stable for ties). Every item runs
under the recovery wrapper, so a raising item never stops the batch.
Python has a single failure channel, so any exception an item raises is
stored on the item as a PanicError ("panic: ...") whose ``__cause__`` is
the original exception, also available as ``item.cause``.
"""

from __future__ import annotations

import threading
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from taskweave.core.errors import PanicError
from taskweave.core.recover import recover_call, recover_call_async

T = TypeVar("T")

DEFAULT_PRIORITY = -1


class FuncItem(Generic[T]):
    """A zero-argument callable plus its priority and last outcome.

    Attributes:
        priority: Ordering key; lower values run first.
        fn: The callable. May be a coroutine function for execute_async().
        result: Value returned by the last run (None if it raised).
        error: PanicError wrapping whatever the last run raised (None if it
            succeeded). Ordinary failures and unexpected bugs are wrapped
            alike; use ``cause`` to tell them apart.
    """

    def __init__(
        self,
        fn: Callable[[], T] | Callable[[], Awaitable[T]],
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        if not callable(fn):
            raise TypeError("fn must be callable")
        self.fn = fn
        self.priority = priority
        self.result: T | None = None
        self.error: PanicError | None = None

    @property
    def cause(self) -> BaseException | None:
        """The exception the last run actually raised, unwrapped."""
        if self.error is None:
            return None
        return self.error.__cause__ or self.error

    def with_priority(self, priority: int) -> FuncItem[T]:
        """Set the priority and return self for chaining."""
        self.priority = priority
        return self

    def _reset(self) -> None:
        self.result = None
        self.error = None

    def __repr__(self) -> str:
        name = getattr(self.fn, "__name__", repr(self.fn))
        return f"FuncItem(fn={name}, priority={self.priority})"


class FuncChain(Generic[T]):
    """Batch of FuncItems executed in priority order.

    Example:
        >>> chain = FuncChain[int]()
        >>> chain.add_func_item(FuncItem(lambda: 1).with_priority(1))
        >>> chain.add_func_item(FuncItem(lambda: 2).with_priority(0))
        >>> chain.execute()
        >>> [item.result for item in chain.get_func_items()]
        [2, 1]
    """

    def __init__(self) -> None:
        self._items: list[FuncItem[T]] = []
        self._lock = threading.RLock()

    def add_func_item(self, item: FuncItem[T]) -> FuncChain[T]:
        """Append an item to the batch. Returns self for chaining."""
        with self._lock:
            self._items.append(item)
        return self

    def get_func_items(self) -> list[FuncItem[T]]:
        """Items in their current (post-execution) order."""
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        """Remove every item."""
        with self._lock:
            self._items = []

    def _sorted(self) -> list[FuncItem[T]]:
        # list.sort is stable, so equal priorities keep insertion order
        self._items.sort(key=lambda item: item.priority)
        return list(self._items)

    def execute(self) -> None:
        """Run every item in priority order, recording results on the items.

        Never raises; inspect ``item.error`` per item.
        """
        with self._lock:
            items = self._sorted()
            for item in items:
                item._reset()
                item.result, item.error = recover_call(item.fn)

    async def execute_async(self) -> None:
        """Like execute(), awaiting coroutine items one after another."""
        with self._lock:
            items = self._sorted()
        for item in items:
            item._reset()
            item.result, item.error = await recover_call_async(item.fn)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __repr__(self) -> str:
        return f"FuncChain(items={len(self._items)})"
