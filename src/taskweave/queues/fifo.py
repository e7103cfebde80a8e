"""FIFO queue over a circular buffer with automatic grow/shrink.

The queue never blocks: dequeue on an empty queue raises QueueEmptyError
and callers that want to wait must poll. Capacity grows lazily on an
enqueue that would overflow and shrinks on dequeue once the load stays
below ``shrink_factor ** 2``.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from taskweave.core.cancellation import CancellationToken
from taskweave.core.errors import QueueEmptyError, QueueFullError
from taskweave.queues.base import QueueCancelledError, check_token

T = TypeVar("T")


@dataclass
class FIFOQueueOptions:
    """Sizing options for FIFOQueue.

    Attributes:
        initial_capacity: Capacity of the first backing buffer.
        auto_resize: Grow when full and shrink when sparse. When False a
            full queue rejects enqueues with QueueFullError.
        growth_factor: Multiplier applied to capacity on growth.
        shrink_factor: Multiplier applied to capacity on shrink.
        min_capacity: Capacity never shrinks below this.
    """

    initial_capacity: int = 16
    auto_resize: bool = True
    growth_factor: float = 2.0
    shrink_factor: float = 0.5
    min_capacity: int = 1

    def __post_init__(self) -> None:
        if self.initial_capacity < 1:
            raise ValueError("initial_capacity must be >= 1")
        if self.min_capacity < 1:
            raise ValueError("min_capacity must be >= 1")
        if self.growth_factor <= 1.0:
            raise ValueError("growth_factor must be > 1.0")
        if not 0.0 < self.shrink_factor < 1.0:
            raise ValueError("shrink_factor must be between 0 and 1 (exclusive)")


class FIFOQueue(Generic[T]):
    """Thread-safe FIFO queue backed by a ring buffer.

    Example:
        >>> q = FIFOQueue(FIFOQueueOptions(initial_capacity=2))
        >>> for i in range(3):
        ...     q.enqueue(i)          # grows to capacity 4 on the third item
        >>> q.dequeue()
        0
        >>> q.capacity
        4
    """

    def __init__(self, options: FIFOQueueOptions | None = None) -> None:
        self._options = options or FIFOQueueOptions()
        self._capacity = self._options.initial_capacity
        self._items: list[Any] = [None] * self._capacity
        self._head = 0
        self._tail = 0
        self._size = 0
        self._resize_count = 0
        self._shrink_count = 0
        self._lock = threading.Lock()

    @property
    def options(self) -> FIFOQueueOptions:
        return self._options

    @property
    def size(self) -> int:
        """Number of queued items."""
        with self._lock:
            return self._size

    @property
    def capacity(self) -> int:
        """Current capacity of the backing buffer."""
        with self._lock:
            return self._capacity

    def is_empty(self) -> bool:
        with self._lock:
            return self._size == 0

    def __len__(self) -> int:
        return self.size

    def enqueue(self, item: T, token: CancellationToken | None = None) -> None:
        """Append ``item`` at the tail.

        Args:
            item: Item to append.
            token: Optional cancellation token, checked before and after
                the insertion. A cancellation observed after the insertion
                removes the item again.

        Raises:
            QueueCancelledError: If the token is cancelled.
            QueueFullError: If the queue is full and auto_resize is off.
        """
        check_token(token)
        with self._lock:
            if self._size == self._capacity:
                if not self._options.auto_resize:
                    raise QueueFullError()
                new_capacity = max(
                    self._capacity + 1,
                    math.ceil(self._capacity * self._options.growth_factor),
                )
                self._resize(new_capacity)
                self._resize_count += 1

            self._items[self._tail] = item
            self._tail = (self._tail + 1) % self._capacity
            self._size += 1

            try:
                check_token(token)
            except QueueCancelledError:
                self._tail = (self._tail - 1) % self._capacity
                self._items[self._tail] = None
                self._size -= 1
                raise

    def dequeue(self, token: CancellationToken | None = None) -> T:
        """Remove and return the head item.

        Raises:
            QueueCancelledError: If the token is cancelled.
            QueueEmptyError: If the queue is empty.
        """
        check_token(token)
        with self._lock:
            if self._size == 0:
                raise QueueEmptyError()

            head = self._head
            item = self._items[head]
            self._items[head] = None
            self._head = (head + 1) % self._capacity
            self._size -= 1

            try:
                check_token(token)
            except QueueCancelledError:
                self._head = head
                self._items[head] = item
                self._size += 1
                raise

            if self._options.auto_resize and self._should_shrink():
                new_capacity = max(
                    self._options.min_capacity,
                    self._size,
                    int(self._capacity * self._options.shrink_factor),
                    1,
                )
                if new_capacity < self._capacity:
                    self._resize(new_capacity)
                    self._shrink_count += 1

            return item

    def peek(self, token: CancellationToken | None = None) -> T:
        """Return the head item without removing it.

        Raises:
            QueueCancelledError: If the token is cancelled.
            QueueEmptyError: If the queue is empty.
        """
        check_token(token)
        with self._lock:
            if self._size == 0:
                raise QueueEmptyError()
            return self._items[self._head]

    def clear(self) -> None:
        """Drop every item and return to the initial capacity."""
        with self._lock:
            self._capacity = max(self._options.initial_capacity, self._options.min_capacity)
            self._items = [None] * self._capacity
            self._head = self._tail = self._size = 0

    def stats(self) -> dict[str, Any]:
        """Snapshot of sizing counters."""
        with self._lock:
            return {
                "size": self._size,
                "capacity": self._capacity,
                "min_capacity": self._options.min_capacity,
                "auto_resize": self._options.auto_resize,
                "utilization": self._size / self._capacity * 100,
                "resize_count": self._resize_count,
                "shrink_count": self._shrink_count,
            }

    def _should_shrink(self) -> bool:
        if self._capacity <= self._options.min_capacity:
            return False
        threshold = self._capacity * (self._options.shrink_factor**2)
        return self._size < threshold

    def _resize(self, new_capacity: int) -> None:
        """Copy live items, in order, into a buffer of ``new_capacity``."""
        items: list[Any] = [None] * new_capacity
        for i in range(self._size):
            items[i] = self._items[(self._head + i) % self._capacity]
        self._items = items
        self._capacity = new_capacity
        self._head = 0
        self._tail = self._size % new_capacity

    def __repr__(self) -> str:
        return f"FIFOQueue(size={self._size}, capacity={self._capacity})"


__all__ = ["FIFOQueue", "FIFOQueueOptions", "QueueCancelledError"]
