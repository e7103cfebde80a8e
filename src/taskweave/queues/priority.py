"""Priority queue keyed by caller-supplied integer priority.

Higher priority dequeues first; equal priorities dequeue in insertion
order. Like FIFOQueue it never blocks: an empty queue raises
QueueEmptyError immediately.
"""

from __future__ import annotations

import heapq
import itertools
import threading
from typing import Any, Generic, TypeVar

from taskweave.core.cancellation import CancellationToken
from taskweave.core.errors import QueueEmptyError
from taskweave.queues.base import check_token

T = TypeVar("T")


class PriorityQueue(Generic[T]):
    """Thread-safe binary max-heap with stable ordering for ties.

    Example:
        >>> pq = PriorityQueue()
        >>> pq.enqueue("low", 1)
        >>> pq.enqueue("high", 10)
        >>> pq.enqueue("high-2", 10)
        >>> [pq.dequeue() for _ in range(3)]
        ['high', 'high-2', 'low']
    """

    def __init__(self) -> None:
        # Entries are [-priority, order, seq, item]; heapq is a min-heap
        self._heap: list[list[Any]] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._heap)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._heap

    def __len__(self) -> int:
        return self.size

    def enqueue(
        self,
        item: T,
        priority: int = 0,
        token: CancellationToken | None = None,
        *,
        order: int = 0,
    ) -> None:
        """Insert ``item`` with ``priority``.

        Args:
            item: Value to store.
            priority: Higher dequeues first.
            token: Optional cancellation token checked before inserting.
            order: Tie-breaker among equal priorities, lower first. Items
                with the same priority and order keep insertion order.

        Raises:
            QueueCancelledError: If the token is cancelled.
        """
        check_token(token)
        with self._lock:
            heapq.heappush(self._heap, [-priority, order, next(self._counter), item])

    def dequeue(self, token: CancellationToken | None = None) -> T:
        """Remove and return the highest-priority item.

        Raises:
            QueueCancelledError: If the token is cancelled.
            QueueEmptyError: If the queue is empty.
        """
        check_token(token)
        with self._lock:
            if not self._heap:
                raise QueueEmptyError()
            return heapq.heappop(self._heap)[3]

    def peek(self) -> T:
        """Return the highest-priority item without removing it.

        Raises:
            QueueEmptyError: If the queue is empty.
        """
        with self._lock:
            if not self._heap:
                raise QueueEmptyError()
            return self._heap[0][3]

    def peek_priority(self) -> int:
        """Priority of the head item.

        Raises:
            QueueEmptyError: If the queue is empty.
        """
        with self._lock:
            if not self._heap:
                raise QueueEmptyError()
            return -self._heap[0][0]

    def __repr__(self) -> str:
        return f"PriorityQueue(size={len(self._heap)})"
