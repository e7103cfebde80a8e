"""Tests for the ring buffer FIFO queue."""

import threading

import pytest

from taskweave.core.cancellation import CancellationToken, CancelledException
from taskweave.core.errors import QueueEmptyError, QueueFullError
from taskweave.queues import FIFOQueue, FIFOQueueOptions, QueueCancelledError


class TestFIFOQueueOptions:
    """Tests for option validation."""

    def test_defaults(self):
        options = FIFOQueueOptions()
        assert options.initial_capacity == 16
        assert options.auto_resize is True
        assert options.growth_factor == 2.0
        assert options.shrink_factor == 0.5
        assert options.min_capacity == 1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"initial_capacity": 0},
            {"min_capacity": 0},
            {"growth_factor": 1.0},
            {"shrink_factor": 0.0},
            {"shrink_factor": 1.0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            FIFOQueueOptions(**kwargs)


class TestFIFOOrdering:
    """Tests for basic queue behaviour."""

    def test_fifo_order(self):
        """Items come out in the order they went in."""
        q = FIFOQueue()
        for i in range(5):
            q.enqueue(i)
        assert [q.dequeue() for _ in range(5)] == [0, 1, 2, 3, 4]

    def test_empty_dequeue_raises(self):
        """Dequeue on an empty queue raises instead of blocking."""
        q = FIFOQueue()
        with pytest.raises(QueueEmptyError):
            q.dequeue()

    def test_peek(self):
        q = FIFOQueue()
        with pytest.raises(QueueEmptyError):
            q.peek()
        q.enqueue("a")
        q.enqueue("b")
        assert q.peek() == "a"
        assert q.size == 2

    def test_wraparound(self):
        """Order survives the tail wrapping past the end of the buffer."""
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=4, auto_resize=False))
        for i in range(3):
            q.enqueue(i)
        assert q.dequeue() == 0
        assert q.dequeue() == 1
        for i in range(3, 6):
            q.enqueue(i)
        assert q.capacity == 4
        assert [q.dequeue() for _ in range(4)] == [2, 3, 4, 5]

    def test_len_and_is_empty(self):
        q = FIFOQueue()
        assert q.is_empty()
        q.enqueue(1)
        assert len(q) == 1
        assert not q.is_empty()

    def test_clear(self):
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=2))
        for i in range(10):
            q.enqueue(i)
        q.clear()
        assert q.size == 0
        assert q.capacity == 2


class TestFIFOResize:
    """Tests for automatic grow and shrink."""

    def test_grows_when_full(self):
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=2))
        for i in range(3):
            q.enqueue(i)
        assert q.capacity == 4
        assert [q.dequeue() for _ in range(3)] == [0, 1, 2]

    def test_grows_by_ceil_of_factor(self):
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=3, growth_factor=1.5))
        for i in range(4):
            q.enqueue(i)
        assert q.capacity == 5  # ceil(3 * 1.5)

    def test_full_without_auto_resize(self):
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=2, auto_resize=False))
        q.enqueue(1)
        q.enqueue(2)
        with pytest.raises(QueueFullError):
            q.enqueue(3)
        assert q.size == 2

    def test_shrinks_when_sparse(self):
        """Capacity halves once size drops below capacity * 0.25."""
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=16))
        for i in range(16):
            q.enqueue(i)
        for _ in range(13):
            q.dequeue()

        # 3 < 16 * 0.25 -> capacity 8
        assert q.capacity == 8
        assert [q.dequeue() for _ in range(3)] == [13, 14, 15]

    def test_never_below_min_capacity(self):
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=16, min_capacity=8))
        for i in range(16):
            q.enqueue(i)
        for _ in range(16):
            q.dequeue()
        assert q.capacity == 8

    def test_no_shrink_without_auto_resize(self):
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=16, auto_resize=False))
        for i in range(16):
            q.enqueue(i)
        for _ in range(16):
            q.dequeue()
        assert q.capacity == 16

    def test_stats(self):
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=2))
        for i in range(3):
            q.enqueue(i)
        stats = q.stats()
        assert stats["size"] == 3
        assert stats["capacity"] == 4
        assert stats["resize_count"] == 1
        assert stats["shrink_count"] == 0
        assert stats["utilization"] == 75.0


class TestFIFOCancellation:
    """Tests for token-aware operations."""

    def test_enqueue_cancelled(self):
        token = CancellationToken()
        token.cancel()
        q = FIFOQueue()
        with pytest.raises(QueueCancelledError):
            q.enqueue(1, token)
        assert q.size == 0

    def test_dequeue_cancelled_keeps_item(self, token):
        q = FIFOQueue()
        q.enqueue(1)
        token.cancel("stop")
        with pytest.raises(QueueCancelledError, match="stop"):
            q.dequeue(token)
        assert q.dequeue() == 1

    def test_cancelled_error_is_cancelled_exception(self):
        assert issubclass(QueueCancelledError, CancelledException)


class TestFIFOThreadSafety:
    """Concurrent producers and consumers."""

    def test_concurrent_enqueue(self):
        q = FIFOQueue(FIFOQueueOptions(initial_capacity=1))

        def produce(start):
            for i in range(start, start + 250):
                q.enqueue(i)

        threads = [threading.Thread(target=produce, args=(n * 250,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        items = [q.dequeue() for _ in range(1000)]
        assert sorted(items) == list(range(1000))
        assert q.is_empty()
