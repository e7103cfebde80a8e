"""Tests for the priority queue."""

import pytest

from taskweave.core.errors import QueueEmptyError
from taskweave.queues import PriorityQueue, QueueCancelledError


class TestPriorityQueue:
    """Tests for PriorityQueue."""

    def test_highest_priority_first(self):
        pq = PriorityQueue()
        pq.enqueue("low", 1)
        pq.enqueue("high", 10)
        pq.enqueue("mid", 5)
        assert [pq.dequeue() for _ in range(3)] == ["high", "mid", "low"]

    def test_ties_in_insertion_order(self):
        """Equal priorities dequeue FIFO."""
        pq = PriorityQueue()
        for name in ["a", "b", "c", "d"]:
            pq.enqueue(name, 3)
        pq.enqueue("first", 9)
        assert [pq.dequeue() for _ in range(5)] == ["first", "a", "b", "c", "d"]

    def test_negative_priorities(self):
        pq = PriorityQueue()
        pq.enqueue("neg", -5)
        pq.enqueue("zero")
        assert pq.dequeue() == "zero"
        assert pq.dequeue() == "neg"

    def test_empty_dequeue_raises(self):
        with pytest.raises(QueueEmptyError):
            PriorityQueue().dequeue()

    def test_peek(self):
        pq = PriorityQueue()
        with pytest.raises(QueueEmptyError):
            pq.peek()
        pq.enqueue("x", 2)
        pq.enqueue("y", 7)
        assert pq.peek() == "y"
        assert pq.peek_priority() == 7
        assert len(pq) == 2

    def test_order_breaks_ties(self):
        """Lower order wins among equal priorities, regardless of insertion."""
        pq = PriorityQueue()
        pq.enqueue("late", 5, order=2)
        pq.enqueue("early", 5, order=0)
        pq.enqueue("urgent", 9, order=7)
        pq.enqueue("early-2", 5, order=0)

        assert [pq.dequeue() for _ in range(4)] == ["urgent", "early", "early-2", "late"]

    def test_unorderable_items(self):
        """Items themselves are never compared."""
        pq = PriorityQueue()
        pq.enqueue({"a": 1}, 1)
        pq.enqueue({"b": 2}, 1)
        assert pq.dequeue() == {"a": 1}

    def test_cancellation(self, token):
        pq = PriorityQueue()
        pq.enqueue("kept", 1)
        token.cancel()

        with pytest.raises(QueueCancelledError):
            pq.enqueue("x", 1, token)
        with pytest.raises(QueueCancelledError):
            pq.dequeue(token)
        assert pq.size == 1
