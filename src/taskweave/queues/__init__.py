"""Non-blocking, thread-safe queues.

- FIFOQueue: ring buffer with automatic grow/shrink
- PriorityQueue: max-heap with FIFO ordering among equal priorities
"""

from taskweave.queues.base import QueueCancelledError
from taskweave.queues.fifo import FIFOQueue, FIFOQueueOptions
from taskweave.queues.priority import PriorityQueue

__all__ = [
    "FIFOQueue",
    "FIFOQueueOptions",
    "PriorityQueue",
    "QueueCancelledError",
]
