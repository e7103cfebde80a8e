"""Taskweave - dependency-aware task scheduling for asyncio.

Taskweave runs a graph of named tasks with bounded parallelism, retries,
success callbacks and cooperative cancellation, plus the concurrency
primitives the scheduler is built on.

Layers:
    core/       Errors, cancellation tokens, logging, recovery helpers
    queues/     FIFO ring buffer and priority queue
    sync/       Bounded concurrency gate and function chain
    tasks/      Task, TaskManager, history and retry policy
    frontends/  Command-line interface

Key Concepts:
    Task:        Named unit of work with a worker(token, input)
    TaskManager: Runs tasks in dependency order, at most N at a time
    Token:       Cancellation scope; the manager derives one per task

Quick Start:
    >>> from taskweave import Task, TaskManager
    >>>
    >>> def double(token, value):
    ...     return value * 2
    >>>
    >>> manager = TaskManager(max_concurrency=2)
    >>> first = Task("first", double, input=1)
    >>> second = Task("second", double, input=2).add_dependency(first)
    >>> manager.add_task(first).add_task(second)
    >>> report = await manager.run()
    >>> report["second"].result
    4

Function chains:
    >>> from taskweave import FuncChain, FuncItem
    >>>
    >>> chain = FuncChain()
    >>> chain.add_func_item(FuncItem(lambda: 1 / 0))
    >>> chain.execute()
    >>> str(chain.get_func_items()[0].error)
    'panic: division by zero'
"""

from taskweave.__version__ import __version__

# Re-export the public API for convenience
from taskweave.core import (
    CancellationToken,
    CancelledException,
    DependencyError,
    HookError,
    PanicError,
    QueueEmptyError,
    QueueFullError,
    TaskweaveError,
    WiringError,
    configure_logging,
)
from taskweave.queues import FIFOQueue, FIFOQueueOptions, PriorityQueue, QueueCancelledError
from taskweave.sync import BoundedGate, FuncChain, FuncItem
from taskweave.tasks import (
    CallbackState,
    DependExecutionMode,
    RetryPolicy,
    RunReport,
    Task,
    TaskManager,
    TaskSnapshot,
    TaskState,
)

__all__ = [
    "__version__",
    # Tasks
    "Task",
    "TaskManager",
    "TaskState",
    "TaskSnapshot",
    "RunReport",
    "RetryPolicy",
    "CallbackState",
    "DependExecutionMode",
    # Primitives
    "BoundedGate",
    "FuncChain",
    "FuncItem",
    "FIFOQueue",
    "FIFOQueueOptions",
    "PriorityQueue",
    # Cancellation
    "CancellationToken",
    "CancelledException",
    # Errors
    "TaskweaveError",
    "WiringError",
    "DependencyError",
    "HookError",
    "PanicError",
    "QueueEmptyError",
    "QueueFullError",
    "QueueCancelledError",
    # Logging
    "configure_logging",
]
