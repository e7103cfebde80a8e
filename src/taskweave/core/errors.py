"""Error types shared across taskweave.

Every error raised by the library derives from TaskweaveError so callers
can catch the whole family at once. Worker and callback failures are not
wrapped: the exception raised by caller code is stored unchanged on the
task.
"""

from __future__ import annotations

from typing import Any


class TaskweaveError(Exception):
    """Base error for taskweave operations."""


class WiringError(TaskweaveError, ValueError):
    """Invalid task graph structure.

    Raised when:
    - A task is made to depend on itself
    - A dependency edge would close a cycle
    - A task name is registered twice while the first task is still live
    """


class InvalidTransitionError(TaskweaveError, RuntimeError):
    """A task state transition that would move backwards."""

    def __init__(self, name: str, current: Any, target: Any) -> None:
        super().__init__(f"task '{name}' cannot move from {current.name} to {target.name}")
        self.name = name
        self.current = current
        self.target = target


class DependencyError(TaskweaveError):
    """A prerequisite ended in FAILED or CANCELLED.

    Attributes:
        dependency: Name of the offending dependency.
        reason: The dependency's own error (None when it was cancelled).
        cancelled: True if the dependency was cancelled rather than failed.
    """

    def __init__(
        self,
        dependency: str,
        reason: BaseException | None = None,
        cancelled: bool = False,
    ) -> None:
        if cancelled:
            message = f"dependency '{dependency}' was cancelled"
        else:
            message = f"dependency '{dependency}' failed: {reason}"
        super().__init__(message)
        self.dependency = dependency
        self.reason = reason
        self.cancelled = cancelled


class HookError(TaskweaveError):
    """A turn_up or turn_down lifecycle hook raised."""

    def __init__(self, hook: str, error: BaseException) -> None:
        super().__init__(f"{hook} hook failed: {error}")
        self.hook = hook
        self.error = error


class PanicError(TaskweaveError):
    """An exception recovered from caller-supplied code.

    The message is always prefixed with ``panic:`` and the recovered
    value is kept in ``value``.
    """

    def __init__(self, value: Any) -> None:
        super().__init__(f"panic: {value}")
        self.value = value


class QueueError(TaskweaveError):
    """Base error for queue operations."""


class QueueEmptyError(QueueError):
    """Dequeue or peek on an empty queue."""

    def __init__(self, message: str = "queue is empty") -> None:
        super().__init__(message)


class QueueFullError(QueueError):
    """Enqueue on a full queue that is not allowed to grow."""

    def __init__(self, message: str = "queue is full and auto resize is disabled") -> None:
        super().__init__(message)
