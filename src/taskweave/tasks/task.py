"""Task - a named unit of work with dependencies, retries and a callback.

A task is created by the caller, wired to its dependencies, registered
with a TaskManager and executed by it. Only the manager moves a task
through its states; callers read the outcome after ``run()`` returns.
"""

from __future__ import annotations

import threading
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from taskweave.core.errors import InvalidTransitionError, WiringError
from taskweave.core.validation import validate_name
from taskweave.tasks.policies import RetryPolicy
from taskweave.tasks.types import (
    ALLOWED_TRANSITIONS,
    CallbackState,
    DependExecutionMode,
    TaskSnapshot,
    TaskState,
)

if TYPE_CHECKING:
    from taskweave.core.cancellation import CancellationToken

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Task(Generic[InputT, OutputT]):
    """A named unit of work.

    Args:
        name: Unique identifier within a manager.
        worker: Callable ``(token, input) -> output``. Coroutine functions
            run on the event loop, plain functions on a worker thread.
            Raising signals failure.
        input: Value passed to the worker.
        priority: Higher runs earlier among ready tasks.
        max_retries: Retries after the first failed attempt.
        retry_interval: Seconds to wait before each retry.
        retry_backoff: Multiplier applied to the interval after each retry.
        depend_execution_mode: Launch pending dependencies one by one
            (SEQUENTIAL) or all at once (CONCURRENT).
        success_callback: Optional ``(result) -> result`` post-processor run
            only after the worker succeeds. Its return value replaces the
            result; if it raises, the task stays COMPLETED and only
            ``callback_state``/``callback_error`` record the failure.

    Example:
        >>> fetch = Task("fetch", fetch_users, input="https://api")
        >>> report = Task("report", build_report, priority=5)
        >>> report.add_dependency(fetch)
    """

    def __init__(
        self,
        name: str,
        worker: Callable[[CancellationToken, InputT], OutputT | Awaitable[OutputT]],
        input: InputT | None = None,
        *,
        priority: int = 0,
        max_retries: int = 0,
        retry_interval: float = 0.0,
        retry_backoff: float = 1.0,
        depend_execution_mode: DependExecutionMode = DependExecutionMode.CONCURRENT,
        success_callback: Callable[[OutputT], Any] | None = None,
    ) -> None:
        validate_name(name, "task")
        if not callable(worker):
            raise TypeError("worker must be callable")
        if success_callback is not None and not callable(success_callback):
            raise TypeError("success_callback must be callable")

        self._name = name
        self.worker = worker
        self.input = input
        self.priority = priority
        self.retry_policy = RetryPolicy(
            max_retries=max_retries,
            retry_interval=retry_interval,
            retry_backoff=retry_backoff,
        )
        self.depend_execution_mode = depend_execution_mode
        self.success_callback = success_callback

        self._dependencies: dict[str, Task[Any, Any]] = {}
        self._state = TaskState.PENDING
        self._result: OutputT | None = None
        self._error: BaseException | None = None
        self._retry_count = 0
        self._callback_state = CallbackState.NOT_RUN
        self._callback_error: BaseException | None = None
        self._started_at: datetime | None = None
        self._finished_at: datetime | None = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def result(self) -> OutputT | None:
        return self._result

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def max_retries(self) -> int:
        return self.retry_policy.max_retries

    @property
    def retry_interval(self) -> float:
        return self.retry_policy.retry_interval

    @property
    def callback_state(self) -> CallbackState:
        return self._callback_state

    @property
    def callback_error(self) -> BaseException | None:
        return self._callback_error

    @property
    def started_at(self) -> datetime | None:
        return self._started_at

    @property
    def finished_at(self) -> datetime | None:
        return self._finished_at

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal

    @property
    def dependencies(self) -> dict[str, Task[Any, Any]]:
        """Direct dependencies by name, in the order they were added."""
        return dict(self._dependencies)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def add_dependency(self, dep: Task[Any, Any]) -> Task[InputT, OutputT]:
        """Make ``dep`` a prerequisite of this task.

        Args:
            dep: Task that must complete before this one runs.

        Returns:
            Self for chaining.

        Raises:
            WiringError: If the edge is a self-loop, would close a cycle,
                clashes with another dependency of the same name, or this
                task has already started.
        """
        if not isinstance(dep, Task):
            raise TypeError(f"dependency must be a Task, got {type(dep).__name__}")

        with self._lock:
            if self._state is not TaskState.PENDING:
                raise WiringError(
                    f"cannot add dependency to task '{self._name}' in state {self._state.name}"
                )
            if dep is self or dep.name == self._name:
                raise WiringError(f"task '{self._name}' cannot depend on itself")

            existing = self._dependencies.get(dep.name)
            if existing is dep:
                return self
            if existing is not None:
                raise WiringError(
                    f"task '{self._name}' already depends on a different task named '{dep.name}'"
                )

            path = dep._path_to(self)
            if path is not None:
                cycle = " -> ".join([self._name, *path])
                raise WiringError(f"dependency would create a cycle: {cycle}")

            self._dependencies[dep.name] = dep
        return self

    def depends_on(self, *deps: Task[Any, Any]) -> Task[InputT, OutputT]:
        """Add several dependencies at once. Returns self for chaining."""
        for dep in deps:
            self.add_dependency(dep)
        return self

    def _path_to(self, target: Task[Any, Any]) -> list[str] | None:
        """Dependency path from self to ``target`` (by identity or name)."""
        stack: list[tuple[Task[Any, Any], list[str]]] = [(self, [self._name])]
        seen: set[int] = set()
        while stack:
            node, path = stack.pop()
            if node is target or node.name == target.name:
                return path
            if id(node) in seen:
                continue
            seen.add(id(node))
            for child in node._dependencies.values():
                stack.append((child, [*path, child.name]))
        return None

    # ------------------------------------------------------------------
    # State changes (driven by TaskManager)
    # ------------------------------------------------------------------

    def _transition(self, target: TaskState) -> None:
        with self._lock:
            if target not in ALLOWED_TRANSITIONS[self._state]:
                raise InvalidTransitionError(self._name, self._state, target)
            self._state = target
            if target is TaskState.RUNNING:
                self._started_at = _utc_now()
            elif target.is_terminal:
                self._finished_at = _utc_now()

    def _mark_running(self) -> None:
        self._transition(TaskState.RUNNING)

    def _mark_completed(self, result: OutputT) -> None:
        self._result = result
        self._error = None
        self._transition(TaskState.COMPLETED)

    def _mark_failed(self, error: BaseException) -> None:
        self._error = error
        self._transition(TaskState.FAILED)

    def _mark_cancelled(self, error: BaseException) -> None:
        self._error = error
        self._transition(TaskState.CANCELLED)

    def _record_retry(self) -> None:
        if self._retry_count >= self.retry_policy.max_retries:
            raise RuntimeError(f"task '{self._name}' exceeded max_retries")
        self._retry_count += 1

    def _record_callback(self, result: Any, error: BaseException | None) -> None:
        if error is None:
            self._result = result
            self._callback_state = CallbackState.SUCCEEDED
            self._callback_error = None
        else:
            self._callback_state = CallbackState.FAILED
            self._callback_error = error

    # ------------------------------------------------------------------

    def snapshot(self) -> TaskSnapshot:
        """Immutable copy of the current outcome."""
        return TaskSnapshot(
            name=self._name,
            state=self._state,
            priority=self.priority,
            input=self.input,
            result=self._result,
            error=self._error,
            retry_count=self._retry_count,
            max_retries=self.retry_policy.max_retries,
            callback_state=self._callback_state,
            callback_error=self._callback_error,
            dependencies=tuple(self._dependencies),
            started_at=self._started_at,
            finished_at=self._finished_at,
        )

    def __repr__(self) -> str:
        return (
            f"Task(name={self._name!r}, state={self._state.name}, "
            f"priority={self.priority}, dependencies={list(self._dependencies)})"
        )
