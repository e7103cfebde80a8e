"""Pure data types for the task manager.

Enums for task lifecycle plus immutable snapshots used by history and
run reports. No behavior coupling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class TaskState(Enum):
    """Task lifecycle states."""

    PENDING = "pending"  # Registered, not started
    RUNNING = "running"  # Worker admitted and executing
    COMPLETED = "completed"  # Worker succeeded
    FAILED = "failed"  # Worker or a dependency failed
    CANCELLED = "cancelled"  # Cancelled before it started

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELLED})

# Allowed forward moves; anything else is a bug in the scheduler
ALLOWED_TRANSITIONS: dict[TaskState, frozenset[TaskState]] = {
    TaskState.PENDING: frozenset({TaskState.RUNNING, TaskState.CANCELLED, TaskState.FAILED}),
    TaskState.RUNNING: frozenset({TaskState.COMPLETED, TaskState.FAILED}),
    TaskState.COMPLETED: frozenset(),
    TaskState.FAILED: frozenset(),
    TaskState.CANCELLED: frozenset(),
}


class DependExecutionMode(Enum):
    """How a task launches its not-yet-terminal dependencies."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class CallbackState(Enum):
    """Outcome of a task's success callback."""

    NOT_RUN = "not_run"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _error_text(error: BaseException | None) -> str | None:
    return str(error) if error is not None else None


@dataclass(frozen=True)
class TaskSnapshot:
    """Immutable view of a task at one point in time.

    History entries and run reports are made of snapshots, so later
    changes to the live task never leak into them.
    """

    name: str
    state: TaskState
    priority: int
    input: Any
    result: Any
    error: BaseException | None
    retry_count: int
    max_retries: int
    callback_state: CallbackState
    callback_error: BaseException | None
    dependencies: tuple[str, ...] = ()
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def duration(self) -> float | None:
        """Seconds between start and finish, if both are known."""
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict (errors as text)."""
        return {
            "name": self.name,
            "state": self.state.value,
            "priority": self.priority,
            "result": self.result,
            "error": _error_text(self.error),
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "callback_state": self.callback_state.value,
            "callback_error": _error_text(self.callback_error),
            "dependencies": list(self.dependencies),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_s": self.duration,
        }


@dataclass
class RunReport:
    """Result of one TaskManager.run() call."""

    run_id: str
    tasks: dict[str, TaskSnapshot] = field(default_factory=dict)
    duration: float = 0.0
    turn_up_result: Any = None
    turn_down_result: Any = None

    @property
    def success(self) -> bool:
        """True if every task in the run completed."""
        return all(s.state is TaskState.COMPLETED for s in self.tasks.values())

    def failed(self) -> list[TaskSnapshot]:
        """Snapshots of tasks that did not complete."""
        return [s for s in self.tasks.values() if s.state is not TaskState.COMPLETED]

    def __getitem__(self, name: str) -> TaskSnapshot:
        return self.tasks[name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "success": self.success,
            "duration_s": self.duration,
            "tasks": {name: s.to_dict() for name, s in self.tasks.items()},
        }
