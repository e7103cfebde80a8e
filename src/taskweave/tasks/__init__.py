"""Task manager: named tasks with dependencies, retries and callbacks.

- Task: a unit of work wired to its dependencies
- TaskManager: registry and scheduler running tasks in dependency order
- TaskHistory: archived snapshots of replaced tasks
- RetryPolicy: retry count, interval and backoff for a task
"""

from taskweave.tasks.history import TaskHistory
from taskweave.tasks.manager import TaskManager
from taskweave.tasks.policies import RetryPolicy
from taskweave.tasks.task import Task
from taskweave.tasks.types import (
    CallbackState,
    DependExecutionMode,
    RunReport,
    TaskSnapshot,
    TaskState,
)

__all__ = [
    "CallbackState",
    "DependExecutionMode",
    "RetryPolicy",
    "RunReport",
    "Task",
    "TaskHistory",
    "TaskManager",
    "TaskSnapshot",
    "TaskState",
]
