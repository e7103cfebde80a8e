"""Task history.

When a terminal task is replaced by a new task of the same name, the
old task's snapshot is archived here. Entries are append-only and kept
in archive order per name. History lives in memory for the lifetime of
its TaskManager.
"""

from __future__ import annotations

import logging
import threading

from taskweave.tasks.types import TaskSnapshot

logger = logging.getLogger(__name__)


class TaskHistory:
    """Append-only log of archived task snapshots, keyed by task name.

    Example:
        >>> history = TaskHistory()
        >>> history.append(old_task.snapshot())
        >>> history.get("fetch")
        [TaskSnapshot(name='fetch', state=<TaskState.COMPLETED: 'completed'>, ...)]
    """

    def __init__(self) -> None:
        self._entries: dict[str, list[TaskSnapshot]] = {}
        self._lock = threading.Lock()

    def append(self, snapshot: TaskSnapshot) -> None:
        """Archive one snapshot under its task name."""
        with self._lock:
            self._entries.setdefault(snapshot.name, []).append(snapshot)
            count = len(self._entries[snapshot.name])
        logger.debug(
            "history_append: task=%s, state=%s, entries=%d",
            snapshot.name,
            snapshot.state.value,
            count,
        )

    def get(self, name: str) -> list[TaskSnapshot]:
        """Archived snapshots for ``name``, oldest first (empty if none)."""
        with self._lock:
            return list(self._entries.get(name, ()))

    def names(self) -> list[str]:
        """Names with at least one archived snapshot."""
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._entries.values())

    def __repr__(self) -> str:
        return f"TaskHistory(names={len(self._entries)}, entries={len(self)})"
