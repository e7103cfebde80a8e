"""Load a TaskManager from a Python file."""

from __future__ import annotations

from typing import Any

from taskweave.tasks.manager import TaskManager


def load_manager_from_file(filepath: str) -> TaskManager:
    """Load a TaskManager definition from a Python file.

    The file should define either a module-level ``manager``:

        manager = TaskManager(max_concurrency=2)
        manager.add_task(Task("fetch", fetch))

    or a ``build_manager()`` function returning one. ``build_manager``
    wins when both are present.

    Raises:
        ValueError: If the file defines neither, or they are not a TaskManager.
    """
    namespace: dict[str, Any] = {"__name__": "__taskweave_tasks__", "__file__": filepath}

    with open(filepath) as f:
        code = f.read()

    exec(compile(code, filepath, "exec"), namespace)

    if callable(namespace.get("build_manager")):
        manager = namespace["build_manager"]()
    elif "manager" in namespace:
        manager = namespace["manager"]
    else:
        raise ValueError("No 'manager' variable or 'build_manager()' function found in file")

    if not isinstance(manager, TaskManager):
        raise ValueError(f"Expected a TaskManager, got {type(manager).__name__}")
    return manager
