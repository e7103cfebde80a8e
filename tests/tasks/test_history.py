"""Tests for TaskHistory."""

from taskweave.tasks import Task, TaskHistory, TaskState


def _finished(name, result):
    task = Task(name, lambda token, value: value)
    task._mark_running()
    task._mark_completed(result)
    return task.snapshot()


class TestTaskHistory:
    """Tests for the append-only snapshot log."""

    def test_empty(self):
        history = TaskHistory()
        assert len(history) == 0
        assert history.get("missing") == []
        assert history.names() == []

    def test_append_keeps_order_per_name(self):
        history = TaskHistory()
        history.append(_finished("fetch", 1))
        history.append(_finished("parse", "x"))
        history.append(_finished("fetch", 2))

        assert [s.result for s in history.get("fetch")] == [1, 2]
        assert history.names() == ["fetch", "parse"]
        assert len(history) == 3

    def test_get_returns_copy(self):
        history = TaskHistory()
        history.append(_finished("fetch", 1))
        history.get("fetch").clear()
        assert len(history.get("fetch")) == 1

    def test_clear(self):
        history = TaskHistory()
        history.append(_finished("fetch", 1))
        history.clear()
        assert len(history) == 0

    def test_entries_are_snapshots(self):
        history = TaskHistory()
        history.append(_finished("fetch", 1))
        assert history.get("fetch")[0].state is TaskState.COMPLETED
