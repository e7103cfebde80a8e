"""Tests for the taskweave CLI."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from taskweave.frontends.cli import loader
from taskweave.frontends.cli import run as run_module
from taskweave.frontends.cli.main import build_cli
from taskweave.frontends.cli.run import run_command
from taskweave.tasks import TaskManager

PIPELINE = textwrap.dedent(
    """
    from taskweave import Task, TaskManager

    async def double(token, value):
        return value * 2

    manager = TaskManager(max_concurrency=2)
    first = Task("first", double, input=1)
    second = Task("second", double, input=2, priority=3).add_dependency(first)
    manager.add_task(first).add_task(second)
    """
)

FAILING = textwrap.dedent(
    """
    from taskweave import Task, TaskManager

    def boom(token, value):
        raise RuntimeError("boom")

    manager = TaskManager(max_concurrency=1)
    manager.add_task(Task("broken", boom))
    """
)

BUILDER = textwrap.dedent(
    """
    from taskweave import Task, TaskManager

    async def sample(token, value):
        return manager.max_concurrency

    def build_manager():
        global manager
        manager = TaskManager(max_concurrency=1)
        manager.add_task(Task("sample", sample))
        return manager
    """
)


@pytest.fixture
def logging_calls(monkeypatch):
    """Capture configure_logging calls instead of touching the root logger."""
    calls = []
    monkeypatch.setattr(run_module, "configure_logging", lambda **kw: calls.append(kw))
    return calls


@pytest.fixture
def write_file(tmp_path):
    def _write(content, name="pipeline.py"):
        path = tmp_path / name
        path.write_text(content)
        return str(path)

    return _write


class TestRunCommandDefinition:
    """Tests for taskweave run options."""

    def test_run_command_exists(self):
        assert run_command is not None
        assert callable(run_command)

    def test_run_has_options(self):
        param_names = [p.name for p in run_command.params]
        assert "file" in param_names
        assert "max_concurrency" in param_names
        assert "dry_run" in param_names
        assert "json_output" in param_names
        assert "log_level" in param_names

    def test_group_registers_run(self):
        cli = build_cli()
        assert "run" in cli.commands


class TestRunCommand:
    """Tests for invoking taskweave run."""

    def test_json_output(self, logging_calls, write_file):
        result = CliRunner().invoke(build_cli(), ["run", write_file(PIPELINE), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["success"] is True
        assert data["tasks"]["first"]["result"] == 2
        assert data["tasks"]["second"]["result"] == 4

    def test_table_output(self, logging_calls, write_file):
        result = CliRunner().invoke(build_cli(), ["run", write_file(PIPELINE)])

        assert result.exit_code == 0, result.output
        assert "first" in result.output
        assert "completed" in result.output

    def test_failure_exit_code(self, logging_calls, write_file):
        result = CliRunner().invoke(build_cli(), ["run", write_file(FAILING), "--json"])

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["tasks"]["broken"]["state"] == "failed"
        assert data["tasks"]["broken"]["error"] == "boom"

    def test_dry_run(self, logging_calls, write_file):
        result = CliRunner().invoke(
            build_cli(), ["run", write_file(PIPELINE), "--dry-run", "--json"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"execution_order": ["first", "second"]}

    def test_log_level_passed_through(self, logging_calls, write_file):
        CliRunner().invoke(build_cli(), ["run", write_file(PIPELINE), "--log-level", "debug"])
        assert logging_calls == [{"level": "DEBUG"}]

    def test_max_concurrency_override(self, logging_calls, write_file):
        result = CliRunner().invoke(
            build_cli(), ["run", write_file(BUILDER), "--max-concurrency", "3", "--json"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["tasks"]["sample"]["result"] == 3

    def test_max_concurrency_from_env(self, logging_calls, write_file):
        result = CliRunner().invoke(
            build_cli(),
            ["run", write_file(BUILDER), "--json"],
            env={"TASKWEAVE_MAX_CONCURRENCY": "5"},
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["tasks"]["sample"]["result"] == 5

    def test_invalid_max_concurrency(self, logging_calls, write_file):
        result = CliRunner().invoke(
            build_cli(), ["run", write_file(PIPELINE), "--max-concurrency", "0"]
        )
        assert result.exit_code == 2

    def test_missing_manager(self, logging_calls, write_file):
        result = CliRunner().invoke(build_cli(), ["run", write_file("x = 1\n")])

        assert result.exit_code == 1
        assert "No 'manager'" in result.output


class TestLoader:
    """Tests for load_manager_from_file."""

    def test_module_level_manager(self, write_file):
        manager = loader.load_manager_from_file(write_file(PIPELINE))
        assert isinstance(manager, TaskManager)
        assert manager.list_tasks() == ["first", "second"]

    def test_build_manager(self, write_file):
        manager = loader.load_manager_from_file(write_file(BUILDER))
        assert manager.list_tasks() == ["sample"]

    def test_wrong_type(self, write_file):
        with pytest.raises(ValueError, match="Expected a TaskManager"):
            loader.load_manager_from_file(write_file("manager = 42\n"))

    def test_nothing_defined(self, write_file):
        with pytest.raises(ValueError, match="No 'manager'"):
            loader.load_manager_from_file(write_file("x = 1\n"))


class TestSamplePipeline:
    """The shipped example stays loadable."""

    def test_dry_run_example(self, logging_calls):
        example = Path(__file__).parents[2] / "examples" / "sample_pipeline.py"
        result = CliRunner().invoke(build_cli(), ["run", str(example), "--dry-run", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "execution_order": ["fetch-users", "fetch-orders", "enrich", "report"]
        }
