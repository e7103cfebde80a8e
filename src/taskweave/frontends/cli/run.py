"""The ``taskweave run`` command."""

from __future__ import annotations

import asyncio

import rich_click as click

from taskweave.core.errors import HookError, WiringError
from taskweave.core.logging_config import configure_logging
from taskweave.frontends.cli.loader import load_manager_from_file
from taskweave.frontends.cli.output import error_exit, output_json, print_order, print_report


@click.command("run")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--max-concurrency",
    "-c",
    type=click.IntRange(min=1),
    envvar="TASKWEAVE_MAX_CONCURRENCY",
    default=None,
    help="Override the manager's max concurrency (env: TASKWEAVE_MAX_CONCURRENCY)",
)
@click.option("--dry-run", "-d", is_flag=True, help="Show execution order without running")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (env: TASKWEAVE_LOG_LEVEL)",
)
def run_command(
    file: str,
    max_concurrency: int | None,
    dry_run: bool,
    json_output: bool,
    log_level: str | None,
) -> None:
    """Run the task graph defined in a Python file.

    The file must define a module-level `manager` (a TaskManager) or a
    `build_manager()` function that returns one.

    Exits with code 1 if any task did not complete.

    **Examples:**

        taskweave run pipeline.py

        taskweave run pipeline.py --max-concurrency 4 --json

        taskweave run pipeline.py --dry-run
    """
    try:
        configure_logging(level=log_level)
    except ValueError as e:
        error_exit(str(e))

    try:
        manager = load_manager_from_file(file)
    except (OSError, SyntaxError, ValueError) as e:
        error_exit(f"Failed to load {file}: {e}")

    if max_concurrency is not None:
        manager.max_concurrency = max_concurrency

    if dry_run:
        try:
            order = manager.execution_order()
        except WiringError as e:
            error_exit(str(e))
        if json_output:
            output_json({"execution_order": order})
        else:
            print_order(order)
        return

    try:
        report = asyncio.run(manager.run())
    except (WiringError, HookError) as e:
        error_exit(str(e))

    if json_output:
        output_json(report.to_dict())
    else:
        print_report(report)

    if not report.success:
        raise SystemExit(1)
