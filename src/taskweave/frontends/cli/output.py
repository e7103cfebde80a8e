"""Output formatting utilities for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import rich_click as click
from rich.console import Console
from rich.table import Table

from taskweave.core.run_logging import truncate
from taskweave.tasks.types import RunReport, TaskState

STATE_STYLES = {
    TaskState.PENDING: "dim",
    TaskState.RUNNING: "cyan",
    TaskState.COMPLETED: "green",
    TaskState.FAILED: "red",
    TaskState.CANCELLED: "yellow",
}


def print_report(report: RunReport, console: Console | None = None) -> None:
    """Print one row per task plus a summary line."""
    console = console or Console()

    table = Table(title=f"Run {report.run_id}", title_justify="left")
    table.add_column("Task", style="bold")
    table.add_column("State")
    table.add_column("Retries", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Result / Error", overflow="fold")

    for name, snap in report.tasks.items():
        style = STATE_STYLES.get(snap.state, "")
        duration = f"{snap.duration:.2f}s" if snap.duration is not None else "-"
        if snap.error is not None:
            detail = f"[red]{truncate(snap.error, 80)}[/red]"
        else:
            detail = truncate(snap.result, 80) if snap.result is not None else ""
        table.add_row(
            name,
            f"[{style}]{snap.state.value}[/{style}]",
            f"{snap.retry_count}/{snap.max_retries}",
            duration,
            detail,
        )

    console.print(table)
    failed = len(report.failed())
    summary = "[green]all tasks completed[/green]" if not failed else f"[red]{failed} failed[/red]"
    console.print(f"{summary} in {report.duration:.2f}s")


def print_order(order: list[str], console: Console | None = None) -> None:
    """Print a dry-run execution order."""
    console = console or Console()
    console.print("[bold]Execution order:[/bold]")
    for i, name in enumerate(order, 1):
        console.print(f"  {i}. {name}")


def output_json(data: Any, indent: int = 2) -> None:
    """Output data as formatted JSON."""
    click.echo(json.dumps(data, indent=indent, default=str))


def error_exit(message: str, code: int = 1) -> NoReturn:
    """Print error message and exit with code."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)
