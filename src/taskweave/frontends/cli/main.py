"""CLI entry point."""

from __future__ import annotations

import sys
from typing import Any


def main() -> None:
    """Main entry point for the CLI."""
    import importlib.util

    if importlib.util.find_spec("rich_click") is None:
        print("CLI dependencies not installed. Run: pip install taskweave")
        sys.exit(1)

    _run_cli()


def build_cli() -> Any:
    """Configure rich-click and return the root command group."""
    import rich_click as click
    from dotenv import load_dotenv

    # Configure rich-click styling
    click.rich_click.USE_RICH_MARKUP = True
    click.rich_click.USE_MARKDOWN = True
    click.rich_click.SHOW_ARGUMENTS = True
    click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
    click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
    click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
    click.rich_click.ERRORS_EPILOGUE = ""
    click.rich_click.MAX_WIDTH = 100

    # =========================================================================
    # Root CLI
    # =========================================================================
    @click.group()
    @click.version_option(package_name="taskweave")
    def cli():
        """Taskweave - dependency-aware task scheduling.

        Settings are read from the environment and from a `.env` file in
        the working directory:

            TASKWEAVE_LOG_LEVEL        DEBUG, INFO, WARNING, ERROR

            TASKWEAVE_LOG_FORMAT       text or json

            TASKWEAVE_LOG_FILE         Also log to this file

            TASKWEAVE_MAX_CONCURRENCY  Default for --max-concurrency
        """
        load_dotenv()

    from taskweave.frontends.cli.run import run_command

    cli.add_command(run_command)
    return cli


def _run_cli() -> None:
    """CLI definition and runner."""
    build_cli()()


if __name__ == "__main__":
    main()
