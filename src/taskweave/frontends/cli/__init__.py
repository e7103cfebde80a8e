"""CLI frontend for taskweave.

Commands:
    taskweave run       Run the task graph defined in a Python file

Example:
    $ taskweave run pipeline.py --max-concurrency 4
    $ taskweave run pipeline.py --dry-run
"""

from taskweave.frontends.cli.main import main

__all__ = ["main"]
