"""Run-scoped log lines for the task manager.

Every line the scheduler emits carries the run id, so one run can be
followed with grep:

    [20261018_143022_x7k] task_retry: task=fetch, attempt=1, delay_ms=500
    [20261018_143022_x7k] task_complete: task=fetch (1.2s)
"""

from __future__ import annotations

import logging
import random
import string
import time
from typing import Any

# Errors get more room than other values
_MAX_VALUE = 100
_MAX_ERROR = 200


def generate_run_id() -> str:
    """Unique-enough run id: ``YYYYMMDD_HHMMSS_xxx``."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=3))
    return f"{time.strftime('%Y%m%d_%H%M%S')}_{suffix}"


def truncate(value: Any, max_length: int = _MAX_VALUE) -> str:
    """``str(value)`` cut to ``max_length`` with the full length noted."""
    s = str(value)
    if len(s) <= max_length:
        return s
    return f"{s[:max_length]}... ({len(s)} chars)"


def log_event(
    logger: logging.Logger,
    level: int,
    run_id: str,
    action: str,
    *,
    duration_s: float | None = None,
    **fields: Any,
) -> None:
    """Emit ``[run_id] action: key=value, ... (duration)`` at ``level``."""
    if not logger.isEnabledFor(level):
        return
    line = f"[{run_id}] {action}"
    if fields:
        line += ": " + ", ".join(
            f"{k}={truncate(v, _MAX_ERROR if k == 'error' else _MAX_VALUE)}"
            for k, v in fields.items()
        )
    if duration_s is not None:
        line += f" ({duration_s:.1f}s)"
    logger.log(level, line)
