"""Core building blocks shared by every taskweave component.

Modules:
    cancellation    CancellationToken and CancelledException
    errors          Error taxonomy (TaskweaveError and subclasses)
    recover         Panic recovery wrappers for caller-supplied callables
    logging_config  One-call logging setup (text or JSON)
    run_logging     Run ids and uniform log line helpers
    validation      Task name validation
"""

from taskweave.core.cancellation import CancellationToken, CancelledException
from taskweave.core.errors import (
    DependencyError,
    HookError,
    InvalidTransitionError,
    PanicError,
    QueueEmptyError,
    QueueError,
    QueueFullError,
    TaskweaveError,
    WiringError,
)
from taskweave.core.logging_config import configure_logging, get_logger
from taskweave.core.recover import recover_call, recover_call_async, to_panic_error

__all__ = [
    "CancellationToken",
    "CancelledException",
    "DependencyError",
    "HookError",
    "InvalidTransitionError",
    "PanicError",
    "QueueEmptyError",
    "QueueError",
    "QueueFullError",
    "TaskweaveError",
    "WiringError",
    "configure_logging",
    "get_logger",
    "recover_call",
    "recover_call_async",
    "to_panic_error",
]
