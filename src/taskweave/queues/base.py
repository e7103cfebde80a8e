"""Shared pieces for the queue implementations."""

from __future__ import annotations

from taskweave.core.cancellation import CancellationToken, CancelledException
from taskweave.core.errors import QueueError


class QueueCancelledError(CancelledException, QueueError):
    """Enqueue or dequeue aborted by a cancelled token."""

    def __init__(self, message: str = "queue operation cancelled") -> None:
        super().__init__(message)


def check_token(token: CancellationToken | None) -> None:
    """Raise QueueCancelledError if ``token`` is cancelled."""
    if token is not None and token.is_cancelled:
        reason = token.reason
        raise QueueCancelledError(
            f"queue operation cancelled: {reason}" if reason else "queue operation cancelled"
        )
